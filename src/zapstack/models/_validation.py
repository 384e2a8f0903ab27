"""Shared validation helpers for frozen dataclass models.

Private module, not part of the public API. Used by ``__post_init__`` and
``from_dict`` methods in sibling model modules to enforce runtime type
constraints on data that usually arrives from an untrusted relay.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


def validate_instance(value: Any, expected: type, name: str) -> None:
    """Raise ``TypeError`` if *value* is not an instance of *expected*."""
    if not isinstance(value, expected):
        article = "an" if expected.__name__[0] in "AEIOUaeiou" else "a"
        raise TypeError(f"{name} must be {article} {expected.__name__}, got {type(value).__name__}")


def validate_int(value: Any, name: str, *, minimum: int = 0, maximum: int | None = None) -> None:
    """Raise if *value* is not an ``int`` (``bool`` excluded) within bounds."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise ValueError(f"{name} must be <= {maximum}")


def freeze_tags(tags: Any, name: str = "tags") -> tuple[tuple[str, ...], ...]:
    """Convert a sequence of string sequences into nested tuples.

    Raises:
        TypeError: If *tags* is not a list/tuple of lists/tuples of ``str``.
    """
    if isinstance(tags, str | bytes) or not isinstance(tags, Sequence):
        raise TypeError(f"{name} must be a sequence of sequences")
    frozen: list[tuple[str, ...]] = []
    for i, tag in enumerate(tags):
        if isinstance(tag, str | bytes) or not isinstance(tag, Sequence):
            raise TypeError(f"{name}[{i}] must be a sequence of str")
        for value in tag:
            if not isinstance(value, str):
                raise TypeError(f"{name}[{i}] must contain only str, got {type(value).__name__}")
        frozen.append(tuple(str(value) for value in tag))
    return tuple(frozen)
