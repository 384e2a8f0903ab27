"""
Relay query filters.

A [Filter][zapstack.models.filter.Filter] is a conjunction of constraints
(kinds, ids, authors, single-letter tag values and a result limit) sent in a
``REQ`` frame. Construction builds the equivalent ``nostr_sdk.Filter``,
which the relay framing serializes; the same object evaluates the
conjunction locally with [matches()][zapstack.models.filter.Filter.matches],
which the subscription machinery and the tests use to mirror relay-side
selection.

See Also:
    [zapstack.utils.protocol][]: Sends filters in ``REQ`` frames.
    [zapstack.services.forum][]: Builds the forum's recurring filter shapes.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from nostr_sdk import Alphabet, EventId, Kind, NostrSdkError, PublicKey, SingleLetterTag
from nostr_sdk import Filter as NostrFilter

from ._validation import validate_int
from .constants import EVENT_KIND_MAX


if TYPE_CHECKING:
    from .event import Event


logger = logging.getLogger(__name__)


def _freeze_values(values: Iterable[Any] | None, name: str) -> tuple[Any, ...] | None:
    if values is None:
        return None
    if isinstance(values, str | bytes):
        raise TypeError(f"{name} must be an iterable of values, not a string")
    return tuple(dict.fromkeys(values))


def _single_letter_tag(name: str) -> SingleLetterTag:
    if not isinstance(name, str) or len(name) != 1 or not name.isascii() or not name.isalpha():
        raise ValueError(f"tag filter name must be a single character a-z or A-Z, got {name!r}")
    alphabet = getattr(Alphabet, name.upper())
    if name.islower():
        return SingleLetterTag.lowercase(alphabet)
    return SingleLetterTag.uppercase(alphabet)


@dataclass(frozen=True, slots=True)
class Filter:
    """Immutable relay query filter.

    Absent constraints (``None``) are omitted from the wire form and match
    everything. An empty ``kinds``, ``ids`` or ``authors`` tuple is a present
    constraint that matches nothing. Tag names with no values are dropped.

    Attributes:
        kinds: Accepted event kinds.
        ids: Accepted event ids (64-char hex).
        authors: Accepted author public keys (64-char hex).
        tags: Single-letter tag name to accepted values (``{"t": ("ns",)}``).
        limit: Maximum number of stored events the relay should return.

    Raises:
        TypeError: If a constraint is a bare string.
        ValueError: If a tag name is not a single letter, a kind or
            ``limit`` is out of range, or an id or author is not valid hex
            for its type.

    Examples:
        ```python
        Filter(kinds=[40], tags={"t": ["zapstack_test"]}).to_wire()
        # {"kinds": [40], "#t": ["zapstack_test"]}
        ```
    """

    kinds: tuple[int, ...] | None = None
    ids: tuple[str, ...] | None = None
    authors: tuple[str, ...] | None = None
    tags: Mapping[str, tuple[str, ...]] = field(default_factory=dict, hash=False)
    limit: int | None = None
    _nostr_filter: NostrFilter = field(
        default=None,
        init=False,
        repr=False,
        compare=False,
        hash=False,  # type: ignore[assignment]
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "kinds", _freeze_values(self.kinds, "kinds"))
        object.__setattr__(self, "ids", _freeze_values(self.ids, "ids"))
        object.__setattr__(self, "authors", _freeze_values(self.authors, "authors"))

        frozen: dict[str, tuple[str, ...]] = {}
        for name, values in (self.tags or {}).items():
            _single_letter_tag(name)
            accepted = _freeze_values(values, f"tags[{name!r}]")
            if accepted:
                frozen[name] = accepted
        object.__setattr__(self, "tags", MappingProxyType(frozen))

        for kind in self.kinds or ():
            validate_int(kind, "kind", maximum=EVENT_KIND_MAX)
        if self.limit is not None:
            validate_int(self.limit, "limit")

        object.__setattr__(self, "_nostr_filter", self._build_nostr_filter())

        if self.is_empty:
            logger.warning("empty_filter matches_all_events=True")

    def _build_nostr_filter(self) -> NostrFilter:
        f = NostrFilter()
        try:
            if self.ids is not None:
                f = f.ids([EventId.parse(event_id) for event_id in self.ids])
            if self.authors is not None:
                f = f.authors([PublicKey.parse(pubkey) for pubkey in self.authors])
        except NostrSdkError as e:
            raise ValueError(f"invalid id or author in filter: {e}") from e
        if self.kinds is not None:
            f = f.kinds([Kind(k) for k in self.kinds])
        for name, values in self.tags.items():
            tag = _single_letter_tag(name)
            for value in values:
                f = f.custom_tag(tag, value)
        if self.limit is not None:
            f = f.limit(self.limit)
        return f

    @property
    def nostr_filter(self) -> NostrFilter:
        """Access the equivalent ``nostr_sdk.Filter``."""
        return self._nostr_filter

    @property
    def is_empty(self) -> bool:
        """True when the filter has no constraint at all."""
        return (
            self.kinds is None
            and self.ids is None
            and self.authors is None
            and not self.tags
            and self.limit is None
        )

    def with_limit(self, limit: int) -> Filter:
        """Return a copy of this filter with ``limit`` set."""
        return replace(self, tags=dict(self.tags), limit=limit)

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON object placed in a ``REQ`` frame."""
        wire: dict[str, Any] = json.loads(self._nostr_filter.as_json())
        return wire

    def matches(self, event: Event) -> bool:
        """Evaluate the filter's conjunction against ``event``.

        A tag constraint is satisfied when any tag with that name has its
        second element in the accepted set. ``limit`` does not affect
        matching.
        """
        if self.ids is not None and event.id not in self.ids:
            return False
        if self.authors is not None and event.pubkey not in self.authors:
            return False
        if self.kinds is not None and event.kind not in self.kinds:
            return False
        for name, values in self.tags.items():
            if not any(value in values for value in event.get_tag_values(name)):
                return False
        return True
