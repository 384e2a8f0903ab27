"""
Immutable Nostr events wrapping ``nostr_sdk.Event``.

An [EventTemplate][zapstack.models.event.EventTemplate] is what the domain
builders in [zapstack.nips.event_builders][] produce: kind, tags, content
and timestamp, with no author, id or signature. Signing it with
[sign_event()][zapstack.nips.nip01.sign_event] hands it to
``nostr_sdk.EventBuilder``, which computes the canonical NIP-01 id and the
Schnorr signature, and yields an [Event][zapstack.models.event.Event].

See Also:
    [zapstack.nips.nip01][]: Signing and signature verification.
    [zapstack.utils.protocol][]: Relay framing that carries these events.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from nostr_sdk import Event as NostrEvent
from nostr_sdk import NostrSdkError

from ._validation import freeze_tags, validate_instance, validate_int
from .constants import EVENT_KIND_MAX


Tags = tuple[tuple[str, ...], ...]

_EVENT_FIELDS = ("id", "pubkey", "created_at", "kind", "tags", "content", "sig")


def _first_value(tags: Tags, name: str) -> str | None:
    for tag in tags:
        if len(tag) >= 2 and tag[0] == name:
            return tag[1]
    return None


@dataclass(frozen=True, slots=True)
class EventTemplate:
    """Unsigned event produced by the domain builders.

    Attributes:
        kind: Event kind (0-65535).
        tags: Ordered tags; lists are converted to nested tuples.
        content: Event content string (plain text or JSON).
        created_at: Unix timestamp in seconds.

    Raises:
        TypeError: If a field has the wrong type.
        ValueError: If ``kind`` or ``created_at`` is out of range, or a tag
            is empty.
    """

    kind: int
    tags: Tags
    content: str
    created_at: int

    def __post_init__(self) -> None:
        validate_int(self.kind, "kind", maximum=EVENT_KIND_MAX)
        validate_int(self.created_at, "created_at")
        validate_instance(self.content, str, "content")
        tags = freeze_tags(self.tags)
        if any(not tag for tag in tags):
            raise ValueError("tags must not contain an empty tag")
        object.__setattr__(self, "tags", tags)

    def get_tag_value(self, name: str) -> str | None:
        return _first_value(self.tags, name)


class EventFields(NamedTuple):
    """Plain-Python view of a signed event, read once from the SDK object.

    Attributes:
        id: 64-char lowercase hex SHA-256 of the canonical serialization.
        pubkey: 64-char lowercase hex x-only public key of the author.
        created_at: Unix timestamp in seconds.
        kind: Event kind (0-65535).
        tags: Ordered tags as nested tuples of strings.
        content: Event content string.
        sig: 128-char lowercase hex BIP-340 Schnorr signature over ``id``.
    """

    id: str
    pubkey: str
    created_at: int
    kind: int
    tags: Tags
    content: str
    sig: str


@dataclass(frozen=True, slots=True)
class Event:
    """Signed Nostr event as exchanged with a relay.

    Wraps a ``nostr_sdk.Event``. The fields the forum reads (``id``,
    ``pubkey``, ``tags``...) are converted to plain strings, ints and
    tuples once at construction and exposed as properties; the SDK object
    stays available as ``nostr_event`` for signing, verification and
    framing.

    Construction checks structure only: the SDK rejects malformed hex,
    public keys that are not curve points and out-of-range integers when
    parsing. Whether ``id`` matches the content and ``sig`` matches the
    author is checked by [verify_event()][zapstack.nips.nip01.verify_event].

    Args:
        _nostr_event: The underlying ``nostr_sdk.Event`` instance.

    Raises:
        TypeError: If ``_nostr_event`` is not a ``nostr_sdk.Event``.

    Examples:
        ```python
        event = Event.from_dict(json.loads(frame)[2])
        event.get_tag_value("subject")   # first subject tag, or None
        event.get_tag_values("e")        # every referenced event id
        event.nostr_event.verify()       # SDK object
        ```
    """

    _nostr_event: NostrEvent = field(compare=False, repr=False)
    _fields: EventFields = field(default=None, init=False)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        validate_instance(self._nostr_event, NostrEvent, "_nostr_event")
        inner = self._nostr_event
        fields = EventFields(
            id=inner.id().to_hex(),
            pubkey=inner.author().to_hex(),
            created_at=inner.created_at().as_secs(),
            kind=inner.kind().as_u16(),
            tags=tuple(tuple(tag.as_vec()) for tag in inner.tags().to_vec()),
            content=inner.content(),
            sig=inner.signature(),
        )
        object.__setattr__(self, "_fields", fields)

    # -- Fields --------------------------------------------------------------

    @property
    def nostr_event(self) -> NostrEvent:
        """Access the underlying ``nostr_sdk.Event``."""
        return self._nostr_event

    @property
    def id(self) -> str:
        return self._fields.id

    @property
    def pubkey(self) -> str:
        return self._fields.pubkey

    @property
    def created_at(self) -> int:
        return self._fields.created_at

    @property
    def kind(self) -> int:
        return self._fields.kind

    @property
    def tags(self) -> Tags:
        return self._fields.tags

    @property
    def content(self) -> str:
        return self._fields.content

    @property
    def sig(self) -> str:
        return self._fields.sig

    # -- Tag helpers ---------------------------------------------------------

    def get_tag_value(self, name: str) -> str | None:
        """Return the second element of the first tag named ``name``."""
        return _first_value(self.tags, name)

    def get_tag_values(self, name: str) -> list[str]:
        """Return the second element of every tag named ``name``, in order."""
        return [tag[1] for tag in self.tags if len(tag) >= 2 and tag[0] == name]

    def has_tag(self, name: str) -> bool:
        return any(tag and tag[0] == name for tag in self.tags)

    # -- Wire form -----------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        data = self._fields._asdict()
        data["tags"] = [list(tag) for tag in self.tags]
        return data

    def to_json(self) -> str:
        return self._nostr_event.as_json()

    @classmethod
    def from_json(cls, text: str) -> Event:
        """Parse an event from its JSON text with ``nostr_sdk.Event.from_json``.

        Raises:
            ValueError: If the SDK cannot parse the event.
        """
        try:
            return cls(NostrEvent.from_json(text))
        except NostrSdkError as e:
            raise ValueError(f"invalid event: {e}") from e

    @classmethod
    def from_dict(cls, data: Any) -> Event:
        """Build an [Event][zapstack.models.event.Event] from its JSON object form.

        Args:
            data: Decoded JSON object as received from a relay.

        Raises:
            TypeError: If ``data`` is not a mapping.
            ValueError: If a required field is missing or the SDK rejects
                a field's value.
        """
        if not isinstance(data, dict):
            raise TypeError(f"event must be an object, got {type(data).__name__}")
        for name in _EVENT_FIELDS:
            if name not in data:
                raise ValueError(f"event is missing field {name!r}")
        return cls.from_json(json.dumps(data, ensure_ascii=False))
