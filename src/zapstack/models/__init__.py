"""Frozen dataclasses with zero I/O for Nostr events and relay filters.

The models layer is the foundation of the diamond DAG. It has **no
dependencies** on any other zapstack package; its only third-party import
is ``nostr_sdk``, whose ``Event`` and ``Filter`` the models wrap. Every
model uses ``@dataclass(frozen=True, slots=True)`` and validates in
``__post_init__`` so invalid instances never escape the constructor.
Validation failures surface as ``TypeError``/``ValueError``; the layers
above translate them into
[MalformedEventError][zapstack.core.exceptions.MalformedEventError] or
[InvalidInputError][zapstack.core.exceptions.InvalidInputError] depending
on whether the data came from a relay or from a caller.

Attributes:
    Event: Signed Nostr event wrapping ``nostr_sdk.Event``, with tag helpers.
    EventTemplate: Unsigned event produced by the domain builders.
    Filter: Relay query filter wrapping ``nostr_sdk.Filter``, with local matching.
    EventKind: Kinds used by the forum (profile, deletion, reaction, threads, zaps).
    TagName: Tag names used by the forum.
    Marker: ``root``/``reply`` qualifiers for ``e`` tags.
    VoteDirection: ``up``/``down`` with their reaction content.

See Also:
    [zapstack.models.event][]: Event wrapper and unsigned templates.
    [zapstack.models.filter][]: Filter wire form and matching.
    [zapstack.models.constants][]: Shared constants and enumerations.
"""

from .constants import (
    DEFAULT_NAMESPACE,
    DEFAULT_RELAY_URL,
    EVENT_KIND_MAX,
    MSATS_PER_SAT,
    EventKind,
    Marker,
    TagName,
    VoteDirection,
)
from .event import Event, EventTemplate
from .filter import Filter


__all__ = [
    "DEFAULT_NAMESPACE",
    "DEFAULT_RELAY_URL",
    "EVENT_KIND_MAX",
    "MSATS_PER_SAT",
    "Event",
    "EventKind",
    "EventTemplate",
    "Filter",
    "Marker",
    "TagName",
    "VoteDirection",
]
