"""Shared constants for the models layer.

Event kinds, tag names and markers used by the forum. Placing them here
avoids circular dependencies between the nips, utils and services layers.

See Also:
    [zapstack.nips.event_builders][]: Builds events with these kinds and tags.
    [zapstack.services.forum][]: Queries the relay by these kinds and tags.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class EventKind(IntEnum):
    """Nostr event kinds the forum produces or consumes.

    Attributes:
        PROFILE: Kind 0 -- identity/profile record (NIP-01).
        DELETION: Kind 5 -- deletion request referencing a target (NIP-09).
        REACTION: Kind 7 -- vote, content ``"+"`` or ``"-"`` (NIP-25).
        THREAD_CREATE: Kind 40 -- thread (question) creation (NIP-28).
        THREAD_METADATA: Kind 41 -- thread metadata update (NIP-28).
        THREAD_MESSAGE: Kind 42 -- reply or comment within a thread (NIP-28).
        ZAP_REQUEST: Kind 9734 -- payment request, never published (NIP-57).
        ZAP_RECEIPT: Kind 9735 -- payment receipt published by a wallet (NIP-57).
    """

    PROFILE = 0
    DELETION = 5
    REACTION = 7
    THREAD_CREATE = 40
    THREAD_METADATA = 41
    THREAD_MESSAGE = 42
    ZAP_REQUEST = 9734
    ZAP_RECEIPT = 9735


class TagName(StrEnum):
    """Tag names used by forum events.

    Single-character names (``t``, ``e``, ``p``) are indexed by relays and
    can be used in [Filter][zapstack.models.filter.Filter] tag constraints.

    Attributes:
        THREAD: ``t`` -- application namespace grouping all forum traffic.
        EVENT: ``e`` -- reference to a target event id.
        PUBKEY: ``p`` -- mention of a participant key.
        SUBJECT: ``subject`` -- thread title copy.
        AMOUNT: ``amount`` -- zap amount in millisatoshis.
        RELAYS: ``relays`` -- relays a zap receipt should be published to.
        DESCRIPTION: ``description`` -- JSON zap request embedded in a receipt.
        BOLT11: ``bolt11`` -- Lightning invoice paid by a receipt.
    """

    THREAD = "t"
    EVENT = "e"
    PUBKEY = "p"
    SUBJECT = "subject"
    AMOUNT = "amount"
    RELAYS = "relays"
    DESCRIPTION = "description"
    BOLT11 = "bolt11"


class Marker(StrEnum):
    """Qualifiers placed in the fourth slot of ``e`` tags (NIP-10)."""

    ROOT = "root"
    REPLY = "reply"


class VoteDirection(StrEnum):
    """Direction of a vote, mapped to reaction content by ``content``."""

    UP = "up"
    DOWN = "down"

    @property
    def content(self) -> str:
        return "+" if self is VoteDirection.UP else "-"


DEFAULT_NAMESPACE = "zapstack_test"
DEFAULT_RELAY_URL = "wss://relay.damus.io"

MSATS_PER_SAT = 1000
EVENT_KIND_MAX = 65_535
