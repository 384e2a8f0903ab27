"""NIP-01 relay message framing over ``nostr_sdk.ClientMessage``/``RelayMessage``.

Client frames (``EVENT``, ``REQ``, ``CLOSE``) are serialized by
``nostr_sdk.ClientMessage``; relay frames are parsed by
``nostr_sdk.RelayMessage`` and converted to the small typed messages below
(``EVENT``, ``EOSE``, ``OK``, ``CLOSED``, ``NOTICE``). No I/O happens here;
[RelayTransport][zapstack.utils.transport.RelayTransport] owns the socket
and dispatches the decoded messages.

Attributes:
    encode_event: ``["EVENT", <event>]``.
    encode_req: ``["REQ", <sub_id>, <filter>...]``.
    encode_close: ``["CLOSE", <sub_id>]``.
    parse_relay_message: Decode one text frame into a typed message.

Examples:
    ```python
    encode_close("sub1")
    # '["CLOSE","sub1"]'

    parse_relay_message('["EOSE","sub1"]')
    # RelayEose(subscription_id='sub1')
    ```
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from nostr_sdk import ClientMessage, NostrSdkError
from nostr_sdk import RelayMessage as NostrRelayMessage

from zapstack.core.exceptions import ProtocolError
from zapstack.models.event import Event
from zapstack.models.filter import Filter  # noqa: TC001


# =============================================================================
# Relay messages
# =============================================================================


@dataclass(frozen=True, slots=True)
class RelayEvent:
    """An event delivered for a subscription. Its signature is not yet checked."""

    subscription_id: str
    event: Event


@dataclass(frozen=True, slots=True)
class RelayEose:
    """End of stored events for a subscription."""

    subscription_id: str


@dataclass(frozen=True, slots=True)
class RelayOk:
    """Outcome of a published event."""

    event_id: str
    accepted: bool
    message: str


@dataclass(frozen=True, slots=True)
class RelayClosed:
    """The relay ended a subscription on its side."""

    subscription_id: str
    reason: str


@dataclass(frozen=True, slots=True)
class RelayNotice:
    """Human-readable message from the relay, not correlated with any request."""

    message: str


RelayMessage = RelayEvent | RelayEose | RelayOk | RelayClosed | RelayNotice


# =============================================================================
# Encoding
# =============================================================================


def encode_event(event: Event) -> str:
    return ClientMessage.event(event.nostr_event).as_json()


def encode_req(subscription_id: str, filters: Sequence[Filter]) -> str:
    """Return a ``REQ`` frame for ``filters``.

    ``ClientMessage.req`` carries one filter; further filters are appended
    to the same frame, which NIP-01 relays read as an OR of all of them.

    Raises:
        ValueError: If ``filters`` is empty.
    """
    if not filters:
        raise ValueError("REQ needs at least one filter")
    frame = ClientMessage.req(subscription_id, filters[0].nostr_filter).as_json()
    if len(filters) == 1:
        return frame
    parts: list[Any] = json.loads(frame)
    parts.extend(f.to_wire() for f in filters[1:])
    return json.dumps(parts, separators=(",", ":"), ensure_ascii=False)


def encode_close(subscription_id: str) -> str:
    return ClientMessage.close(subscription_id).as_json()


# =============================================================================
# Decoding
# =============================================================================


def parse_relay_message(text: str) -> RelayMessage:
    """Decode one relay text frame with ``nostr_sdk.RelayMessage.from_json``.

    Args:
        text: Raw WebSocket text payload.

    Returns:
        The typed message. ``EVENT`` payloads are parsed but not verified;
        the transport checks signatures and drops bad events individually.

    Raises:
        ProtocolError: If the SDK cannot parse the frame (invalid JSON,
            missing fields, a malformed event) or the frame type is one the
            forum does not handle (``AUTH``, ``COUNT``...).
    """
    try:
        message = NostrRelayMessage.from_json(text).as_enum()
    except NostrSdkError as e:
        raise ProtocolError(f"invalid relay frame: {e}") from e

    if message.is_event_msg():
        return RelayEvent(subscription_id=message.subscription_id, event=Event(message.event))
    if message.is_end_of_stored_events():
        return RelayEose(subscription_id=message.subscription_id)
    if message.is_ok():
        return RelayOk(
            event_id=message.event_id.to_hex(), accepted=message.status, message=message.message
        )
    if message.is_closed():
        return RelayClosed(subscription_id=message.subscription_id, reason=message.message)
    if message.is_notice():
        return RelayNotice(message=message.message)
    raise ProtocolError(f"unsupported relay message {text[:32]!r}")
