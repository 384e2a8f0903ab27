"""Zapstack exception hierarchy.

Every public operation either returns a value or raises one of these typed
errors, so callers (the UI, the CLI) can tell a missing thread apart from a
relay that rejected a write or a socket that went away.

Exception hierarchy:

```text
ZapstackError (base -- never raised directly)
├── ConfigurationError          -- config validation, missing env vars, bad YAML
├── InvalidInputError           -- malformed private key, bad vote, bad filter
├── NotFoundError               -- get-style query returned no event
├── MalformedEventError         -- event structure or content does not parse
├── ProtocolError               -- unparseable relay frame, id mismatch
└── TransportError              -- relay connection failures
    ├── NotConnectedError       -- request issued without a live connection
    ├── ConnectionClosedError   -- connection torn down while a request was pending
    ├── SubscriptionClosedError -- relay sent CLOSED for a query
    ├── RelayTimeoutError       -- an opt-in timeout expired
    └── PublishRejectedError    -- relay answered OK false for an event
```

Note:
    Aggregations (vote tallies, zap totals) absorb
    [MalformedEventError][zapstack.core.exceptions.MalformedEventError] per
    event and keep going. Single-result projections
    ([Forum.get_question()][zapstack.services.forum.Forum.get_question],
    [Forum.get_profile()][zapstack.services.forum.Forum.get_profile]) let it
    propagate.
"""

from __future__ import annotations


class ZapstackError(Exception):
    """Base exception for all zapstack errors.

    Never raised directly -- always use a specific subclass.
    """


# ---------------------------------------------------------------------------
# Configuration and input
# ---------------------------------------------------------------------------


class ConfigurationError(ZapstackError):
    """Invalid or missing configuration (YAML, env vars, CLI flags)."""


class InvalidInputError(ZapstackError):
    """A caller-supplied value is structurally invalid.

    Raised for malformed private keys, unknown vote directions,
    non-positive zap amounts and filters with invalid tag names.
    """


# ---------------------------------------------------------------------------
# Query results
# ---------------------------------------------------------------------------


class NotFoundError(ZapstackError):
    """A get-style query completed without returning any event."""


class MalformedEventError(ZapstackError):
    """An event, or its content, does not have the expected shape.

    See Also:
        [parse_thread()][zapstack.nips.content.parse_thread]: Typical
            source of this error for kind 40 events.
    """


class ProtocolError(ZapstackError):
    """A relay frame could not be parsed, or an event id does not match its content."""


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class TransportError(ZapstackError):
    """Base for all relay connection errors.

    Connection-level failures are primarily reported through
    [Session.connected][zapstack.services.session.Session.connected]; a
    request only fails with a ``TransportError`` when the failure can be
    correlated with it.
    """


class NotConnectedError(TransportError):
    """A request was issued while no relay connection is live."""


class ConnectionClosedError(TransportError):
    """The connection was torn down or lost while a request was pending."""


class SubscriptionClosedError(TransportError):
    """The relay closed a query with a ``CLOSED`` frame.

    Attributes:
        subscription_id: The query correlation token.
        reason: Machine-readable prefix and message sent by the relay.
    """

    def __init__(self, subscription_id: str, reason: str) -> None:
        super().__init__(f"subscription {subscription_id} closed by relay: {reason}")
        self.subscription_id = subscription_id
        self.reason = reason


class RelayTimeoutError(TransportError):
    """A configured timeout expired (connect, publish, or zap wait)."""


class PublishRejectedError(TransportError):
    """The relay answered ``OK false`` for a published event.

    Attributes:
        event_id: Id of the rejected event.
        reason: Opaque reason string sent by the relay.
    """

    def __init__(self, event_id: str, reason: str) -> None:
        super().__init__(f"event {event_id} rejected by relay: {reason}")
        self.event_id = event_id
        self.reason = reason
