"""Forum event builders.

Standalone functions mapping forum actions to unsigned
[EventTemplate][zapstack.models.event.EventTemplate] instances. Signing
happens in [Session.sign()][zapstack.services.session.Session.sign]. Every
forum event carries the application namespace tag ``["t", namespace]``,
except zap requests which are handed to a payment node instead of a relay.

See Also:
    [zapstack.nips.content][]: Payload models serialized into content.
    [zapstack.services.forum][]: Signs and publishes the built templates.
"""

from __future__ import annotations

import urllib.parse

from zapstack.core.exceptions import InvalidInputError
from zapstack.models.constants import EventKind, Marker, TagName, VoteDirection
from zapstack.models.event import Event, EventTemplate  # noqa: TC001

from .content import Profile, ThreadContent  # noqa: TC001
from .nip01 import build_event


# Characters left unescaped by JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"


def _namespace_tag(namespace: str) -> list[str]:
    return [TagName.THREAD, namespace]


# =============================================================================
# Kinds 40 / 41 / 42 (NIP-28)
# =============================================================================


def build_thread(
    name: str,
    about: str,
    picture: str = "",
    *,
    namespace: str,
    thread_id: str | None = None,
    relay_url: str = "",
) -> EventTemplate:
    """Build a thread creation (kind 40) or, with ``thread_id``, an update (kind 41)."""
    content = ThreadContent(name=name, about=about, picture=picture)
    tags = [_namespace_tag(namespace), [TagName.SUBJECT, name]]
    kind = EventKind.THREAD_CREATE
    if thread_id is not None:
        kind = EventKind.THREAD_METADATA
        tags.append([TagName.EVENT, thread_id, relay_url])
    return build_event(kind, tags, content.to_content())


def build_reply(thread_id: str, message: str, *, namespace: str, relay_url: str) -> EventTemplate:
    """Build a reply (answer) to a thread: kind 42 with a ``root`` reference."""
    tags = [
        _namespace_tag(namespace),
        [TagName.EVENT, thread_id, relay_url, Marker.ROOT],
    ]
    return build_event(EventKind.THREAD_MESSAGE, tags, message)


def build_comment(  # noqa: PLR0913
    thread_id: str,
    parent_id: str,
    parent_pubkey: str,
    message: str,
    *,
    namespace: str,
    relay_url: str,
) -> EventTemplate:
    """Build a comment on a reply.

    The thread is referenced with a ``reply`` marker, the parent reply by an
    unmarked ``e`` tag, and the parent's author by a ``p`` mention. The
    mention is what separates comments from answers in list queries.
    """
    tags = [
        _namespace_tag(namespace),
        [TagName.EVENT, thread_id, relay_url, Marker.REPLY],
        [TagName.EVENT, parent_id, relay_url],
        [TagName.PUBKEY, parent_pubkey],
    ]
    return build_event(EventKind.THREAD_MESSAGE, tags, message)


# =============================================================================
# Kind 7 (NIP-25)
# =============================================================================


def build_vote(
    target_id: str,
    target_pubkey: str,
    direction: VoteDirection | str,
    *,
    namespace: str,
) -> EventTemplate:
    """Build a vote on an event: content ``"+"`` for up, ``"-"`` for down.

    Raises:
        InvalidInputError: If ``direction`` is not ``up`` or ``down``.
    """
    try:
        vote = VoteDirection(direction)
    except ValueError:
        raise InvalidInputError(f"vote direction must be 'up' or 'down', got {direction!r}") from None
    tags = [
        _namespace_tag(namespace),
        [TagName.EVENT, target_id],
        [TagName.PUBKEY, target_pubkey],
    ]
    return build_event(EventKind.REACTION, tags, vote.content)


# =============================================================================
# Kind 9734 (NIP-57)
# =============================================================================


def build_zap_request(
    target_id: str,
    receiver_pubkey: str,
    amount_msats: int,
    relay_url: str,
) -> EventTemplate:
    """Build a zap request for ``amount_msats`` millisatoshis.

    Raises:
        InvalidInputError: If the amount is not a positive integer.
    """
    if isinstance(amount_msats, bool) or not isinstance(amount_msats, int) or amount_msats <= 0:
        raise InvalidInputError(f"zap amount must be a positive integer, got {amount_msats!r}")
    tags = [
        [TagName.EVENT, target_id],
        [TagName.PUBKEY, receiver_pubkey],
        [TagName.AMOUNT, str(amount_msats)],
        [TagName.RELAYS, relay_url],
    ]
    return build_event(EventKind.ZAP_REQUEST, tags, "")


def encode_zap_request(event: Event) -> str:
    """URL-encode a signed zap request the way ``encodeURIComponent`` does.

    The result is passed to a payment node's LNURL callback as the
    ``nostr`` query parameter.
    """
    return urllib.parse.quote(event.to_json(), safe=_URI_COMPONENT_SAFE)


# =============================================================================
# Kinds 0 / 5 (NIP-01, NIP-09)
# =============================================================================


def build_profile(profile: Profile, *, namespace: str) -> EventTemplate:
    """Build a kind 0 event carrying the full profile, replacing any previous one."""
    return build_event(EventKind.PROFILE, [_namespace_tag(namespace)], profile.to_content())


def build_deletion(event_id: str, *, namespace: str) -> EventTemplate:
    """Build a kind 5 deletion request for ``event_id``."""
    tags = [_namespace_tag(namespace), [TagName.EVENT, event_id]]
    return build_event(EventKind.DELETION, tags, "")
