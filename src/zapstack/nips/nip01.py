"""
NIP-01 event codec: template construction, signing and verification.

Signing goes through ``nostr_sdk.EventBuilder``: the template's kind, tags,
content and timestamp are handed to the builder, which computes the
canonical id and Schnorr signature. Signature checks are delegated to
``nostr_sdk.Event.verify()``, which recomputes the id as well.

Note:
    ``EventBuilder`` drops ``p`` tags that reference the signing key, so a
    template tagging its own author is signed without that tag.

See Also:
    [zapstack.nips.event_builders][]: Domain builders producing templates.
    [zapstack.utils.keys][]: Private key parsing and generation.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from nostr_sdk import EventBuilder, Keys, Kind, NostrSdkError, Tag, Timestamp

from zapstack.core.exceptions import InvalidInputError
from zapstack.models.event import Event, EventTemplate


logger = logging.getLogger(__name__)


def build_event(
    kind: int,
    tags: Sequence[Sequence[str]],
    content: str,
    created_at: int | None = None,
) -> EventTemplate:
    """Return an unsigned template, stamped with the current time by default.

    Raises:
        InvalidInputError: If ``kind``, ``tags`` or ``content`` is malformed.
    """
    if created_at is None:
        created_at = int(time.time())
    try:
        return EventTemplate(kind=kind, tags=tags, content=content, created_at=created_at)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"invalid event template: {e}") from e


def parse_keys(private_key: str | Keys) -> Keys:
    """Return ``nostr_sdk.Keys`` for a hex or nsec private key.

    Raises:
        InvalidInputError: If the key is structurally invalid.
    """
    if isinstance(private_key, Keys):
        return private_key
    try:
        return Keys.parse(private_key)
    except NostrSdkError as e:
        raise InvalidInputError("malformed private key") from e


def to_event_builder(template: EventTemplate) -> EventBuilder:
    """Return an ``EventBuilder`` carrying every field of ``template``."""
    return (
        EventBuilder(Kind(template.kind), template.content)
        .tags([Tag.parse(list(tag)) for tag in template.tags])
        .custom_created_at(Timestamp.from_secs(template.created_at))
    )


def sign_event(template: EventTemplate, private_key: str | Keys) -> Event:
    """Sign ``template`` and return a fully populated [Event][zapstack.models.event.Event].

    Args:
        template: Unsigned event.
        private_key: Hex or nsec private key, or already parsed ``Keys``.

    Raises:
        InvalidInputError: If the private key is malformed or the SDK
            rejects a tag.
    """
    keys = parse_keys(private_key)
    try:
        nostr_event = to_event_builder(template).sign_with_keys(keys)
    except NostrSdkError as e:
        raise InvalidInputError(f"cannot sign event: {e}") from e
    return Event(nostr_event)


def verify_event(event: Event) -> bool:
    """Return ``True`` if ``event``'s id and signature are both valid.

    Never raises for [Event][zapstack.models.event.Event] instances.
    """
    try:
        valid = bool(event.nostr_event.verify())
    except NostrSdkError as e:
        logger.debug("event_verify_failed event_id=%s error=%s", event.id, e)
        return False
    if not valid:
        logger.debug("event_verify_failed event_id=%s", event.id)
    return valid
