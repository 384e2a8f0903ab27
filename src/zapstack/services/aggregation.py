"""Folds over relay result sets: vote tallies and zap totals.

Relays may return duplicates, events out of order, and several conflicting
votes from the same author. Every fold here first deduplicates by event id,
then reduces deterministically so the same set of events always yields the
same result regardless of arrival order.

Note:
    When one author casts two votes with the same ``created_at``, the vote
    with the larger event id wins. Comparing lowercase hex ids as strings is
    the same as comparing them numerically.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from zapstack.models.constants import MSATS_PER_SAT, EventKind
from zapstack.models.event import Event  # noqa: TC001
from zapstack.nips.nip57 import zap_amount_msats


logger = logging.getLogger(__name__)

_VOTE_VALUES = {"+": 1, "-": -1}


def dedupe(events: Iterable[Event]) -> list[Event]:
    """Return ``events`` without repeated ids, keeping first occurrences in order."""
    seen: dict[str, Event] = {}
    for event in events:
        seen.setdefault(event.id, event)
    return list(seen.values())


def latest_votes(events: Iterable[Event]) -> dict[str, Event]:
    """Return each author's effective vote, keyed by public key.

    Only kind 7 events with content ``"+"`` or ``"-"`` count. Among an
    author's votes the greatest ``created_at`` wins, then the larger id.
    """
    latest: dict[str, Event] = {}
    for event in dedupe(events):
        if event.kind != EventKind.REACTION or event.content not in _VOTE_VALUES:
            continue
        current = latest.get(event.pubkey)
        if current is None or (event.created_at, event.id) > (current.created_at, current.id):
            latest[event.pubkey] = event
    return latest


def tally_votes(events: Iterable[Event]) -> int:
    """Return the net score: +1 per up vote and -1 per down vote among latest votes."""
    return sum(_VOTE_VALUES[vote.content] for vote in latest_votes(events).values())


def total_zap_msats(receipts: Iterable[Event]) -> int:
    """Return the sum of receipt amounts in millisatoshis.

    Receipts without a parseable amount contribute zero.
    """
    total = 0
    for receipt in dedupe(receipts):
        if receipt.kind != EventKind.ZAP_RECEIPT:
            continue
        amount = zap_amount_msats(receipt)
        if amount is None:
            logger.debug("zap_receipt_skipped receipt_id=%s", receipt.id)
            continue
        total += amount
    return total


def total_zaps(receipts: Iterable[Event]) -> float:
    """Return the sum of receipt amounts in sats (``msats / 1000``)."""
    return total_zap_msats(receipts) / MSATS_PER_SAT
