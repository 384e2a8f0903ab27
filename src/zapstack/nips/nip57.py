"""
NIP-57 zap receipt helpers.

A zap receipt (kind 9735) is published by the recipient's wallet after an
invoice is paid. It embeds the original signed zap request (kind 9734) as
JSON in its ``description`` tag and the paid invoice in its ``bolt11`` tag.
The amount is read from the embedded request's ``amount`` tag, in
millisatoshis.
"""

from __future__ import annotations

import json
import logging

from zapstack.models.constants import TagName
from zapstack.models.event import Event  # noqa: TC001


logger = logging.getLogger(__name__)


def zap_amount_msats(receipt: Event) -> int | None:
    """Return the amount in millisatoshis carried by ``receipt``.

    Returns ``None`` if the ``description`` tag is missing or is not a JSON
    zap request, or if its ``amount`` tag is missing or not a non-negative
    integer written in ASCII digits.
    """
    description = receipt.get_tag_value(TagName.DESCRIPTION)
    if description is None:
        return None
    try:
        request = json.loads(description)
    except json.JSONDecodeError:
        logger.debug("zap_description_invalid_json receipt_id=%s", receipt.id)
        return None
    if not isinstance(request, dict) or not isinstance(request.get("tags"), list):
        return None

    for tag in request["tags"]:
        if isinstance(tag, list) and len(tag) >= 2 and tag[0] == TagName.AMOUNT:
            amount = tag[1]
            if isinstance(amount, str) and amount.isascii() and amount.isdigit():
                return int(amount)
            logger.debug("zap_amount_invalid receipt_id=%s amount=%r", receipt.id, amount)
            return None
    return None


def receipt_invoice(receipt: Event) -> str | None:
    """Return the Lightning invoice paid by ``receipt`` (its ``bolt11`` tag)."""
    return receipt.get_tag_value(TagName.BOLT11)
