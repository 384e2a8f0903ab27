"""NIP implementations used by the forum: codec, payloads, builders and zaps.

Sits beside ``zapstack.core`` and ``zapstack.utils`` in the middle of the
DAG. Depends on ``zapstack.models`` and ``zapstack.core.exceptions``, and on
``nostr_sdk`` (``EventBuilder``) for signing and verification.

Attributes:
    build_event, sign_event, verify_event: NIP-01 event codec.
        See [zapstack.nips.nip01][].
    ThreadContent, Profile: Typed JSON payloads of kinds 40/41 and 0.
    Thread, Answer, Comment: Read-side projections of forum events.
        See [zapstack.nips.content][].
    build_thread, build_reply, build_comment, build_vote,
    build_zap_request, build_profile, build_deletion: Forum event builders.
        See [zapstack.nips.event_builders][].
    zap_amount_msats, receipt_invoice: NIP-57 receipt helpers.
"""

from .content import (
    Answer,
    Comment,
    Profile,
    Thread,
    ThreadContent,
    is_comment,
    parse_answer,
    parse_comment,
    parse_profile,
    parse_thread,
)
from .event_builders import (
    build_comment,
    build_deletion,
    build_profile,
    build_reply,
    build_thread,
    build_vote,
    build_zap_request,
    encode_zap_request,
)
from .nip01 import build_event, parse_keys, sign_event, verify_event
from .nip57 import receipt_invoice, zap_amount_msats


__all__ = [
    "Answer",
    "Comment",
    "Profile",
    "Thread",
    "ThreadContent",
    "build_comment",
    "build_deletion",
    "build_event",
    "build_profile",
    "build_reply",
    "build_thread",
    "build_vote",
    "build_zap_request",
    "encode_zap_request",
    "is_comment",
    "parse_answer",
    "parse_comment",
    "parse_keys",
    "parse_profile",
    "parse_thread",
    "receipt_invoice",
    "sign_event",
    "verify_event",
    "zap_amount_msats",
]
