"""
Unit tests for services.aggregation module.

Tests:
- dedupe() keeps first occurrences in order
- latest_votes()/tally_votes(): last vote per author wins, ties by id
- total_zap_msats()/total_zaps(): receipts summed, bad receipts skipped
"""

import json

from nostr_sdk import Keys

from zapstack.services.aggregation import (
    dedupe,
    latest_votes,
    tally_votes,
    total_zap_msats,
    total_zaps,
)


TARGET = "a" * 64


def _receipt(sign, amount_msats: str, created_at: int = 1):
    description = json.dumps({"kind": 9734, "tags": [["e", TARGET], ["amount", amount_msats]]})
    return sign(
        9735,
        [["e", TARGET], ["bolt11", "lnbc..."], ["description", description]],
        created_at=created_at,
    )


# =============================================================================
# dedupe() Tests
# =============================================================================


class TestDedupe:
    def test_removes_repeats(self, sign) -> None:
        a = sign(7, content="+", created_at=1)
        b = sign(7, content="-", created_at=2)
        assert dedupe([a, b, a, b]) == [a, b]

    def test_empty(self) -> None:
        assert dedupe([]) == []


# =============================================================================
# Vote Tests
# =============================================================================


class TestTallyVotes:
    def test_last_vote_per_author_wins(self, sign, other_keys: Keys) -> None:
        events = [
            sign(7, [["e", TARGET]], "+", created_at=1),
            sign(7, [["e", TARGET]], "-", created_at=2),
            sign(7, [["e", TARGET]], "+", created_at=1, signer=other_keys),
        ]
        assert tally_votes(events) == 0

    def test_order_independent(self, sign, other_keys: Keys) -> None:
        events = [
            sign(7, [["e", TARGET]], "+", created_at=1),
            sign(7, [["e", TARGET]], "-", created_at=2),
            sign(7, [["e", TARGET]], "+", created_at=1, signer=other_keys),
        ]
        assert tally_votes(reversed(events)) == tally_votes(events)

    def test_duplicates_counted_once(self, sign, other_keys: Keys) -> None:
        up = sign(7, [["e", TARGET]], "+")
        other_up = sign(7, [["e", TARGET]], "+", signer=other_keys)
        assert tally_votes([up, up, other_up, other_up]) == 2

    def test_unknown_content_ignored(self, sign) -> None:
        assert tally_votes([sign(7, [["e", TARGET]], "x")]) == 0

    def test_unknown_content_does_not_override_vote(self, sign) -> None:
        events = [
            sign(7, [["e", TARGET]], "+", created_at=1),
            sign(7, [["e", TARGET]], "🤙", created_at=2),
        ]
        assert tally_votes(events) == 1

    def test_non_reaction_ignored(self, sign) -> None:
        assert tally_votes([sign(42, [["e", TARGET]], "+")]) == 0

    def test_tie_broken_by_larger_id(self, sign) -> None:
        up = sign(7, [["e", TARGET]], "+", created_at=5)
        down = sign(7, [["e", TARGET]], "-", created_at=5)
        winner = max(up, down, key=lambda e: e.id)
        assert tally_votes([up, down]) == (1 if winner is up else -1)
        assert latest_votes([down, up])[up.pubkey] is winner

    def test_empty(self) -> None:
        assert tally_votes([]) == 0


# =============================================================================
# Zap Tests
# =============================================================================


class TestTotalZaps:
    def test_sum(self, sign) -> None:
        receipts = [_receipt(sign, "3000", 1), _receipt(sign, "5000", 2)]
        assert total_zap_msats(receipts) == 8000
        assert total_zaps(receipts) == 8.0

    def test_fractional_sats(self, sign) -> None:
        assert total_zaps([_receipt(sign, "1500")]) == 1.5

    def test_bad_description_contributes_zero(self, sign) -> None:
        bad = sign(9735, [["e", TARGET], ["description", "{not json"]], created_at=3)
        assert total_zaps([_receipt(sign, "3000"), bad]) == 3.0

    def test_non_ascii_digit_amount_contributes_zero(self, sign) -> None:
        receipts = [_receipt(sign, "²", 1), _receipt(sign, "3000", 2)]
        assert total_zaps(receipts) == 3.0

    def test_duplicates_counted_once(self, sign) -> None:
        receipt = _receipt(sign, "2000")
        assert total_zaps([receipt, receipt]) == 2.0

    def test_non_receipts_ignored(self, sign) -> None:
        request = sign(9734, [["amount", "1000"]])
        assert total_zaps([request]) == 0.0

    def test_empty(self) -> None:
        assert total_zaps([]) == 0.0
