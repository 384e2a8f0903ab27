"""Unit tests for nips.nip57 zap receipt helpers."""

import json

import pytest

from zapstack.nips.nip57 import receipt_invoice, zap_amount_msats


def _description(*tags: list[object]) -> str:
    return json.dumps({"kind": 9734, "tags": list(tags), "content": ""})


class TestZapAmountMsats:
    def test_amount(self, sign) -> None:
        receipt = sign(9735, [["description", _description(["e", "x"], ["amount", "21000"])]])
        assert zap_amount_msats(receipt) == 21_000

    def test_missing_description(self, sign) -> None:
        assert zap_amount_msats(sign(9735, [["bolt11", "lnbc1"]])) is None

    def test_description_not_json(self, sign) -> None:
        assert zap_amount_msats(sign(9735, [["description", "{broken"]])) is None

    def test_description_not_object(self, sign) -> None:
        assert zap_amount_msats(sign(9735, [["description", "[1, 2]"]])) is None

    def test_missing_amount(self, sign) -> None:
        assert zap_amount_msats(sign(9735, [["description", _description(["e", "x"])]])) is None

    @pytest.mark.parametrize("amount", ["-5", "1.5", "abc", "\u00b2", "\u0663", 1000])
    def test_invalid_amount(self, sign, amount: object) -> None:
        receipt = sign(9735, [["description", _description(["amount", amount])]])
        assert zap_amount_msats(receipt) is None


class TestReceiptInvoice:
    def test_invoice(self, sign) -> None:
        assert receipt_invoice(sign(9735, [["bolt11", "lnbc10n1..."]])) == "lnbc10n1..."

    def test_missing(self, sign) -> None:
        assert receipt_invoice(sign(9735)) is None
