"""
Unit tests for nips.nip01 module.

Tests:
- build_event() stamping and input errors
- parse_keys() for hex, nsec and malformed keys
- sign_event() produces verifiable events
- verify_event() detects content, tag, id and signature tampering
"""

import hashlib
import json
import time

import pytest
from nostr_sdk import Keys

from fixtures.constants import VALID_HEX_KEY
from zapstack.core.exceptions import InvalidInputError
from zapstack.models.event import Event, EventTemplate
from zapstack.nips.nip01 import build_event, parse_keys, sign_event, verify_event


def _canonical_id(data: dict) -> str:
    serialized = json.dumps(
        [0, data["pubkey"], data["created_at"], data["kind"], data["tags"], data["content"]],
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(serialized.encode()).hexdigest()


def _forge(event: Event, **fields: object) -> Event:
    return Event.from_dict({**event.to_dict(), **fields})


# =============================================================================
# build_event() Tests
# =============================================================================


class TestBuildEvent:
    def test_defaults_to_current_time(self) -> None:
        before = int(time.time())
        template = build_event(42, [["t", "ns"]], "hi")
        assert before <= template.created_at <= int(time.time()) + 1

    def test_explicit_timestamp(self) -> None:
        assert build_event(42, [], "", created_at=5).created_at == 5

    def test_invalid_kind(self) -> None:
        with pytest.raises(InvalidInputError):
            build_event(70_000, [], "")

    def test_invalid_tags(self) -> None:
        with pytest.raises(InvalidInputError):
            build_event(42, [["t", 1]], "")  # type: ignore[list-item]


# =============================================================================
# parse_keys() Tests
# =============================================================================


class TestParseKeys:
    def test_hex(self, keys: Keys) -> None:
        assert parse_keys(VALID_HEX_KEY).public_key().to_hex() == keys.public_key().to_hex()

    def test_nsec(self, keys: Keys) -> None:
        nsec = keys.secret_key().to_bech32()
        assert parse_keys(nsec).public_key().to_hex() == keys.public_key().to_hex()

    def test_keys_passthrough(self, keys: Keys) -> None:
        assert parse_keys(keys) is keys

    @pytest.mark.parametrize("value", ["", "not-a-key", "zz" * 32])
    def test_malformed(self, value: str) -> None:
        with pytest.raises(InvalidInputError, match="malformed private key"):
            parse_keys(value)


# =============================================================================
# sign_event() / verify_event() Tests
# =============================================================================


class TestSignEvent:
    def test_signed_event_fields(self, keys: Keys) -> None:
        template = EventTemplate(kind=40, tags=(("t", "ns"),), content="{}", created_at=10)
        event = sign_event(template, keys)
        assert event.pubkey == keys.public_key().to_hex()
        assert event.kind == 40
        assert event.tags == (("t", "ns"),)
        assert event.created_at == 10
        assert event.id == _canonical_id(event.to_dict())
        assert len(event.sig) == 128

    def test_verifies(self, sign) -> None:
        assert verify_event(sign(42, [["e", "a" * 64, "", "root"]], "héllo ⚡"))

    def test_accepts_hex_key(self) -> None:
        template = EventTemplate(kind=1, tags=(), content="x", created_at=1)
        assert verify_event(sign_event(template, VALID_HEX_KEY))

    def test_malformed_key(self) -> None:
        template = EventTemplate(kind=1, tags=(), content="x", created_at=1)
        with pytest.raises(InvalidInputError):
            sign_event(template, "nope")

    def test_self_reference_tag_dropped(self, keys: Keys) -> None:
        own = keys.public_key().to_hex()
        template = EventTemplate(kind=42, tags=(("p", own), ("t", "ns")), content="", created_at=1)
        assert sign_event(template, keys).tags == (("t", "ns"),)


class TestVerifyEvent:
    def test_valid(self, sign) -> None:
        assert verify_event(sign(42, [["t", "ns"]], "x"))

    def test_tampered_content(self, sign) -> None:
        assert not verify_event(_forge(sign(42, content="original"), content="changed"))

    def test_tampered_tags(self, sign) -> None:
        event = sign(42, [["t", "ns"]], "x")
        assert not verify_event(_forge(event, tags=[["t", "other"]]))

    def test_tampered_id_only(self, sign) -> None:
        event = sign(42, content="x")
        other_id = "0" * 64 if event.id != "0" * 64 else "1" * 64
        assert not verify_event(_forge(event, id=other_id))

    def test_tampered_id_and_content(self, sign) -> None:
        data = {**sign(42, content="original").to_dict(), "content": "changed"}
        data["id"] = _canonical_id(data)
        assert not verify_event(Event.from_dict(data))

    def test_tampered_tags_and_id(self, sign) -> None:
        data = {**sign(42, [["t", "ns"]], "x").to_dict(), "tags": [["t", "other"]]}
        data["id"] = _canonical_id(data)
        assert not verify_event(Event.from_dict(data))

    def test_signature_from_other_author(self, sign, other_keys: Keys) -> None:
        mine = sign(42, content="x")
        theirs = sign(42, content="x", signer=other_keys)
        assert not verify_event(_forge(theirs, sig=mine.sig))
