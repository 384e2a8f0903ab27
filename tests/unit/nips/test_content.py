"""
Unit tests for nips.content module.

Tests:
- ThreadContent and Profile serialization
- parse_thread(), parse_profile(), parse_answer(), parse_comment()
- MalformedEventError for wrong kinds and bad content
"""

import json

import pytest
from pydantic import ValidationError

from zapstack.core.exceptions import MalformedEventError
from zapstack.nips.content import (
    Answer,
    Profile,
    ThreadContent,
    parse_answer,
    parse_comment,
    parse_profile,
    parse_thread,
)


THREAD_ID = "a" * 64
PARENT_ID = "b" * 64


# =============================================================================
# Payload Tests
# =============================================================================


class TestThreadContent:
    def test_to_content(self) -> None:
        content = ThreadContent(name="Q1", about="body").to_content()
        assert json.loads(content) == {"name": "Q1", "about": "body", "picture": ""}
        assert ": " not in content

    def test_from_content_requires_name(self) -> None:
        with pytest.raises(MalformedEventError):
            ThreadContent.from_content('{"about": "x"}')

    def test_from_content_invalid_json(self) -> None:
        with pytest.raises(MalformedEventError, match="not valid JSON"):
            ThreadContent.from_content("not json")

    def test_from_content_not_object(self) -> None:
        with pytest.raises(MalformedEventError, match="JSON object"):
            ThreadContent.from_content("[1, 2]")


class TestProfile:
    def test_none_fields_omitted(self) -> None:
        assert json.loads(Profile(name="alice").to_content()) == {"name": "alice"}

    def test_unknown_fields_preserved(self) -> None:
        profile = Profile.from_content('{"name": "alice", "lud06": "lnurl1..."}')
        assert json.loads(profile.to_content()) == {"name": "alice", "lud06": "lnurl1..."}

    def test_frozen(self) -> None:
        profile = Profile(name="alice")
        with pytest.raises(ValidationError):
            profile.name = "bob"  # type: ignore[misc]


# =============================================================================
# Projection Tests
# =============================================================================


class TestParseThread:
    def test_kind_40(self, sign) -> None:
        event = sign(40, [["t", "ns"]], '{"name":"Q1","about":"body"}')
        thread = parse_thread(event)
        assert thread.id == event.id
        assert thread.pubkey == event.pubkey
        assert thread.title == "Q1"
        assert thread.message == "body"
        assert thread.created_at == event.created_at

    def test_kind_41_accepted(self, sign) -> None:
        assert parse_thread(sign(41, content='{"name":"Q2"}')).title == "Q2"

    def test_wrong_kind(self, sign) -> None:
        with pytest.raises(MalformedEventError, match="kind 42"):
            parse_thread(sign(42, content='{"name":"Q1"}'))

    def test_bad_content(self, sign) -> None:
        with pytest.raises(MalformedEventError):
            parse_thread(sign(40, content="plain text"))


class TestParseProfile:
    def test_kind_0(self, sign) -> None:
        assert parse_profile(sign(0, content='{"name":"alice"}')).name == "alice"

    def test_wrong_kind(self, sign) -> None:
        with pytest.raises(MalformedEventError):
            parse_profile(sign(1, content='{"name":"alice"}'))


class TestParseAnswer:
    def test_answer(self, sign) -> None:
        event = sign(42, [["t", "ns"], ["e", THREAD_ID, "wss://r", "root"]], "an answer")
        answer = parse_answer(event)
        assert answer.message == "an answer"
        assert answer.thread_id == THREAD_ID
        assert answer.vote == 0

    def test_requires_thread_reference(self, sign) -> None:
        with pytest.raises(MalformedEventError, match="does not reference"):
            parse_answer(sign(42, [["t", "ns"]], "orphan"))

    def test_vote_via_model_copy(self) -> None:
        answer = Answer(id="x", pubkey="y", message="m", created_at=1)
        assert answer.model_copy(update={"vote": 3}).vote == 3


class TestParseComment:
    def test_parent_is_unmarked_reference(self, sign) -> None:
        tags = [
            ["t", "ns"],
            ["e", THREAD_ID, "wss://r", "reply"],
            ["e", PARENT_ID, "wss://r"],
            ["p", "c" * 64],
        ]
        comment = parse_comment(sign(42, tags, "a comment"))
        assert comment.parent_id == PARENT_ID
        assert comment.message == "a comment"

    def test_no_parent(self, sign) -> None:
        comment = parse_comment(sign(42, [["e", THREAD_ID, "", "reply"]], "x"))
        assert comment.parent_id is None

    def test_wrong_kind(self, sign) -> None:
        with pytest.raises(MalformedEventError):
            parse_comment(sign(7, content="+"))
