"""Unit tests for the zapstack exception hierarchy.

Tests verify:
- issubclass relationships match the documented tree
- except clauses catch the expected subclasses
- errors carrying relay data expose it as attributes
"""

import pytest

from zapstack.core.exceptions import (
    ConfigurationError,
    ConnectionClosedError,
    InvalidInputError,
    MalformedEventError,
    NotConnectedError,
    NotFoundError,
    ProtocolError,
    PublishRejectedError,
    RelayTimeoutError,
    SubscriptionClosedError,
    TransportError,
    ZapstackError,
)


DIRECT_CHILDREN = (
    ConfigurationError,
    InvalidInputError,
    NotFoundError,
    MalformedEventError,
    ProtocolError,
    TransportError,
)

TRANSPORT_CHILDREN = (
    NotConnectedError,
    ConnectionClosedError,
    SubscriptionClosedError,
    RelayTimeoutError,
    PublishRejectedError,
)


# =============================================================================
# Hierarchy Tests
# =============================================================================


class TestExceptionHierarchy:
    """Verify issubclass relationships match the documented tree."""

    @pytest.mark.parametrize("exc_cls", DIRECT_CHILDREN + TRANSPORT_CHILDREN)
    def test_all_inherit_from_zapstack_error(self, exc_cls: type) -> None:
        assert issubclass(exc_cls, ZapstackError)

    @pytest.mark.parametrize("exc_cls", TRANSPORT_CHILDREN)
    def test_transport_children(self, exc_cls: type) -> None:
        assert issubclass(exc_cls, TransportError)

    @pytest.mark.parametrize("exc_cls", DIRECT_CHILDREN[:-1])
    def test_non_transport_errors_are_not_transport_errors(self, exc_cls: type) -> None:
        assert not issubclass(exc_cls, TransportError)

    def test_malformed_is_not_not_found(self) -> None:
        assert not issubclass(MalformedEventError, NotFoundError)
        assert not issubclass(NotFoundError, MalformedEventError)


class TestExceptionCatching:
    """Verify except clauses catch the expected subclasses."""

    def test_transport_error_catches_publish_rejected(self) -> None:
        with pytest.raises(TransportError):
            raise PublishRejectedError("ab" * 32, "blocked: spam")

    def test_zapstack_error_catches_everything(self) -> None:
        for exc_cls in (ConfigurationError, NotFoundError, RelayTimeoutError):
            with pytest.raises(ZapstackError):
                raise exc_cls("boom")


# =============================================================================
# Attribute Tests
# =============================================================================


class TestPublishRejectedError:
    def test_attributes(self) -> None:
        err = PublishRejectedError("ab" * 32, "blocked: spam")
        assert err.event_id == "ab" * 32
        assert err.reason == "blocked: spam"

    def test_message_contains_reason(self) -> None:
        err = PublishRejectedError("ff" * 32, "pow: difficulty 20 required")
        assert "pow: difficulty 20 required" in str(err)
        assert "ff" * 32 in str(err)


class TestSubscriptionClosedError:
    def test_attributes(self) -> None:
        err = SubscriptionClosedError("zs1", "auth-required: sign in")
        assert err.subscription_id == "zs1"
        assert err.reason == "auth-required: sign in"
        assert "zs1" in str(err)
