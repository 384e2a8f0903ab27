"""
Pytest configuration and shared fixtures for zapstack tests.

Provides:
- Deterministic test keys and a signing helper for real, verifiable events
- An in-memory relay (``fixtures.relay.FakeRelay``) wired into the transport
- Connected transport, session and forum fixtures
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Sequence

import pytest
from nostr_sdk import Keys

from fixtures.constants import NAMESPACE, OTHER_HEX_KEY, RELAY_URL, VALID_HEX_KEY
from fixtures.relay import FakeRelay
from zapstack.models.event import Event, EventTemplate
from zapstack.nips.nip01 import sign_event
from zapstack.services.configs import ForumConfig, SessionConfig
from zapstack.services.forum import Forum
from zapstack.services.session import Session
from zapstack.utils.keys import StaticKeyManager
from zapstack.utils.transport import RelayTransport, TransportConfig


Signer = Callable[..., Event]


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


# ============================================================================
# Keys and Events
# ============================================================================


@pytest.fixture
def keys() -> Keys:
    return Keys.parse(VALID_HEX_KEY)


@pytest.fixture
def other_keys() -> Keys:
    return Keys.parse(OTHER_HEX_KEY)


@pytest.fixture
def key_manager(keys: Keys) -> StaticKeyManager:
    return StaticKeyManager(keys)


@pytest.fixture
def sign(keys: Keys) -> Signer:
    """Return a helper that builds and signs an event with real keys."""

    def _sign(
        kind: int,
        tags: Sequence[Sequence[str]] = (),
        content: str = "",
        created_at: int = 1_700_000_000,
        signer: Keys | None = None,
    ) -> Event:
        template = EventTemplate(kind=kind, tags=tags, content=content, created_at=created_at)  # type: ignore[arg-type]
        return sign_event(template, signer or keys)

    return _sign


# ============================================================================
# Relay, Transport, Session, Forum
# ============================================================================


@pytest.fixture
def fake_relay() -> FakeRelay:
    return FakeRelay()


@pytest.fixture
def transport_config() -> TransportConfig:
    return TransportConfig()


@pytest.fixture
async def transport(
    fake_relay: FakeRelay, transport_config: TransportConfig
) -> AsyncIterator[RelayTransport]:
    """A transport connected to the fake relay."""
    transport = RelayTransport(transport_config, connector=fake_relay.connect)
    await transport.connect(RELAY_URL)
    yield transport
    await transport.disconnect()


@pytest.fixture
def session_config(transport_config: TransportConfig) -> SessionConfig:
    return SessionConfig(relay_url=RELAY_URL, transport=transport_config)


@pytest.fixture
async def session(
    fake_relay: FakeRelay,
    key_manager: StaticKeyManager,
    session_config: SessionConfig,
) -> AsyncIterator[Session]:
    """A session connected to the fake relay."""
    transport = RelayTransport(session_config.transport, connector=fake_relay.connect)
    session = Session(key_manager, session_config, transport=transport)
    await session.connect()
    yield session
    await session.close()


@pytest.fixture
def forum(session: Session) -> Forum:
    return Forum(session, ForumConfig(namespace=NAMESPACE))
