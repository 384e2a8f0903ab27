"""Session: one identity, one relay connection, two observable values.

A [Session][zapstack.services.session.Session] is created explicitly and
passed to whatever needs the relay, instead of living in process-wide
state. It owns a [RelayTransport][zapstack.utils.transport.RelayTransport]
and exposes:

* ``connected``, a [BehaviorValue][zapstack.core.observable.BehaviorValue]
  of ``bool`` that follows the current connection only, and
* ``logged_in_user``, a [ReplayValue][zapstack.core.observable.ReplayValue]
  of [Profile][zapstack.nips.content.Profile] that replays the latest
  profile of the session identity to late subscribers.

Examples:
    ```python
    keys = KeysConfig()  # reads PRIVATE_KEY
    async with Session(keys, SessionConfig()) as session:
        session.connected.value        # True
        session.logged_in_user.value   # Profile or None if none was published
    ```
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from zapstack.core.exceptions import MalformedEventError, NotFoundError, TransportError
from zapstack.core.logger import Logger
from zapstack.core.observable import BehaviorValue, ReplayValue
from zapstack.models.constants import EventKind
from zapstack.models.filter import Filter
from zapstack.nips.content import Profile, parse_profile
from zapstack.nips.nip01 import sign_event
from zapstack.utils.transport import ConnectionState, RelayTransport

from .configs import SessionConfig


if TYPE_CHECKING:
    from zapstack.models.event import Event, EventTemplate
    from zapstack.utils.keys import KeyManager


class Session:
    """Identity plus relay connection shared by all forum operations.

    Args:
        key_manager: Source of the signing identity.
        config: Relay URL and transport settings.
        transport: Pre-built transport, mainly for tests. Defaults to a
            transport configured from ``config.transport``.

    Attributes:
        connected: ``True`` while the current connection is live.
        logged_in_user: Latest profile of the session identity.
    """

    def __init__(
        self,
        key_manager: KeyManager,
        config: SessionConfig | None = None,
        *,
        transport: RelayTransport | None = None,
    ) -> None:
        self._key_manager = key_manager
        self._config = config or SessionConfig()
        self._transport = transport or RelayTransport(self._config.transport)
        self._logger = Logger("session").bind(pubkey=self._key_manager.public_key())

        self.connected: BehaviorValue[bool] = BehaviorValue(False)
        self.logged_in_user: ReplayValue[Profile] = ReplayValue()
        self._transport.state.subscribe(self._on_state_change)

    def _on_state_change(self, state: ConnectionState) -> None:
        self.connected.set(state == ConnectionState.CONNECTED)

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def transport(self) -> RelayTransport:
        return self._transport

    @property
    def relay_url(self) -> str:
        """URL of the live connection, or the configured URL when disconnected."""
        return self._transport.url or self._config.relay_url

    @property
    def public_key(self) -> str:
        return self._key_manager.public_key()

    async def __aenter__(self) -> Session:
        await self.connect()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    async def connect(self, url: str | None = None) -> None:
        """Connect to ``url`` (default: the configured relay) and load the profile.

        A missing or malformed profile, or a profile query the relay refuses
        or loses, is logged and leaves ``logged_in_user`` untouched. The
        connection state is reported by ``connected`` either way.

        Raises:
            TransportError: If the connection cannot be established.
        """
        target = url or self._config.relay_url
        await self._transport.connect(target)
        self._logger.info("session_connected", relay=target)
        try:
            await self.load_profile()
        except NotFoundError:
            self._logger.info("profile_not_found")
        except MalformedEventError as e:
            self._logger.warning("profile_malformed", error=str(e))
        except TransportError as e:
            self._logger.warning(
                "profile_query_failed", error=str(e), connected=self.connected.value
            )

    async def load_profile(self) -> Profile:
        """Query the session identity's profile and emit it on ``logged_in_user``.

        Raises:
            NotFoundError: If the identity has no profile on the relay.
            MalformedEventError: If the profile content is not valid JSON.
        """
        event = await self._transport.get_one(
            Filter(kinds=[EventKind.PROFILE], authors=[self.public_key], limit=1)
        )
        profile = parse_profile(event)
        self.logged_in_user.emit(profile)
        return profile

    def sign(self, template: EventTemplate) -> Event:
        """Sign ``template`` with the session identity."""
        return sign_event(template, self._key_manager.private_key())

    async def publish(self, template: EventTemplate) -> str:
        """Sign and publish ``template``; return the accepted event id."""
        event = self.sign(template)
        event_id = await self._transport.publish(event)
        self._logger.debug("event_published", event_id=event_id, kind=event.kind)
        return event_id

    async def close(self) -> None:
        """Disconnect from the relay."""
        await self._transport.disconnect()
        self._logger.info("session_closed")
