"""Relay transport: one persistent WebSocket to one Nostr relay.

[RelayTransport][zapstack.utils.transport.RelayTransport] owns the socket and a
single reader task that dispatches every incoming frame. Operations are
correlated with their responses by token, never by arrival order:

* ``publish()`` waits for the ``OK`` frame carrying the event id.
* ``list()`` waits for the ``EOSE`` frame carrying its subscription id, then
  sends ``CLOSE``.
* ``subscribe()`` keeps delivering events for its subscription id until the
  returned [Subscription][zapstack.utils.transport.Subscription] is closed.

Connection state is published through ``RelayTransport.state``, a
[BehaviorValue][zapstack.core.observable.BehaviorValue] of
[ConnectionState][zapstack.utils.transport.ConnectionState]. Only the
current connection drives it: a reader that belongs to a replaced
connection never touches the state.

Note:
    Timeouts are opt-in. With the defaults, ``publish()`` waits until the
    relay answers or the connection goes away, and ``list()`` waits for
    ``EOSE`` the same way. Losing the connection fails every pending
    operation with
    [ConnectionClosedError][zapstack.core.exceptions.ConnectionClosedError]
    and ends every live subscription. Nothing is retried.

See Also:
    [zapstack.utils.protocol][]: Frame encoding and decoding.
    [zapstack.services.session.Session][zapstack.services.session.Session]:
        Owns one transport and maps its state to ``connected``.

Examples:
    ```python
    transport = RelayTransport(TransportConfig(eose_timeout=3.0))
    await transport.connect("wss://relay.damus.io")
    events = await transport.list([Filter(kinds=[40], tags={"t": ["zapstack_test"]})])
    await transport.disconnect()
    ```
"""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import logging
from collections.abc import Awaitable, Callable, Sequence
from enum import StrEnum
from typing import Any, Protocol

import aiohttp
from pydantic import BaseModel, Field

from zapstack.core.exceptions import (
    ConnectionClosedError,
    NotConnectedError,
    NotFoundError,
    ProtocolError,
    PublishRejectedError,
    RelayTimeoutError,
    SubscriptionClosedError,
    TransportError,
)
from zapstack.core.observable import BehaviorValue
from zapstack.models.event import Event  # noqa: TC001
from zapstack.models.filter import Filter  # noqa: TC001
from zapstack.nips.nip01 import verify_event

from .protocol import (
    RelayClosed,
    RelayEose,
    RelayEvent,
    RelayNotice,
    RelayOk,
    encode_close,
    encode_event,
    encode_req,
    parse_relay_message,
)


logger = logging.getLogger(__name__)


class ConnectionState(StrEnum):
    """Lifecycle of the relay connection.

    ``ERRORED`` is transient: it is published when a connection attempt or a
    live connection fails, immediately followed by ``DISCONNECTED``.
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERRORED = "errored"


class TransportConfig(BaseModel):
    """Timeouts and validation settings for [RelayTransport][zapstack.utils.transport.RelayTransport].

    Attributes:
        connect_timeout: Seconds allowed for the WebSocket handshake.
        close_timeout: Seconds allowed for closing the socket on teardown.
        publish_timeout: Seconds to wait for ``OK``; ``None`` waits indefinitely.
        eose_timeout: Seconds to wait for ``EOSE``; on expiry ``list()``
            returns the events collected so far. ``None`` waits indefinitely.
        verify_signatures: Drop incoming events whose id or signature is invalid.
    """

    connect_timeout: float = Field(default=10.0, gt=0, description="WebSocket handshake timeout")
    close_timeout: float = Field(default=5.0, gt=0, description="Socket close timeout")
    publish_timeout: float | None = Field(default=None, gt=0, description="OK wait timeout")
    eose_timeout: float | None = Field(default=None, gt=0, description="EOSE wait timeout")
    verify_signatures: bool = Field(default=True, description="Verify incoming event signatures")


# =============================================================================
# WebSocket adapters
# =============================================================================


class WebSocketLike(Protocol):
    """The subset of ``aiohttp.ClientWebSocketResponse`` the transport uses."""

    async def send_str(self, data: str) -> None: ...

    async def receive(self) -> aiohttp.WSMessage: ...

    async def close(self) -> Any: ...


WebSocketConnector = Callable[[str, float], Awaitable[WebSocketLike]]


class AiohttpWebSocket:
    """aiohttp WebSocket bundled with the session that owns it.

    Closing the adapter closes both, so a connection never leaks its
    ``ClientSession``.
    """

    def __init__(self, ws: aiohttp.ClientWebSocketResponse, session: aiohttp.ClientSession) -> None:
        self._ws = ws
        self._session = session

    async def send_str(self, data: str) -> None:
        await self._ws.send_str(data)

    async def receive(self) -> aiohttp.WSMessage:
        return await self._ws.receive()

    async def close(self) -> None:
        try:
            await self._ws.close()
        finally:
            await self._session.close()


async def aiohttp_connect(url: str, timeout: float) -> AiohttpWebSocket:  # noqa: ASYNC109
    """Open a WebSocket to ``url`` with aiohttp.

    Raises:
        TransportError: If the handshake fails.
    """
    session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout))
    try:
        ws = await session.ws_connect(url)
    except asyncio.CancelledError:
        await session.close()
        raise
    except (aiohttp.ClientError, OSError, TimeoutError) as e:
        await session.close()
        logger.debug("ws_connect_failed url=%s error=%s", url, e)
        raise TransportError(f"connection to {url} failed: {e}") from e
    return AiohttpWebSocket(ws, session)


# =============================================================================
# Pending operations
# =============================================================================


class _Query:
    """Events collected for one ``list()`` call until ``EOSE``."""

    __slots__ = ("closed_by_relay", "done", "events")

    def __init__(self, done: asyncio.Future[None]) -> None:
        self.done = done
        self.events: list[Event] = []
        self.closed_by_relay = False

    def finish(self) -> None:
        if not self.done.done():
            self.done.set_result(None)

    def fail(self, error: Exception) -> None:
        if not self.done.done():
            self.done.set_exception(error)


class Subscription:
    """Handle for a long-lived query opened by ``RelayTransport.subscribe()``.

    ``cancel()`` is synchronous: once it returns, the callback is never
    invoked again, even for frames the reader has already received. ``close()``
    additionally tells the relay with a ``CLOSE`` frame.

    The subscription also ends when the relay sends ``CLOSED`` or the
    connection is lost; ``on_error`` (if given) is then called once with
    the corresponding [TransportError][zapstack.core.exceptions.TransportError].
    """

    def __init__(
        self,
        transport: RelayTransport,
        connection: _Connection,
        subscription_id: str,
        on_event: Callable[[Event], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        self._transport = transport
        self._connection = connection
        self._on_event = on_event
        self._on_error = on_error
        self._active = True
        self.subscription_id = subscription_id

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        """Stop delivering events. Safe to call more than once."""
        self._active = False
        self._connection.subscriptions.pop(self.subscription_id, None)

    async def close(self) -> None:
        """Cancel and send ``CLOSE`` to the relay if the connection is still live."""
        was_active = self._active
        self.cancel()
        if was_active and not self._connection.closed:
            await self._transport._send_close(self._connection, self.subscription_id)

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    def _deliver(self, event: Event) -> None:
        if not self._active:
            return
        try:
            self._on_event(event)
        except Exception:  # Intentionally broad: a faulty callback must not kill the reader
            logger.exception("subscription_callback_failed subscription_id=%s", self.subscription_id)

    def _end(self, error: Exception) -> None:
        if not self._active:
            return
        self.cancel()
        if self._on_error is not None:
            try:
                self._on_error(error)
            except Exception:  # Intentionally broad: same isolation as _deliver
                logger.exception(
                    "subscription_error_callback_failed subscription_id=%s", self.subscription_id
                )


class _Connection:
    """One live socket and the operations waiting on it."""

    def __init__(self, url: str, ws: WebSocketLike) -> None:
        self.url = url
        self.ws = ws
        self.closed = False
        self.reader: asyncio.Task[None] | None = None
        self.publishes: dict[str, list[asyncio.Future[str]]] = {}
        self.queries: dict[str, _Query] = {}
        self.subscriptions: dict[str, Subscription] = {}

    def fail_pending(self, error_factory: Callable[[], Exception]) -> None:
        for futures in self.publishes.values():
            for future in futures:
                if not future.done():
                    future.set_exception(error_factory())
        for query in self.queries.values():
            query.fail(error_factory())
        for subscription in list(self.subscriptions.values()):
            subscription._end(error_factory())
        self.publishes.clear()
        self.queries.clear()
        self.subscriptions.clear()


# =============================================================================
# Transport
# =============================================================================


class RelayTransport:
    """Multiplexes publish and query operations over one relay connection.

    Args:
        config: Timeouts and validation settings.
        connector: Coroutine function ``(url, timeout) -> websocket``. Defaults
            to [aiohttp_connect][zapstack.utils.transport.aiohttp_connect].

    Attributes:
        state: Current [ConnectionState][zapstack.utils.transport.ConnectionState].
    """

    def __init__(
        self,
        config: TransportConfig | None = None,
        *,
        connector: WebSocketConnector | None = None,
    ) -> None:
        self._config = config or TransportConfig()
        self._connector: WebSocketConnector = connector or aiohttp_connect
        self._connection: _Connection | None = None
        self._lock = asyncio.Lock()
        self._ids = itertools.count(1)
        self.state: BehaviorValue[ConnectionState] = BehaviorValue(ConnectionState.DISCONNECTED)

    @property
    def config(self) -> TransportConfig:
        return self._config

    @property
    def url(self) -> str | None:
        """URL of the live connection, or ``None``."""
        return self._connection.url if self._connection is not None else None

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    async def __aenter__(self) -> RelayTransport:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.disconnect()

    # -- Lifecycle -----------------------------------------------------------

    async def connect(self, url: str) -> None:
        """Connect to ``url``, replacing any existing connection.

        Concurrent calls are serialized. The previous connection is closed,
        and its pending operations failed, before the new one is opened.

        Raises:
            RelayTimeoutError: If the handshake exceeds ``connect_timeout``.
            TransportError: If the handshake fails.
        """
        async with self._lock:
            await self._close_current()
            self.state.set(ConnectionState.CONNECTING)
            timeout = self._config.connect_timeout
            try:
                ws = await asyncio.wait_for(self._connector(url, timeout), timeout=timeout)
            except asyncio.CancelledError:
                self.state.set(ConnectionState.DISCONNECTED)
                raise
            except TimeoutError as e:
                self._connect_failed(url, e)
                raise RelayTimeoutError(f"connection to {url} timed out after {timeout}s") from e
            except TransportError as e:
                self._connect_failed(url, e)
                raise
            except (aiohttp.ClientError, OSError) as e:
                self._connect_failed(url, e)
                raise TransportError(f"connection to {url} failed: {e}") from e

            connection = _Connection(url, ws)
            connection.reader = asyncio.create_task(self._read_loop(connection))
            self._connection = connection
            self.state.set(ConnectionState.CONNECTED)
            logger.info("relay_connected url=%s", url)

    def _connect_failed(self, url: str, error: BaseException) -> None:
        logger.warning("relay_connect_failed url=%s error=%s", url, error)
        self.state.set(ConnectionState.ERRORED)
        self.state.set(ConnectionState.DISCONNECTED)

    async def disconnect(self) -> None:
        """Close the connection. Pending operations fail with ``ConnectionClosedError``."""
        async with self._lock:
            await self._close_current()

    async def _close_current(self) -> None:
        connection = self._connection
        if connection is None:
            return
        self._connection = None
        connection.closed = True
        connection.fail_pending(
            lambda: ConnectionClosedError(f"connection to {connection.url} was closed")
        )

        reader = connection.reader
        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader
        await self._close_socket(connection)
        self.state.set(ConnectionState.DISCONNECTED)
        logger.info("relay_disconnected url=%s", connection.url)

    async def _close_socket(self, connection: _Connection) -> None:
        # aiohttp can raise ClientError, ServerDisconnectedError, etc. during
        # close; teardown must complete regardless.
        with contextlib.suppress(Exception):
            await asyncio.wait_for(connection.ws.close(), timeout=self._config.close_timeout)

    async def _connection_lost(self, connection: _Connection, *, errored: bool) -> None:
        if connection.closed:
            return
        connection.closed = True
        connection.fail_pending(
            lambda: ConnectionClosedError(f"connection to {connection.url} was lost")
        )
        if self._connection is connection:
            self._connection = None
            if errored:
                self.state.set(ConnectionState.ERRORED)
            self.state.set(ConnectionState.DISCONNECTED)
        logger.warning("relay_connection_lost url=%s errored=%s", connection.url, errored)
        await self._close_socket(connection)

    # -- Reader --------------------------------------------------------------

    async def _read_loop(self, connection: _Connection) -> None:
        errored = False
        try:
            while True:
                message = await connection.ws.receive()
                if message.type == aiohttp.WSMsgType.TEXT:
                    self._dispatch(connection, message.data)
                elif message.type == aiohttp.WSMsgType.ERROR:
                    logger.warning("relay_socket_error url=%s error=%s", connection.url, message.data)
                    errored = True
                    break
                elif message.type in (
                    aiohttp.WSMsgType.CLOSE,
                    aiohttp.WSMsgType.CLOSING,
                    aiohttp.WSMsgType.CLOSED,
                ):
                    break
        except (aiohttp.ClientError, OSError) as e:
            logger.warning("relay_read_failed url=%s error=%s", connection.url, e)
            errored = True
        await self._connection_lost(connection, errored=errored)

    def _dispatch(self, connection: _Connection, text: str) -> None:
        try:
            message = parse_relay_message(text)
        except ProtocolError as e:
            logger.warning("relay_frame_invalid url=%s error=%s", connection.url, e)
            return

        if isinstance(message, RelayEvent):
            self._dispatch_event(connection, message)
        elif isinstance(message, RelayEose):
            query = connection.queries.get(message.subscription_id)
            if query is not None:
                query.finish()
        elif isinstance(message, RelayOk):
            futures = [f for f in connection.publishes.get(message.event_id, ()) if not f.done()]
            if not futures:
                logger.debug("ok_for_unknown_event event_id=%s", message.event_id)
            for future in futures:
                if message.accepted:
                    future.set_result(message.event_id)
                else:
                    future.set_exception(PublishRejectedError(message.event_id, message.message))
        elif isinstance(message, RelayClosed):
            error = SubscriptionClosedError(message.subscription_id, message.reason)
            logger.warning(
                "subscription_closed_by_relay subscription_id=%s reason=%s",
                message.subscription_id,
                message.reason,
            )
            query = connection.queries.get(message.subscription_id)
            if query is not None:
                query.closed_by_relay = True
                query.fail(error)
            subscription = connection.subscriptions.get(message.subscription_id)
            if subscription is not None:
                subscription._end(error)
        elif isinstance(message, RelayNotice):
            logger.info("notice_received url=%s message=%s", connection.url, message.message)

    def _dispatch_event(self, connection: _Connection, message: RelayEvent) -> None:
        query = connection.queries.get(message.subscription_id)
        subscription = connection.subscriptions.get(message.subscription_id)
        if query is None and subscription is None:
            logger.debug("event_for_unknown_subscription subscription_id=%s", message.subscription_id)
            return
        event = message.event
        if self._config.verify_signatures and not verify_event(event):
            logger.debug("invalid_event_signature event_id=%s", event.id)
            return
        if query is not None:
            if not query.done.done():
                query.events.append(event)
        elif subscription is not None:
            subscription._deliver(event)

    # -- Requests ------------------------------------------------------------

    def _require_connection(self) -> _Connection:
        if self._connection is None:
            raise NotConnectedError("not connected to a relay")
        return self._connection

    def _next_subscription_id(self) -> str:
        return f"zs{next(self._ids)}"

    async def _send(self, connection: _Connection, frame: str) -> None:
        try:
            await connection.ws.send_str(frame)
        except (aiohttp.ClientError, ConnectionError) as e:
            raise ConnectionClosedError(f"sending to {connection.url} failed: {e}") from e

    async def _send_close(self, connection: _Connection, subscription_id: str) -> None:
        try:
            await self._send(connection, encode_close(subscription_id))
        except ConnectionClosedError as e:
            logger.debug("close_frame_not_sent subscription_id=%s error=%s", subscription_id, e)

    async def publish(self, event: Event) -> str:
        """Publish ``event`` and wait for the relay's verdict.

        Returns:
            The event id once the relay accepts it.

        Raises:
            NotConnectedError: If there is no live connection.
            PublishRejectedError: If the relay answers ``OK false``.
            RelayTimeoutError: If ``publish_timeout`` expires first.
            ConnectionClosedError: If the connection goes away first.
        """
        connection = self._require_connection()
        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        connection.publishes.setdefault(event.id, []).append(future)
        try:
            await self._send(connection, encode_event(event))
            try:
                await asyncio.wait_for(future, timeout=self._config.publish_timeout)
            except TimeoutError:
                raise RelayTimeoutError(
                    f"no OK for event {event.id} within {self._config.publish_timeout}s"
                ) from None
        except PublishRejectedError as e:
            logger.warning("publish_rejected event_id=%s reason=%s", event.id, e.reason)
            raise
        finally:
            waiters = connection.publishes.get(event.id)
            if waiters is not None and future in waiters:
                waiters.remove(future)
                if not waiters:
                    del connection.publishes[event.id]
        logger.debug("publish_ok event_id=%s kind=%s", event.id, event.kind)
        return event.id

    async def list(self, filters: Sequence[Filter]) -> list[Event]:
        """Run a one-shot query and return the stored events the relay sends.

        Events are returned in arrival order, deduplicated by nothing:
        aggregation code handles duplicates.

        Raises:
            NotConnectedError: If there is no live connection.
            SubscriptionClosedError: If the relay answers ``CLOSED``.
            ConnectionClosedError: If the connection goes away first.
        """
        connection = self._require_connection()
        subscription_id = self._next_subscription_id()
        query = _Query(asyncio.get_running_loop().create_future())
        connection.queries[subscription_id] = query
        try:
            await self._send(connection, encode_req(subscription_id, filters))
            try:
                await asyncio.wait_for(query.done, timeout=self._config.eose_timeout)
            except TimeoutError:
                logger.warning(
                    "query_eose_timeout subscription_id=%s returned=%d",
                    subscription_id,
                    len(query.events),
                )
        finally:
            connection.queries.pop(subscription_id, None)
            if not connection.closed and not query.closed_by_relay:
                await self._send_close(connection, subscription_id)
        logger.debug(
            "query_completed subscription_id=%s events=%d", subscription_id, len(query.events)
        )
        return list(query.events)

    async def get_one(self, filter: Filter) -> Event:  # noqa: A002
        """Return the single event matching ``filter``.

        The query is sent with ``limit`` 1. If the relay returns more, the
        newest wins (greatest ``created_at``, then larger id).

        Raises:
            NotFoundError: If no event matches.
        """
        events = await self.list([filter.with_limit(1)])
        if not events:
            raise NotFoundError(f"no event matches {filter.to_wire()}")
        return max(events, key=lambda e: (e.created_at, e.id))

    async def subscribe(
        self,
        filters: Sequence[Filter],
        on_event: Callable[[Event], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Subscription:
        """Open a long-lived query; ``on_event`` is called for each matching event.

        Raises:
            NotConnectedError: If there is no live connection.
        """
        connection = self._require_connection()
        subscription_id = self._next_subscription_id()
        subscription = Subscription(self, connection, subscription_id, on_event, on_error)
        connection.subscriptions[subscription_id] = subscription
        try:
            await self._send(connection, encode_req(subscription_id, filters))
        except ConnectionClosedError:
            subscription.cancel()
            raise
        logger.debug("subscription_opened subscription_id=%s", subscription_id)
        return subscription
