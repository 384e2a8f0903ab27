"""In-memory Nostr relay for transport, session and forum tests.

``FakeRelay.connect`` has the ``(url, timeout) -> websocket`` signature that
``RelayTransport`` accepts as its connector. Each connection gets a
``FakeWebSocket`` whose frames are handled synchronously by the relay:

- ``EVENT``: stored, ``OK true`` (or ``OK false`` with ``reject_reason``),
  and fanned out to live subscriptions on every socket.
- ``REQ``: stored events matching any filter (newest first, honoring
  ``limit``), then ``EOSE``; the subscription stays live until ``CLOSE``.
- ``CLOSE``: removes the subscription.

Switches (``auto_ok``, ``auto_eose``, ``closed_reason``) hold back or replace
responses so tests can drive timeouts and relay-side closes.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import aiohttp

from zapstack.models.event import Event
from zapstack.models.filter import Filter


def filter_from_wire(wire: dict[str, Any]) -> Filter:
    return Filter(
        kinds=wire.get("kinds"),
        ids=wire.get("ids"),
        authors=wire.get("authors"),
        tags={key[1:]: values for key, values in wire.items() if key.startswith("#")},
        limit=wire.get("limit"),
    )


class FakeWebSocket:
    """WebSocket double driven by a ``FakeRelay``."""

    def __init__(self, relay: FakeRelay, url: str) -> None:
        self.relay = relay
        self.url = url
        self.sent: list[list[Any]] = []
        self.subscriptions: dict[str, list[Filter]] = {}
        self.closed = False
        self._incoming: list[aiohttp.WSMessage] = []
        self._waiter: Any = None

    # -- WebSocketLike -------------------------------------------------------

    async def send_str(self, data: str) -> None:
        if self.closed:
            raise ConnectionResetError("socket is closed")
        frame = json.loads(data)
        self.sent.append(frame)
        self.relay.handle(self, frame)

    async def receive(self) -> aiohttp.WSMessage:
        while not self._incoming:
            self._waiter = asyncio.get_running_loop().create_future()
            await self._waiter
        return self._incoming.pop(0)

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._put(aiohttp.WSMessage(aiohttp.WSMsgType.CLOSED, None, None))

    # -- Test controls -------------------------------------------------------

    def _put(self, message: aiohttp.WSMessage) -> None:
        self._incoming.append(message)
        if self._waiter is not None and not self._waiter.done():
            self._waiter.set_result(None)

    def push(self, frame: list[Any]) -> None:
        """Deliver ``frame`` to the client as a text message."""
        self.push_text(json.dumps(frame))

    def push_text(self, text: str) -> None:
        self._put(aiohttp.WSMessage(aiohttp.WSMsgType.TEXT, text, None))

    def drop(self, *, error: bool = False) -> None:
        """Simulate the relay going away, cleanly or with a socket error."""
        self.closed = True
        if error:
            self._put(aiohttp.WSMessage(aiohttp.WSMsgType.ERROR, ConnectionResetError("reset"), None))
        else:
            self._put(aiohttp.WSMessage(aiohttp.WSMsgType.CLOSE, 1000, None))

    def frames(self, kind: str) -> list[list[Any]]:
        """Return the client frames of type ``kind`` sent on this socket."""
        return [frame for frame in self.sent if frame[0] == kind]


class FakeRelay:
    """Minimal relay: stores events and answers queries in memory."""

    def __init__(self) -> None:
        self.events: list[Event] = []
        self.sockets: list[FakeWebSocket] = []
        self.auto_ok = True
        self.auto_eose = True
        self.reject_reason: str | None = None
        self.closed_reason: str | None = None
        self.fail_connect: Exception | None = None

    @property
    def socket(self) -> FakeWebSocket:
        """The most recently opened socket."""
        return self.sockets[-1]

    async def connect(self, url: str, timeout: float) -> FakeWebSocket:  # noqa: ASYNC109
        if self.fail_connect is not None:
            raise self.fail_connect
        socket = FakeWebSocket(self, url)
        self.sockets.append(socket)
        return socket

    def store(self, *events: Event) -> None:
        self.events.extend(events)

    def query(self, filters: list[Filter]) -> list[Event]:
        results: list[Event] = []
        for f in filters:
            matched = sorted(
                (e for e in self.events if f.matches(e)),
                key=lambda e: e.created_at,
                reverse=True,
            )
            if f.limit is not None:
                matched = matched[: f.limit]
            results.extend(matched)
        return results

    def handle(self, socket: FakeWebSocket, frame: list[Any]) -> None:
        kind = frame[0]
        if kind == "EVENT":
            event = Event.from_dict(frame[1])
            if self.reject_reason is not None:
                socket.push(["OK", event.id, False, self.reject_reason])
                return
            self.events.append(event)
            if self.auto_ok:
                socket.push(["OK", event.id, True, ""])
            self._fan_out(event)
        elif kind == "REQ":
            sub_id, wire_filters = frame[1], frame[2:]
            if self.closed_reason is not None:
                socket.push(["CLOSED", sub_id, self.closed_reason])
                return
            filters = [filter_from_wire(w) for w in wire_filters]
            socket.subscriptions[sub_id] = filters
            for event in self.query(filters):
                socket.push(["EVENT", sub_id, event.to_dict()])
            if self.auto_eose:
                socket.push(["EOSE", sub_id])
        elif kind == "CLOSE":
            socket.subscriptions.pop(frame[1], None)

    def _fan_out(self, event: Event) -> None:
        for socket in self.sockets:
            if socket.closed:
                continue
            for sub_id, filters in list(socket.subscriptions.items()):
                if any(f.matches(event) for f in filters):
                    socket.push(["EVENT", sub_id, event.to_dict()])

    def deliver(self, event: Event) -> None:
        """Inject ``event`` as if another client had published it."""
        self.events.append(event)
        self._fan_out(event)
