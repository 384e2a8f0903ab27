"""Push-based observable values exposed to the UI layer.

Two flavors cover what the [Session][zapstack.services.session.Session]
publishes:

* [BehaviorValue][zapstack.core.observable.BehaviorValue] always has a
  current value. New subscribers receive it immediately and are notified only
  when it changes. Used for relay connectivity.
* [ReplayValue][zapstack.core.observable.ReplayValue] starts empty and
  replays the most recent emission to late subscribers. Used for the
  logged-in profile.

Both support ``await wait_for(predicate)`` so asyncio code can block on a
state instead of registering a callback.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Generic, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


class Observable(Generic[T]):
    """Callback registry with replay support implemented by subclasses."""

    def __init__(self) -> None:
        self._callbacks: list[Callable[[T], None]] = []

    def _replay(self) -> tuple[bool, T | None]:
        """Return ``(has_value, value)`` for delivery to a new subscriber."""
        return False, None

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register ``callback`` and return a function that unregisters it.

        If the observable holds a value, the callback is invoked with it
        synchronously before this method returns.
        """
        self._callbacks.append(callback)
        has_value, value = self._replay()
        if has_value:
            self._notify_one(callback, value)  # type: ignore[arg-type]

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def _notify_one(self, callback: Callable[[T], None], value: T) -> None:
        try:
            callback(value)
        except Exception:  # Intentionally broad: one faulty subscriber must not starve the others
            logger.exception("observer_callback_failed callback=%r", callback)

    def _notify(self, value: T) -> None:
        for callback in list(self._callbacks):
            self._notify_one(callback, value)

    async def wait_for(self, predicate: Callable[[T], bool], timeout: float | None = None) -> T:  # noqa: ASYNC109
        """Wait until a value satisfying ``predicate`` is observed and return it.

        A held value that already satisfies the predicate returns immediately.

        Raises:
            TimeoutError: If ``timeout`` seconds elapse first.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[T] = loop.create_future()

        def check(value: T) -> None:
            if not future.done() and predicate(value):
                future.set_result(value)

        unsubscribe = self.subscribe(check)
        try:
            return await asyncio.wait_for(future, timeout=timeout)
        finally:
            unsubscribe()


class BehaviorValue(Observable[T]):
    """Observable that always holds a value and emits only on change."""

    def __init__(self, initial: T) -> None:
        super().__init__()
        self._value = initial

    @property
    def value(self) -> T:
        return self._value

    def _replay(self) -> tuple[bool, T | None]:
        return True, self._value

    def set(self, value: T) -> None:
        """Store ``value`` and notify subscribers if it differs from the current one."""
        if value == self._value:
            return
        self._value = value
        self._notify(value)


class ReplayValue(Observable[T]):
    """Observable that replays its most recent emission to late subscribers."""

    def __init__(self) -> None:
        super().__init__()
        self._has_value = False
        self._value: T | None = None

    @property
    def value(self) -> T | None:
        """The most recent emission, or ``None`` before the first one."""
        return self._value

    @property
    def has_value(self) -> bool:
        return self._has_value

    def _replay(self) -> tuple[bool, T | None]:
        return self._has_value, self._value

    def emit(self, value: T) -> None:
        """Store ``value`` and notify every subscriber."""
        self._value = value
        self._has_value = True
        self._notify(value)
