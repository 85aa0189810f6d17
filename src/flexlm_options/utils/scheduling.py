"""Coalescing (debounce) scheduler independent of any particular timer runtime."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from typing import Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


class Debouncer:
    """Collapse bursts of ``request()`` calls into a single deferred ``action`` run.

    Every request cancels the pending run and schedules a new one
    ``window_seconds`` later, so only the last request in a burst fires. The
    action takes no arguments and must read current state when it runs.

    Timer callbacks may arrive on another thread (``threading_timer_factory``);
    pending-state changes happen under a lock and the action runs outside it.
    """

    def __init__(
        self,
        action: Callable[[], None],
        window_seconds: float,
        timer_factory: TimerFactory,
    ) -> None:
        if window_seconds < 0:
            raise ValueError("window_seconds must be >= 0")
        self._action = action
        self._window = window_seconds
        self._timer_factory = timer_factory
        self._handle: TimerHandle | None = None
        self._generation = 0
        self._runs = 0
        self._lock = threading.RLock()

    @property
    def window_seconds(self) -> float:
        return self._window

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def runs(self) -> int:
        return self._runs

    def request(self) -> None:
        with self._lock:
            self._cancel_pending()
            self._generation += 1
            generation = self._generation
            self._handle = self._timer_factory(self._window, lambda: self._fire(generation))

    def flush(self) -> bool:
        """Run a pending action immediately; returns whether one was pending."""

        with self._lock:
            if self._handle is None:
                return False
            self._cancel_pending()
            self._runs += 1
        self._action()
        return True

    def cancel(self) -> None:
        with self._lock:
            self._cancel_pending()

    def _cancel_pending(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A timer that lost its cancel race must not run a superseded request.
            if generation != self._generation or self._handle is None:
                return
            self._handle = None
            self._runs += 1
        self._action()


def asyncio_timer_factory(loop: asyncio.AbstractEventLoop | None = None) -> TimerFactory:
    """Timer factory backed by ``loop.call_later`` (running loop when omitted)."""

    def schedule(delay: float, callback: Callable[[], None]) -> TimerHandle:
        target = loop if loop is not None else asyncio.get_running_loop()
        return target.call_later(delay, callback)

    return schedule


def threading_timer_factory() -> TimerFactory:
    """Timer factory backed by daemon ``threading.Timer`` instances."""

    def schedule(delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer

    return schedule


__all__ = [
    "Debouncer",
    "TimerFactory",
    "TimerHandle",
    "asyncio_timer_factory",
    "threading_timer_factory",
]
