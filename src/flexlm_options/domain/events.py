"""Typed publish/subscribe channels for document and session notifications."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Generic, TypeVar

import structlog

if TYPE_CHECKING:
    from flexlm_options.domain.models import Directive

T = TypeVar("T")

Subscriber = Callable[[T], None]
Disposer = Callable[[], None]

logger = structlog.get_logger(__name__)


class ChangeKind(StrEnum):
    """Which store mutation produced a change notification."""

    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"
    MOVE = "move"
    CLEAR = "clear"
    REPLACE_ALL = "replace_all"


@dataclass(frozen=True, slots=True)
class DocumentChange:
    """One mutation of an options document; ``directive`` is absent for bulk kinds."""

    kind: ChangeKind
    directive: Directive | None = None


class EventChannel(Generic[T]):
    """Synchronous fan-out of one payload type to subscribed callbacks.

    ``subscribe`` returns a disposer; calling it more than once is harmless.
    Subscribers run in subscription order. A subscriber that raises is logged
    and skipped so a faulty listener cannot block the others.
    """

    __slots__ = ("_lock", "_name", "_next_token", "_subscribers")

    def __init__(self, name: str) -> None:
        self._name = name
        self._subscribers: dict[int, Subscriber[T]] = {}
        self._next_token = 1
        self._lock = threading.RLock()

    @property
    def name(self) -> str:
        return self._name

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self, callback: Subscriber[T]) -> Disposer:
        if not callable(callback):
            raise ValueError("callback must be callable")
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._subscribers[token] = callback

        def dispose() -> None:
            with self._lock:
                self._subscribers.pop(token, None)

        return dispose

    def publish(self, payload: T) -> int:
        """Deliver ``payload`` to every subscriber; returns how many raised."""

        with self._lock:
            callbacks = tuple(self._subscribers.values())
        failures = 0
        for callback in callbacks:
            try:
                callback(payload)
            except Exception as exc:  # noqa: BLE001 - isolate faulty subscribers.
                failures += 1
                logger.warning(
                    "event_subscriber_failed",
                    channel=self._name,
                    callback=getattr(callback, "__qualname__", repr(callback)),
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
        return failures


__all__ = ["ChangeKind", "Disposer", "DocumentChange", "EventChannel", "Subscriber"]
