"""Utility helpers shared across packages."""

from flexlm_options.utils.scheduling import (
    Debouncer,
    TimerFactory,
    TimerHandle,
    asyncio_timer_factory,
    threading_timer_factory,
)

__all__ = [
    "Debouncer",
    "TimerFactory",
    "TimerHandle",
    "asyncio_timer_factory",
    "threading_timer_factory",
]
