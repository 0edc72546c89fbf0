# src/tasklist/core/timers.py

from __future__ import annotations

"""
Timer abstraction.

- AsyncioTimerFactory: one-shot callbacks on the running asyncio loop.
- Debouncer: coalesces pushed values; only the latest one is delivered once
  the window elapses with no further pushes.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Generic, TypeVar

from .ports import Cancellable, TimerFactory

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncioTimerFactory:
    """TimerFactory backed by loop.call_later (returns asyncio.TimerHandle)."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(0.0, float(delay)), callback)


class Debouncer(Generic[T]):
    """
    Single-channel debounce.

    push(value) stores the value and restarts the window. When the window
    elapses, the callback receives the last pushed value. At most one timer
    is pending at a time.
    """

    def __init__(
        self,
        timers: TimerFactory,
        delay: float,
        callback: Callable[[T], None],
    ) -> None:
        self._timers = timers
        self._delay = max(0.0, float(delay))
        self._callback = callback
        self._handle: Cancellable | None = None
        self._value: T | None = None
        self._has_value = False

    @property
    def pending(self) -> bool:
        return self._has_value

    @property
    def delay(self) -> float:
        return self._delay

    def push(self, value: T) -> None:
        self._value = value
        self._has_value = True
        if self._handle is not None:
            self._handle.cancel()
        self._handle = self._timers.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        """Drop the pending value without delivering it."""
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._value = None
        self._has_value = False

    def flush(self) -> None:
        """Deliver the pending value now (no-op if nothing is pending)."""
        if self._handle is not None:
            self._handle.cancel()
        self._fire()

    def _fire(self) -> None:
        self._handle = None
        if not self._has_value:
            return
        value = self._value
        self._value = None
        self._has_value = False
        try:
            self._callback(value)  # type: ignore[arg-type]
        except Exception:
            # Runs from a timer callback: nobody upstream to propagate to.
            logger.exception("Debounced callback failed")
