# src/tasklist/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage/timers/UI geometry swappable and makes testing easier.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol


class KeyValueStorage(Protocol):
    """
    Raw persistence primitive: synchronous get/set of a string blob per key.

    get() returns None when nothing is stored under the key.
    """

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class TimerFactory(Protocol):
    """Schedules a one-shot callback `delay` seconds from now."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


@dataclass(frozen=True, slots=True)
class TrackBounds:
    """Horizontal bounding box of a progress track, in pointer coordinates."""

    left: float
    width: float


# UI-layer supplied: returns the current track box (None if the track is not laid out).
TrackGeometry = Callable[[], TrackBounds | None]
