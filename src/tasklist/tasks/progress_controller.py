# src/tasklist/tasks/progress_controller.py

from __future__ import annotations

"""
Progress controller (one per task row).

Two-stage state:
- display value: updated immediately on every drag / number input
- committed value: written to the TaskStore through a debounce channel
  (last value wins), or directly for done/undo and modal saves.

While a drag is in flight the display value is never overwritten by store
changes; otherwise it follows the store's progress whenever that changes.
"""

import logging
import math
import re
from collections.abc import Callable
from dataclasses import replace

from ..core.ports import TimerFactory, TrackGeometry
from ..core.timers import Debouncer
from .errors import PersistenceError
from .task_models import PROGRESS_MAX, ChangeKind, Task, TaskChange, clamp_progress, to_progress_int
from .task_store import TaskStore

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def parse_leading_int(raw: object) -> int | None:
    """
    Integer prefix of the input ("42abc" -> 42, "abc" -> None).

    Floats are truncated toward zero ("12.7" -> 12).
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else None
    m = _LEADING_INT_RE.match(str(raw))
    return int(m.group(1)) if m else None


class ProgressController:
    def __init__(
        self,
        store: TaskStore,
        task_id: int,
        *,
        timers: TimerFactory,
        track: TrackGeometry | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        on_drag_end: Callable[[int], None] | None = None,
    ) -> None:
        self._store = store
        self._task_id = task_id
        self._track = track
        self._on_drag_end = on_drag_end

        task = store.get(task_id)
        self._authoritative = task.progress if task is not None else 0
        self._display = float(self._authoritative)
        self._dragging = False
        self._closed = False

        self._debouncer: Debouncer[float] = Debouncer(timers, debounce_seconds, self._commit_progress)
        self._unsubscribe = store.subscribe_task(task_id, self._on_store_change)

    # ---- state ----

    @property
    def task_id(self) -> int:
        return self._task_id

    @property
    def display_value(self) -> float:
        return self._display

    @property
    def display_percent(self) -> int:
        return to_progress_int(self._display)

    @property
    def dragging(self) -> bool:
        return self._dragging

    @property
    def commit_pending(self) -> bool:
        return self._debouncer.pending

    def attach_track(self, track: TrackGeometry | None) -> None:
        """Swap the geometry source (e.g. after a layout / viewport change)."""
        self._track = track

    # ---- pointer drag ----

    def begin_drag(self, pointer_x: float) -> None:
        self._dragging = True
        value = self._value_from_pointer(pointer_x)
        if value is not None:
            self._update(value)

    def continue_drag(self, pointer_x: float) -> None:
        if not self._dragging:
            logger.debug("continue_drag ignored (not dragging) task_id=%s", self._task_id)
            return
        value = self._value_from_pointer(pointer_x)
        if value is not None:
            self._update(value)

    def end_drag(self) -> None:
        was_dragging, self._dragging = self._dragging, False
        if was_dragging and self._on_drag_end is not None:
            self._on_drag_end(self._task_id)

    # ---- number input ----

    def set_from_number_input(self, raw_value: object) -> None:
        if raw_value is None or (isinstance(raw_value, str) and raw_value.strip() == ""):
            # Empty field: show 0, commit nothing.
            self._display = 0.0
            return
        parsed = parse_leading_int(raw_value)
        if parsed is None:
            logger.debug("Ignoring non-numeric progress input %r task_id=%s", raw_value, self._task_id)
            return
        self._update(parsed)

    # ---- direct (non-debounced) commits ----

    def set_complete_flag(self, is_complete: bool) -> Task | None:
        """
        Done / Undo.

        Done: display 100, commit {completed: True, progress: 100}.
        Undo: display 0, commit {completed: False, progress: 100}; stored progress
        stays at 100 while the display shows 0.
        """
        self._debouncer.cancel()
        if is_complete:
            self._display = 100.0
            return self._commit_direct(completed=True, progress=100)
        self._display = 0.0
        return self._commit_direct(completed=False, progress=100)

    def set_from_modal_save(self, new_progress: float) -> Task | None:
        """Commit {completed: False, progress: new_progress} now, even at 100."""
        self._debouncer.cancel()
        progress = to_progress_int(new_progress)
        self._display = float(progress)
        return self._commit_direct(completed=False, progress=progress)

    # ---- lifecycle ----

    def flush(self) -> None:
        """Deliver a pending debounced commit immediately."""
        self._debouncer.flush()

    def close(self, *, flush: bool = True) -> None:
        if self._closed:
            return
        if flush:
            self._debouncer.flush()
        else:
            self._debouncer.cancel()
        self._unsubscribe()
        self._closed = True

    # ---- internals ----

    def _value_from_pointer(self, pointer_x: float) -> float | None:
        bounds = self._track() if self._track is not None else None
        if bounds is None or bounds.width <= 0:
            return None
        return (float(pointer_x) - bounds.left) / bounds.width * 100.0

    def _update(self, value: float) -> None:
        clamped = clamp_progress(value)
        self._display = clamped
        self._debouncer.push(clamped)

    def _commit_progress(self, value: float) -> None:
        task = self._store.get(self._task_id)
        if task is None:
            logger.debug("Dropping progress commit for deleted task_id=%s", self._task_id)
            return

        # Completion follows the clamped value, not the rounded one (99.6 stays open).
        clamped = clamp_progress(value)
        progress = to_progress_int(clamped)
        completed = task.completed
        if clamped == float(PROGRESS_MAX):
            completed = True
        elif task.completed:
            completed = False

        try:
            self._store.update(replace(task, progress=progress, completed=completed))
        except PersistenceError:
            logger.warning("Progress commit failed task_id=%s value=%s", self._task_id, progress)
            self._resync()

    def _commit_direct(self, *, completed: bool, progress: int) -> Task | None:
        task = self._store.get(self._task_id)
        if task is None:
            return None
        # The optimistic display stands; the change event must not overwrite it.
        self._authoritative = progress
        try:
            return self._store.update(replace(task, completed=completed, progress=progress))
        except PersistenceError:
            self._resync()
            raise

    def _resync(self) -> None:
        task = self._store.get(self._task_id)
        if task is not None:
            self._authoritative = task.progress
        if not self._dragging:
            self._display = float(self._authoritative)

    def _on_store_change(self, change: TaskChange) -> None:
        if change.kind == ChangeKind.REMOVED:
            self._debouncer.cancel()
            return
        if change.task.progress == self._authoritative:
            return
        self._authoritative = change.task.progress
        if not self._dragging:
            self._display = float(self._authoritative)
