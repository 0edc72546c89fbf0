# src/tasklist/tasks/list_reconciler.py

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from ..core.ports import TimerFactory, TrackGeometry
from .progress_controller import DEFAULT_DEBOUNCE_SECONDS, ProgressController
from .task_models import ChangeKind, Task, TaskChange
from .task_store import TaskStore

logger = logging.getLogger(__name__)

DirtyListener = Callable[[int], None]
TrackProvider = Callable[[int], TrackGeometry | None]


@dataclass(slots=True)
class TaskRow:
    task: Task
    controller: ProgressController
    # Newer value that arrived mid-drag; applied when the drag ends.
    deferred: Task | None = None

    @property
    def render_key(self) -> str:
        return f"{self.task.id}-{self.task.progress}"


class ListReconciler:
    """
    Keeps rendered rows in step with TaskStore changes.

    - one row + ProgressController per task id, in store order
    - a row is marked dirty (and on_dirty fires) whenever its task changes;
      render_key also changes whenever progress changes
    - controllers are bound once per id and never rebound on update
    - while a row is mid-drag its visible task is frozen; the newest store
      value is applied when the drag ends
    """

    def __init__(
        self,
        store: TaskStore,
        *,
        timers: TimerFactory,
        track_for: TrackProvider | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        on_dirty: DirtyListener | None = None,
    ) -> None:
        self._store = store
        self._timers = timers
        self._track_for = track_for
        self._debounce_seconds = debounce_seconds
        self._on_dirty = on_dirty

        self._rows: dict[int, TaskRow] = {}
        self._order: list[int] = []
        self._dirty: list[int] = []

        for task in store.tasks:
            self._rows[task.id] = TaskRow(task=task, controller=self._make_controller(task.id))
            self._order.append(task.id)

        self._unsubscribe = store.subscribe(self._on_change)

    # ---- queries ----

    def rows(self) -> list[TaskRow]:
        return [self._rows[i] for i in self._order]

    def row(self, task_id: int) -> TaskRow | None:
        return self._rows.get(task_id)

    def controller(self, task_id: int) -> ProgressController | None:
        row = self._rows.get(task_id)
        return row.controller if row is not None else None

    def render_key(self, task_id: int) -> str | None:
        row = self._rows.get(task_id)
        return row.render_key if row is not None else None

    def take_dirty(self) -> list[int]:
        """Return ids that need re-rendering since the last call (and clear them)."""
        out, self._dirty = self._dirty, []
        return out

    # ---- drag routing ----

    def end_drag(self, task_id: int) -> None:
        row = self._rows.get(task_id)
        if row is None:
            return
        row.controller.end_drag()

    # ---- lifecycle ----

    def close(self) -> None:
        self._unsubscribe()
        for row in self._rows.values():
            row.controller.close()
        self._rows.clear()
        self._order.clear()

    # ---- internals ----

    def _make_controller(self, task_id: int) -> ProgressController:
        track = self._track_for(task_id) if self._track_for is not None else None
        return ProgressController(
            self._store,
            task_id,
            timers=self._timers,
            track=track,
            debounce_seconds=self._debounce_seconds,
            on_drag_end=self._apply_deferred,
        )

    def _apply_deferred(self, task_id: int) -> None:
        row = self._rows.get(task_id)
        if row is None or row.deferred is None:
            return
        row.task, row.deferred = row.deferred, None
        self._mark_dirty(task_id)

    def _mark_dirty(self, task_id: int) -> None:
        if task_id not in self._dirty:
            self._dirty.append(task_id)
        if self._on_dirty is not None:
            self._on_dirty(task_id)

    def _on_change(self, change: TaskChange) -> None:
        tid = change.task_id

        if change.kind == ChangeKind.ADDED:
            self._rows[tid] = TaskRow(task=change.task, controller=self._make_controller(tid))
            self._order = [t.id for t in self._store.tasks if t.id in self._rows]
            self._mark_dirty(tid)
            return

        if change.kind == ChangeKind.REMOVED:
            row = self._rows.pop(tid, None)
            if row is None:
                return
            row.controller.close(flush=False)
            self._order = [i for i in self._order if i != tid]
            self._mark_dirty(tid)
            return

        row = self._rows.get(tid)
        if row is None:
            logger.debug("Update for unknown row task_id=%s", tid)
            return
        if row.controller.dragging:
            row.deferred = change.task
            return
        row.task = change.task
        row.deferred = None
        self._mark_dirty(tid)
