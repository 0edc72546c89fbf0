# src/tasklist/tasks/task_store.py

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace

from .errors import PersistenceError
from .task_gateway import TaskGateway
from .task_models import ChangeKind, Task, TaskChange, TaskDraft, to_progress_int

logger = logging.getLogger(__name__)

ChangeListener = Callable[[TaskChange], None]
Unsubscribe = Callable[[], None]


@dataclass(frozen=True, slots=True)
class TaskSummary:
    total: int
    completed: int
    percent: int  # completed / total, rounded; 0 when empty


class TaskStore:
    """
    Sole owner of the task collection.

    Every mutation builds a new tuple, writes the full snapshot through the
    gateway and only then swaps it in and notifies listeners.

    Write failure policy:
    - the previous collection stays current (nothing is swapped, nothing emitted)
    - PersistenceError is raised to the caller

    Unknown ids on update/remove/toggle are a silent no-op (no write, no event).
    """

    def __init__(self, gateway: TaskGateway, tasks: Iterable[Task] | None = None) -> None:
        self._gateway = gateway
        self._tasks: tuple[Task, ...] = tuple(tasks or ())
        self._high_water = max((t.id for t in self._tasks), default=0)
        self._listeners: list[ChangeListener] = []
        self._task_listeners: dict[int, list[ChangeListener]] = {}

    # ---- loading ----

    def hydrate(self, seed: Iterable[Task] | None = None) -> tuple[Task, ...]:
        """
        Load the collection from storage (once, at startup).

        If nothing was ever stored and a seed is given, the seed is adopted and
        persisted. A stored empty list stays empty. No change events are
        emitted for hydration.
        """
        tasks = tuple(self._gateway.load())
        if not tasks and seed is not None and not self._gateway.has_snapshot():
            tasks = tuple(seed)
            if tasks:
                self._write(tasks)
                logger.info("Seeded store with %d tasks", len(tasks))

        self._tasks = tasks
        self._high_water = max(self._high_water, max((t.id for t in tasks), default=0))
        logger.info("TaskStore ready total=%d", len(tasks))
        return self._tasks

    # ---- queries ----

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._tasks

    def get(self, task_id: int) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def next_id(self) -> int:
        """
        max(existing ids) + 1, or 1 for an empty collection.

        Ids deleted during this session are not handed out again.
        """
        current = max((t.id for t in self._tasks), default=0)
        return max(current, self._high_water) + 1

    def summary(self) -> TaskSummary:
        total = len(self._tasks)
        done = sum(1 for t in self._tasks if t.completed)
        percent = to_progress_int(done * 100 / total) if total else 0
        return TaskSummary(total=total, completed=done, percent=percent)

    # ---- observers ----

    def subscribe(self, listener: ChangeListener) -> Unsubscribe:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def subscribe_task(self, task_id: int, listener: ChangeListener) -> Unsubscribe:
        """Listen to changes of one task id only."""
        bucket = self._task_listeners.setdefault(task_id, [])
        bucket.append(listener)

        def _unsubscribe() -> None:
            b = self._task_listeners.get(task_id)
            if b is None or listener not in b:
                return
            b.remove(listener)
            if not b:
                del self._task_listeners[task_id]

        return _unsubscribe

    # ---- mutations ----

    def add(self, draft: TaskDraft) -> Task:
        """
        Append a new task. The caller validated the title already.
        """
        task = Task(
            id=self.next_id(),
            title=draft.title,
            details=draft.details,
            start_date=draft.start_date,
            approx_end_date=draft.approx_end_date,
            date=draft.date,
            priority=draft.priority,
            progress=0 if draft.progress is None else to_progress_int(draft.progress),
            completed=False if draft.completed is None else bool(draft.completed),
        )
        self._commit(self._tasks + (task,), TaskChange(ChangeKind.ADDED, task.id, task))
        self._high_water = max(self._high_water, task.id)
        logger.debug("Task added id=%s title=%r", task.id, task.title)
        return task

    def update(self, task: Task) -> Task | None:
        """Replace the record with the same id. Returns None if there is none."""
        if self.get(task.id) is None:
            logger.debug("update ignored: no task id=%s", task.id)
            return None

        new_tasks = tuple(task if t.id == task.id else t for t in self._tasks)
        self._commit(new_tasks, TaskChange(ChangeKind.UPDATED, task.id, task))
        logger.debug(
            "Task updated id=%s progress=%s completed=%s", task.id, task.progress, task.completed
        )
        return task

    def remove(self, task_id: int) -> Task | None:
        old = self.get(task_id)
        if old is None:
            logger.debug("remove ignored: no task id=%s", task_id)
            return None

        new_tasks = tuple(t for t in self._tasks if t.id != task_id)
        self._commit(new_tasks, TaskChange(ChangeKind.REMOVED, task_id, old))
        logger.debug("Task removed id=%s", task_id)
        return old

    def toggle_completion(self, task_id: int) -> Task | None:
        """
        Flip `completed`.

        Progress ends at 100 both ways: completing sets it to 100, and
        un-completing keeps it pinned at 100 (only the flag goes back).
        """
        old = self.get(task_id)
        if old is None:
            logger.debug("toggle ignored: no task id=%s", task_id)
            return None
        return self.update(replace(old, completed=not old.completed, progress=100))

    # ---- internals ----

    def _write(self, tasks: tuple[Task, ...]) -> None:
        try:
            self._gateway.save(tasks)
        except Exception as e:
            logger.exception("Snapshot write failed; keeping previous collection.")
            raise PersistenceError(f"failed to persist {len(tasks)} tasks") from e

    def _commit(self, new_tasks: tuple[Task, ...], change: TaskChange) -> None:
        self._write(new_tasks)
        self._tasks = new_tasks
        self._notify(change)

    def _notify(self, change: TaskChange) -> None:
        targets = list(self._task_listeners.get(change.task_id, ())) + list(self._listeners)
        for listener in targets:
            try:
                listener(change)
            except Exception:
                # Already committed: observer errors are only logged.
                logger.exception("Change listener failed task_id=%s kind=%s", change.task_id, change.kind)
