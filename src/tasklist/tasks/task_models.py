# src/tasklist/tasks/task_models.py

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum


class Priority(StrEnum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def parse(cls, raw: str | None) -> Priority | None:
        """Exact (case-insensitive) match; None for anything unknown."""
        if raw is None:
            return None
        val = str(raw).strip().lower()
        for p in cls:
            if p.value.lower() == val:
                return p
        return None


@dataclass(frozen=True, slots=True)
class Task:
    """
    One to-do item.

    Immutable value: every change produces a new Task (dataclasses.replace).

    Identity is by id: same_task() is the "is this the same task" check and
    the only behaviour a Task carries. `==` is the dataclass field-wise
    comparison, so two versions of one task (e.g. before and after a progress
    change) are same_task() but not equal.

    Dates are ISO calendar dates ("YYYY-MM-DD") or None.
    """

    id: int
    title: str
    details: str = ""
    start_date: str | None = None
    approx_end_date: str | None = None
    date: str | None = None  # due date
    priority: Priority = Priority.MEDIUM
    progress: int = 0
    completed: bool = False

    def same_task(self, other: object) -> bool:
        return isinstance(other, Task) and other.id == self.id


@dataclass(frozen=True, slots=True)
class TaskDraft:
    """Input for TaskStore.add(); progress/completed default to a fresh task."""

    title: str
    details: str = ""
    start_date: str | None = None
    approx_end_date: str | None = None
    date: str | None = None
    priority: Priority = Priority.MEDIUM
    progress: int | None = None
    completed: bool | None = None


class ChangeKind(StrEnum):
    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"


@dataclass(frozen=True, slots=True)
class TaskChange:
    """
    Emitted by TaskStore once per mutated id, after the snapshot is persisted.

    `task` is the new value (ADDED/UPDATED) or the removed value (REMOVED).
    """

    kind: ChangeKind
    task_id: int
    task: Task


PROGRESS_MIN = 0
PROGRESS_MAX = 100


def clamp_progress(value: float) -> float:
    return min(float(PROGRESS_MAX), max(float(PROGRESS_MIN), float(value)))


def to_progress_int(value: float) -> int:
    """Clamp to [0, 100] and round half up (50.5 -> 51)."""
    return int(math.floor(clamp_progress(value) + 0.5))
