# src/tasklist/tasks/task_api.py

from __future__ import annotations

"""
Form-boundary helpers (add / edit / progress modals).

Validation lives here, not in TaskStore: a rejected input raises
TaskValidationError before the store is touched.
"""

import logging
import math
from dataclasses import replace
from datetime import date as _date

from .errors import TaskValidationError
from .progress_controller import ProgressController
from .task_models import Priority, Task, TaskDraft
from .task_store import TaskStore

logger = logging.getLogger(__name__)


def _clean_title(title: str | None) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise TaskValidationError("Task title is required")
    return cleaned


def _clean_priority(priority: Priority | str | None) -> Priority:
    if priority is None or priority == "":
        return Priority.MEDIUM
    parsed = Priority.parse(str(priority))
    if parsed is None:
        raise TaskValidationError(f"Unknown priority: {priority!r}")
    return parsed


def _clean_date(value: str | _date | None, field: str) -> str | None:
    """Empty -> None; otherwise must be an ISO calendar date."""
    if value is None:
        return None
    if isinstance(value, _date):
        return value.isoformat()
    raw = value.strip()
    if not raw:
        return None
    try:
        return _date.fromisoformat(raw).isoformat()
    except ValueError as e:
        raise TaskValidationError(f"{field} must be YYYY-MM-DD, got {value!r}") from e


def add_task(
    store: TaskStore,
    *,
    title: str,
    details: str = "",
    start_date: str | _date | None = None,
    approx_end_date: str | _date | None = None,
    priority: Priority | str | None = Priority.MEDIUM,
) -> Task:
    """
    Add-task modal submit. The due date follows the approximate end date.
    """
    end = _clean_date(approx_end_date, "approxEndDate")
    draft = TaskDraft(
        title=_clean_title(title),
        details=(details or "").strip(),
        start_date=_clean_date(start_date, "startDate"),
        approx_end_date=end,
        date=end,
        priority=_clean_priority(priority),
    )
    task = store.add(draft)
    logger.info("Added task id=%s", task.id)
    return task


def edit_task(
    store: TaskStore,
    task: Task,
    *,
    title: str,
    details: str = "",
    start_date: str | _date | None = None,
    approx_end_date: str | _date | None = None,
    priority: Priority | str | None = None,
) -> Task | None:
    """
    Edit-task modal save: replaces the whole record.

    id/progress/completed come from the store's current record, not from the
    (possibly older) task the form was opened with. Returns None if the task
    no longer exists.
    """
    end = _clean_date(approx_end_date, "approxEndDate")
    title = _clean_title(title)
    current = store.get(task.id)
    if current is None:
        logger.debug("edit ignored: no task id=%s", task.id)
        return None
    updated = replace(
        current,
        title=title,
        details=(details or "").strip(),
        start_date=_clean_date(start_date, "startDate"),
        approx_end_date=end,
        date=end,
        priority=_clean_priority(priority if priority is not None else current.priority),
    )
    return store.update(updated)


def set_due_date(store: TaskStore, task_id: int, due: str | _date | None) -> Task | None:
    cleaned = _clean_date(due, "date")
    current = store.get(task_id)
    if current is None:
        return None
    return store.update(replace(current, date=cleaned))


def save_progress_from_modal(controller: ProgressController, raw_value: object) -> Task | None:
    """Progress modal save: accepts a number in [0, 100] only."""
    if isinstance(raw_value, bool):
        raise TaskValidationError("Please enter a valid number between 0 and 100.")
    try:
        value = float(raw_value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise TaskValidationError("Please enter a valid number between 0 and 100.") from e
    if math.isnan(value) or value < 0 or value > 100:
        raise TaskValidationError("Please enter a valid number between 0 and 100.")
    return controller.set_from_modal_save(value)
