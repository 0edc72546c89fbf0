# src/tasklist/tasks/task_gateway.py

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from ..core.ports import KeyValueStorage
from .task_models import Priority, Task, to_progress_int

logger = logging.getLogger(__name__)


class SnapshotFormatError(ValueError):
    """Stored blob is not a valid task collection."""


def task_to_record(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "details": task.details,
        "startDate": task.start_date,
        "approxEndDate": task.approx_end_date,
        "date": task.date,
        "priority": task.priority.value,
        "progress": task.progress,
        "completed": task.completed,
    }


def _opt_str(rec: Mapping[str, Any], name: str) -> str | None:
    val = rec.get(name)
    if val is None:
        return None
    if not isinstance(val, str):
        raise SnapshotFormatError(f"{name} must be a string or null, got {type(val).__name__}")
    return val


def record_to_task(rec: Any) -> Task:
    """
    Strict decode of one stored record.

    Missing optional fields take the same defaults a freshly added task has;
    wrong types raise SnapshotFormatError.
    """
    if not isinstance(rec, Mapping):
        raise SnapshotFormatError("task record must be an object")

    tid = rec.get("id")
    if isinstance(tid, bool) or not isinstance(tid, int):
        raise SnapshotFormatError(f"id must be an integer, got {tid!r}")

    title = rec.get("title")
    if not isinstance(title, str):
        raise SnapshotFormatError(f"task {tid}: title must be a string")

    details = rec.get("details")
    if details is None:
        details = ""
    elif not isinstance(details, str):
        raise SnapshotFormatError(f"task {tid}: details must be a string")

    raw_priority = rec.get("priority")
    if raw_priority is None:
        priority = Priority.MEDIUM
    else:
        parsed = Priority.parse(raw_priority) if isinstance(raw_priority, str) else None
        if parsed is None:
            raise SnapshotFormatError(f"task {tid}: unknown priority {raw_priority!r}")
        priority = parsed

    progress = rec.get("progress", 0)
    if progress is None:
        progress = 0
    if isinstance(progress, bool) or not isinstance(progress, (int, float)):
        raise SnapshotFormatError(f"task {tid}: progress must be a number")
    if not 0 <= progress <= 100:
        raise SnapshotFormatError(f"task {tid}: progress {progress} out of range")

    completed = rec.get("completed", False)
    if completed is None:
        completed = False
    if not isinstance(completed, bool):
        raise SnapshotFormatError(f"task {tid}: completed must be a boolean")

    return Task(
        id=tid,
        title=title,
        details=details,
        start_date=_opt_str(rec, "startDate"),
        approx_end_date=_opt_str(rec, "approxEndDate"),
        date=_opt_str(rec, "date"),
        priority=priority,
        progress=to_progress_int(progress),
        completed=completed,
    )


def encode_snapshot(tasks: Iterable[Task]) -> str:
    return json.dumps([task_to_record(t) for t in tasks], ensure_ascii=False)


def decode_snapshot(blob: str) -> list[Task]:
    try:
        data = json.loads(blob)
    except ValueError as e:
        raise SnapshotFormatError(f"not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise SnapshotFormatError("snapshot must be a JSON array")

    tasks = [record_to_task(rec) for rec in data]
    seen: set[int] = set()
    for t in tasks:
        if t.id in seen:
            raise SnapshotFormatError(f"duplicate task id {t.id}")
        seen.add(t.id)
    return tasks


class TaskGateway:
    """
    Persistence gateway: whole-collection snapshots under one storage key.

    load() never raises for absent or corrupt data; it degrades to [].
    save() always writes the full snapshot in a single set() call.
    """

    def __init__(self, storage: KeyValueStorage, key: str = "tasklist_tasks") -> None:
        self._storage = storage
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def has_snapshot(self) -> bool:
        """True if anything (even a corrupt blob) is stored under the key."""
        try:
            return self._storage.get(self._key) is not None
        except Exception:
            return False

    def load(self) -> list[Task]:
        try:
            blob = self._storage.get(self._key)
        except Exception:
            logger.exception("Failed to read snapshot key=%s; starting empty.", self._key)
            return []

        if blob is None:
            logger.info("No stored snapshot key=%s.", self._key)
            return []

        try:
            tasks = decode_snapshot(blob)
        except SnapshotFormatError as e:
            logger.warning("Stored snapshot key=%s is corrupt (%s); starting empty.", self._key, e)
            return []

        logger.info("Loaded %d tasks key=%s", len(tasks), self._key)
        return tasks

    def save(self, tasks: Iterable[Task]) -> None:
        blob = encode_snapshot(tasks)
        self._storage.set(self._key, blob)
        logger.debug("Saved snapshot key=%s bytes=%d", self._key, len(blob))
