# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from tasklist.tasks.task_gateway import TaskGateway
from tasklist.tasks.task_models import Task
from tasklist.tasks.task_store import TaskStore

from .fakes import FakeTimers, RecordingStorage


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap:
    tmp paths, json backend, no log file. Tests mutate it freely.
    """
    return SimpleNamespace(
        app_name="tasklist-test",
        log_level="DEBUG",
        log_to_file=False,
        data_dir=tmp_path / "data",
        storage_backend="json",
        storage_path=tmp_path / "data" / "storage.json",
        storage_key="tasklist_tasks",
        debounce_seconds=0.3,
    )


@pytest.fixture()
def storage() -> RecordingStorage:
    return RecordingStorage()


@pytest.fixture()
def gateway(storage: RecordingStorage) -> TaskGateway:
    return TaskGateway(storage, key="tasklist_tasks")


@pytest.fixture()
def timers() -> FakeTimers:
    return FakeTimers()


@pytest.fixture()
def make_store(gateway: TaskGateway):
    """Build a TaskStore already holding the given tasks (no write performed)."""

    def _make(*tasks: Task) -> TaskStore:
        return TaskStore(gateway, tasks)

    return _make
