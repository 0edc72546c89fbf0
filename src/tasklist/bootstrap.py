# src/tasklist/bootstrap.py

"""
Bootstrap helpers.

This module is the "composition root":
- loads settings once,
- configures logging,
- ensures local (gitignored) directories exist,
- wires storage -> gateway -> store into AppState and hydrates the store.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterable

from .config import get_settings
from .core.ports import KeyValueStorage, TimerFactory
from .core.state import AppState
from .core.timers import AsyncioTimerFactory
from .logging_setup import setup_logging
from .storage.kv_store import JsonFileKeyValueStore, MemoryKeyValueStore, SqliteKeyValueStore
from .tasks.list_reconciler import DirtyListener, ListReconciler, TrackProvider
from .tasks.task_gateway import TaskGateway
from .tasks.task_models import Task
from .tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def configure_logging(settings) -> None:
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    log_dir = getattr(settings, "data_dir", ".local/tasklist") if getattr(settings, "log_to_file", True) else None
    setup_logging(log_dir=log_dir, console_level=console_level)


def create_storage(settings) -> KeyValueStorage:
    backend = str(getattr(settings, "storage_backend", "json")).lower()
    if backend == "memory":
        return MemoryKeyValueStore()
    if backend == "sqlite":
        return SqliteKeyValueStore(settings.storage_path)
    if backend == "json":
        return JsonFileKeyValueStore(settings.storage_path)
    raise ValueError(f"Unknown storage backend: {backend!r}")


def create_initial_state(
    *,
    settings=None,
    storage: KeyValueStorage | None = None,
    timers: TimerFactory | None = None,
    seed: Iterable[Task] | None = None,
) -> AppState:
    """
    Create AppState from the provided settings and hydrate the task store.

    Keeping settings/storage/timers injectable makes the app easier to test and
    avoids hidden global config reads. If settings is None, falls back to get_settings().
    `seed` is adopted only when storage holds no usable snapshot.
    """
    if settings is None:
        settings = get_settings()

    settings.data_dir.mkdir(parents=True, exist_ok=True)

    if storage is None:
        storage = create_storage(settings)

    gateway = TaskGateway(storage, key=settings.storage_key)
    store = TaskStore(gateway)
    store.hydrate(seed=seed)

    state = AppState(
        settings=settings,
        storage=storage,
        gateway=gateway,
        task_store=store,
        timers=timers if timers is not None else AsyncioTimerFactory(),
    )
    logger.info(
        "Started %s backend=%s tasks=%d",
        getattr(settings, "app_name", "tasklist"),
        getattr(settings, "storage_backend", "?"),
        len(store.tasks),
    )
    return state


def create_list_view(
    state: AppState,
    *,
    track_for: TrackProvider | None = None,
    on_dirty: DirtyListener | None = None,
) -> ListReconciler:
    return ListReconciler(
        state.task_store,
        timers=state.timers,
        track_for=track_for,
        debounce_seconds=float(getattr(state.settings, "debounce_seconds", 0.3)),
        on_dirty=on_dirty,
    )


def shutdown(state: AppState, view: ListReconciler | None = None) -> None:
    """Best-effort shutdown: flush pending progress commits, close storage."""
    if view is not None:
        try:
            view.close()
        except Exception:
            logger.exception("Failed to flush pending progress commits.")

    close = getattr(state.storage, "close", None)
    if close is not None:
        with contextlib.suppress(Exception):
            close()
    logger.info("Bye.")
