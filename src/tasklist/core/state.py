# src/tasklist/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..tasks.task_gateway import TaskGateway
from ..tasks.task_store import TaskStore
from .ports import KeyValueStorage, TimerFactory


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    storage: KeyValueStorage
    gateway: TaskGateway
    task_store: TaskStore
    timers: TimerFactory
