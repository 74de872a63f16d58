# src/tasktrack/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..tasks.task_repo import TaskRepository
from ..tasks.task_store import TaskStore
from ..tasks.task_timer import TimerCoordinator


@dataclass
class AppState:
    # Settings are kept on the state so connectors do not re-read the environment.
    settings: Any

    store: TaskStore
    repo: TaskRepository
    timer: TimerCoordinator
