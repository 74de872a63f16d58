# src/tasktrack/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the store, repository and timer coordinator into AppState.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import get_settings
from ..core.state import AppState
from ..tasks.task_repo import TaskRepository
from ..tasks.task_store import TaskStore
from ..tasks.task_timer import TimerCoordinator

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    Path(settings.data_dir).mkdir(parents=True, exist_ok=True)
    Path(settings.tasks_file).parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = TaskStore(settings.tasks_file, backup_enabled=settings.backup_enabled)
    return AppState(
        settings=settings,
        store=store,
        repo=TaskRepository(store),
        timer=TimerCoordinator(store),
    )


def backup_on_start(state: AppState) -> Path | None:
    if not getattr(state.settings, "backup_on_start", False):
        return None
    return state.store.backup()
