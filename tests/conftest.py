# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from tasktrack.core.state import AppState
from tasktrack.tasks.task_repo import TaskRepository
from tasktrack.tasks.task_store import TaskStore
from tasktrack.tasks.task_timer import TimerCoordinator

from .fakes import FakeClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the connectors.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="tasktrack",
        env="test",
        data_dir=tmp_path,
        tasks_file=tmp_path / "tasks.json",
        backup_enabled=False,
        backup_on_start=False,
        cors_origins=[],
        static_dir=None,
        http_enabled=False,
        console_enabled=False,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.tasks_file, backup_enabled=settings.backup_enabled)


@pytest.fixture()
def repo(store: TaskStore) -> TaskRepository:
    return TaskRepository(store)


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore) -> AppState:
    """
    AppState wired with the real JSON store on tmp_path.

    The store's file handling is part of what we want to test, so it is not faked here.
    """
    return AppState(
        settings=settings,
        store=store,
        repo=TaskRepository(store),
        timer=TimerCoordinator(store),
    )
