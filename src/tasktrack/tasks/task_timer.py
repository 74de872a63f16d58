# src/tasktrack/tasks/task_timer.py

from __future__ import annotations

"""
Time tracking coordinator.

Collection-wide rule: at most one task has an open session.

- start(B) while A runs   -> A is stopped (session finalized), then B starts
- start(A) while A runs   -> TimerConflictError
- stop(A) while A is idle -> TimerConflictError

The "which task is running" answer is always computed by scanning the per-task
flags; nothing is cached between calls.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..core.errors import TaskNotFoundError, TimerConflictError
from ..core.ports import TaskStorage
from .task_models import Task, format_duration, format_ts, utc_now

logger = logging.getLogger(__name__)

ALREADY_ACTIVE_MSG = "Time tracking is already active for this task"
NO_ACTIVE_SESSION_MSG = "No active time tracking session for this task"


@dataclass(slots=True, frozen=True)
class ActiveTimer:
    task_id: str
    title: str
    start_time: datetime
    current_duration: int  # milliseconds, computed at query time

    def to_dict(self) -> dict[str, Any]:
        return {
            "taskId": self.task_id,
            "title": self.title,
            "startTime": format_ts(self.start_time),
            "currentDuration": self.current_duration,
            "formattedDuration": format_duration(self.current_duration),
        }


@dataclass(slots=True, frozen=True)
class TimeTrackingStats:
    total_time_tracked: int
    tasks_with_time_count: int
    total_sessions: int
    average_session_duration: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalTimeTracked": self.total_time_tracked,
            "tasksWithTimeCount": self.tasks_with_time_count,
            "totalSessions": self.total_sessions,
            "averageSessionDuration": self.average_session_duration,
        }


class TimerCoordinator:
    def __init__(self, store: TaskStorage, *, clock: Callable[[], datetime] = utc_now) -> None:
        self._store = store
        self._clock = clock

    def _load(self) -> list[Task]:
        return [Task.from_record(r) for r in self._store.load()]

    def _save(self, tasks: list[Task]) -> None:
        self._store.save([t.to_dict() for t in tasks])

    @staticmethod
    def _find(tasks: list[Task], task_id: str) -> Task:
        for task in tasks:
            if task.id == task_id:
                return task
        raise TaskNotFoundError(task_id)

    # ---- state transitions ----

    def start(self, task_id: str) -> Task:
        with self._store.locked():
            tasks = self._load()
            target = self._find(tasks, task_id)
            if target.time_tracking.is_active:
                raise TimerConflictError(ALREADY_ACTIVE_MSG)

            now = self._clock()
            for other in tasks:
                if other is not target and other.time_tracking.is_active:
                    session = other.stop_timer(now)
                    logger.info(
                        "Timer auto-stopped id=%s duration_ms=%s (started id=%s)",
                        other.id,
                        session.duration,
                        task_id,
                    )

            target.start_timer(now)
            self._save(tasks)

        logger.info("Timer started id=%s", task_id)
        return target

    def stop(self, task_id: str) -> Task:
        with self._store.locked():
            tasks = self._load()
            target = self._find(tasks, task_id)
            if not target.time_tracking.is_active:
                raise TimerConflictError(NO_ACTIVE_SESSION_MSG)

            session = target.stop_timer(self._clock())
            self._save(tasks)

        logger.info("Timer stopped id=%s duration_ms=%s", task_id, session.duration)
        return target

    def stop_all(self) -> list[Task]:
        """Stop every running timer (normally zero or one). Returns the stopped tasks."""
        with self._store.locked():
            tasks = self._load()
            running = [t for t in tasks if t.time_tracking.is_active]
            if not running:
                return []

            now = self._clock()
            for task in running:
                task.stop_timer(now)
            self._save(tasks)

        logger.info("Stopped %d active timer(s)", len(running))
        return running

    # ---- queries ----

    def get_active(self) -> ActiveTimer | None:
        with self._store.locked():
            tasks = self._load()

        for task in tasks:
            tt = task.time_tracking
            if tt.is_active and tt.active_session_start is not None:
                return ActiveTimer(
                    task_id=task.id,
                    title=task.to_dict()["title"],
                    start_time=tt.active_session_start,
                    current_duration=tt.current_session_time(self._clock()),
                )
        return None

    def get_stats(self) -> TimeTrackingStats:
        with self._store.locked():
            tasks = self._load()

        total_time = sum(t.time_tracking.total_time for t in tasks)
        total_sessions = sum(len(t.time_tracking.sessions) for t in tasks)
        return TimeTrackingStats(
            total_time_tracked=total_time,
            tasks_with_time_count=sum(1 for t in tasks if t.time_tracking.total_time > 0),
            total_sessions=total_sessions,
            average_session_duration=(total_time / total_sessions) if total_sessions else 0.0,
        )
