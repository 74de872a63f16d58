# src/tasktrack/tasks/task_repo.py

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..core.errors import TaskNotFoundError, ValidationError
from ..core.ports import TaskStorage
from .task_models import Task, utc_now

logger = logging.getLogger(__name__)

# Fields a partial update may replace. Anything else in the payload is ignored.
UPDATABLE_FIELDS: tuple[str, ...] = (
    "title",
    "description",
    "completed",
    "priority",
    "category",
    "due_date",
)

# Persisted / HTTP field names accepted in place of the attribute names.
FIELD_ALIASES: dict[str, str] = {"dueDate": "due_date"}

Clock = Callable[[], datetime]


def _normalize_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    """Map aliased keys to attribute names; the attribute name wins if both are given."""
    out = dict(data)
    for alias, name in FIELD_ALIASES.items():
        if alias in out:
            value = out.pop(alias)
            out.setdefault(name, value)
    return out


@dataclass(slots=True, frozen=True)
class TaskStatistics:
    total: int
    completed: int
    active: int
    completion_rate: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "completed": self.completed,
            "active": self.active,
            "completionRate": self.completion_rate,
        }


class TaskRepository:
    """
    CRUD over the task collection.

    Every operation reloads the full collection from the store; mutations write it
    back in full while holding the store lock, so concurrent writers never lose
    each other's changes.
    """

    def __init__(self, store: TaskStorage, *, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock

    @property
    def store(self) -> TaskStorage:
        return self._store

    # ---- low-level helpers ----

    def _load(self) -> list[Task]:
        return [Task.from_record(r) for r in self._store.load()]

    def _save(self, tasks: list[Task]) -> None:
        self._store.save([t.to_dict() for t in tasks])

    # ---- queries ----

    def find_all(self) -> list[Task]:
        with self._store.locked():
            return self._load()

    def find_by_id(self, task_id: str) -> Task | None:
        for task in self.find_all():
            if task.id == task_id:
                return task
        return None

    def find_by_status(self, completed: bool) -> list[Task]:
        return [t for t in self.find_all() if t.completed is completed]

    def find_by_priority(self, priority: str) -> list[Task]:
        return [t for t in self.find_all() if t.priority == priority]

    def find_by_category(self, category: str) -> list[Task]:
        return [t for t in self.find_all() if t.category == category]

    def get_categories(self) -> set[str]:
        return {t.category for t in self.find_all() if isinstance(t.category, str) and t.category}

    def get_statistics(self) -> TaskStatistics:
        tasks = self.find_all()
        total = len(tasks)
        completed = sum(1 for t in tasks if t.completed)
        return TaskStatistics(
            total=total,
            completed=completed,
            active=total - completed,
            completion_rate=(completed / total * 100) if total > 0 else 0.0,
        )

    # ---- mutations ----

    def create(self, data: Mapping[str, Any]) -> Task:
        """Keys are attribute names (`due_date`); `dueDate` is accepted too."""
        task = Task.new(_normalize_fields(data), now=self._clock())
        errors = task.validate()
        if errors:
            logger.debug("Task create rejected: %s", errors)
            raise ValidationError(errors)

        with self._store.locked():
            tasks = self._load()
            tasks.append(task)
            self._save(tasks)

        logger.info("Task created id=%s priority=%s category=%s", task.id, task.priority, task.category)
        return task

    def update(self, task_id: str, partial: Mapping[str, Any]) -> Task:
        """
        Replace only the fields present in `partial`.

        `due_date: None` clears the due date; a missing `due_date` key leaves it as is.
        Keys are attribute names; `dueDate` is accepted for `due_date`, other keys are ignored.
        The whole resulting task is re-validated before anything is written.
        """
        partial = _normalize_fields(partial)
        with self._store.locked():
            tasks = self._load()
            task = next((t for t in tasks if t.id == task_id), None)
            if task is None:
                raise TaskNotFoundError(task_id)

            for name in UPDATABLE_FIELDS:
                if name in partial:
                    setattr(task, name, partial[name])
            if task.due_date == "":
                task.due_date = None
            task.touch(self._clock())

            errors = task.validate()
            if errors:
                logger.debug("Task update rejected id=%s: %s", task_id, errors)
                raise ValidationError(errors)

            self._save(tasks)

        logger.info("Task updated id=%s fields=%s", task_id, sorted(k for k in partial if k in UPDATABLE_FIELDS))
        return task

    def delete(self, task_id: str) -> bool:
        with self._store.locked():
            tasks = self._load()
            remaining = [t for t in tasks if t.id != task_id]
            if len(remaining) == len(tasks):
                return False
            self._save(remaining)

        logger.info("Task deleted id=%s", task_id)
        return True
