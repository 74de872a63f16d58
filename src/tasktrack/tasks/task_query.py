# src/tasktrack/tasks/task_query.py

from __future__ import annotations

"""
Listing queries: status/priority/category/search filters plus the display sort.

Filters intersect; the sort always runs last:
- priority weight descending (high, medium, low)
- created_at descending within equal priority (newest first)
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from ..core.ports import TaskRepo
from .task_models import Task

ALL = "all"


class StatusFilter(StrEnum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass(slots=True, frozen=True)
class TaskFilter:
    status: str = ALL
    priority: str = ALL
    category: str = ALL
    search: str | None = None


def matches_search(task: Task, search: str | None) -> bool:
    """Case-insensitive substring match on title, description or category."""
    query = (search or "").strip().lower()
    if not query:
        return True
    for value in (task.title, task.description, task.category):
        if isinstance(value, str) and query in value.lower():
            return True
    return False


def sort_tasks(tasks: Iterable[Task]) -> list[Task]:
    return sorted(tasks, key=lambda t: (t.priority_weight, t.created_at), reverse=True)


def _fetch_by_status(repo: TaskRepo, status: str) -> list[Task]:
    if status == StatusFilter.ACTIVE:
        return repo.find_by_status(False)
    if status == StatusFilter.COMPLETED:
        return repo.find_by_status(True)
    return repo.find_all()


def list_tasks(repo: TaskRepo, flt: TaskFilter | None = None) -> list[Task]:
    """
    Run a listing query against the repository.

    Unknown status values behave like "all".
    """
    flt = flt or TaskFilter()

    tasks = _fetch_by_status(repo, flt.status)
    tasks = [t for t in tasks if matches_search(t, flt.search)]

    if flt.priority and flt.priority != ALL:
        tasks = [t for t in tasks if t.priority == flt.priority]

    if flt.category and flt.category != ALL:
        tasks = [t for t in tasks if t.category == flt.category]

    return sort_tasks(tasks)
