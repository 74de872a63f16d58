# src/tasktrack/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The repository and timer depend on Protocols instead of concrete implementations.
This keeps the storage backend swappable and makes testing easier.
"""

from collections.abc import Mapping
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Any, Protocol


class TaskStorage(Protocol):
    """Whole-collection persistence for task records (plain dicts)."""

    def load(self) -> list[dict[str, Any]]: ...
    def save(self, tasks: list[dict[str, Any]]) -> None: ...
    def backup(self) -> Path | None: ...
    def locked(self) -> AbstractContextManager[None]: ...


class TaskRepo(Protocol):
    # Queries
    def find_all(self) -> list[Any]: ...
    def find_by_id(self, task_id: str) -> Any | None: ...
    def find_by_status(self, completed: bool) -> list[Any]: ...
    def find_by_priority(self, priority: str) -> list[Any]: ...
    def find_by_category(self, category: str) -> list[Any]: ...
    def get_categories(self) -> set[str]: ...
    def get_statistics(self) -> Any: ...

    # Mutations
    def create(self, data: Mapping[str, Any]) -> Any: ...
    def update(self, task_id: str, partial: Mapping[str, Any]) -> Any: ...
    def delete(self, task_id: str) -> bool: ...
