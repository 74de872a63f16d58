# src/tasktrack/core/errors.py

"""
Error taxonomy shared by the repository, the timer coordinator and the connectors.

Connectors translate these into user-facing responses:
- ValidationError   -> 400 with the full list of violations
- TaskNotFoundError -> 404
- TimerConflictError -> 400 with a specific message
- StorageError      -> 500
"""

from __future__ import annotations


class TaskTrackError(Exception):
    """Base class for all domain errors."""


class ValidationError(TaskTrackError):
    def __init__(self, errors: list[str]) -> None:
        super().__init__("Validation failed: " + "; ".join(errors))
        self.errors = list(errors)


class TaskNotFoundError(TaskTrackError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class TimerConflictError(TaskTrackError):
    """Timer start on an already running task, or stop on an idle one."""


class StorageError(TaskTrackError):
    """Unrecoverable I/O failure while reading or writing the task file."""
