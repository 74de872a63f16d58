# src/tasktrack/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import cast

from ..core.errors import TaskNotFoundError, TimerConflictError, ValidationError
from ..core.state import AppState
from ..tasks.task_models import Task, format_duration
from ..tasks.task_query import TaskFilter, list_tasks

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Domain errors are turned into readable replies; anything else propagates.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except ValidationError as e:
            return "Validation failed:\n" + "\n".join(f"  - {msg}" for msg in e.errors)
        except TaskNotFoundError as e:
            return f"Task not found: {e.task_id}"
        except TimerConflictError as e:
            return str(e)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def _resolve_id(state: AppState, args: list[str]) -> str:
    """Accept a full id or a unique prefix of one."""
    if not args:
        raise TaskNotFoundError("<missing id>")
    raw = args[0]
    matches = [t.id for t in state.repo.find_all() if t.id.startswith(raw)]
    if len(matches) == 1:
        return matches[0]
    if raw in matches:
        return raw
    raise TaskNotFoundError(raw)


def _format_task(task: Task) -> str:
    data = task.to_dict()
    mark = "x" if data["completed"] else " "
    line = f"[{mark}] {task.id[:8]} ({data['priority']}, {data['category']}) {data['title']}"
    if task.is_overdue():
        line += " [OVERDUE]"
    elif task.is_due_today():
        line += " [due today]"
    if task.time_tracking.is_active:
        line += " [timer running]"
    total = task.time_tracking.total_time
    if total:
        line += f" [{format_duration(total)}]"
    return line


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list                                  -> all tasks
    /list active|completed                 -> by status
    /list <status> <priority> <category> [search words...]
    """
    status = args[0] if len(args) > 0 else "all"
    priority = args[1] if len(args) > 1 else "all"
    category = args[2] if len(args) > 2 else "all"
    search = " ".join(args[3:]) or None

    tasks = list_tasks(
        state.repo,
        TaskFilter(status=status, priority=priority, category=category, search=search),
    )
    if not tasks:
        return "No tasks."
    return "\n".join(_format_task(t) for t in tasks)


def cmd_add(state: AppState, args: list[str]) -> str:
    task = state.repo.create({"title": " ".join(args)})
    return f"Created {task.id[:8]}: {task.to_dict()['title']}"


def cmd_done(state: AppState, args: list[str]) -> str:
    task = state.repo.update(_resolve_id(state, args), {"completed": True})
    return f"Completed: {task.to_dict()['title']}"


def cmd_undo(state: AppState, args: list[str]) -> str:
    task = state.repo.update(_resolve_id(state, args), {"completed": False})
    return f"Reopened: {task.to_dict()['title']}"


def cmd_rm(state: AppState, args: list[str]) -> str:
    task_id = _resolve_id(state, args)
    if not state.repo.delete(task_id):
        raise TaskNotFoundError(task_id)
    return f"Deleted {task_id[:8]}."


def cmd_stats(state: AppState, args: list[str]) -> str:
    s = state.repo.get_statistics()
    return (
        "Stats:\n"
        f"  Total: {s.total}\n"
        f"  Completed: {s.completed}\n"
        f"  Active: {s.active}\n"
        f"  Completion rate: {s.completion_rate:.1f}%"
    )


def cmd_categories(state: AppState, args: list[str]) -> str:
    cats = sorted(state.repo.get_categories())
    return "Categories: " + (", ".join(cats) if cats else "(none)")


def cmd_start(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    previous = state.timer.get_active()
    task = state.timer.start(_resolve_id(state, args))
    if previous is not None and emit is not None:
        emit(f"[TIMER] Stopped running timer on: {previous.title}")
    return f"Timer started: {task.to_dict()['title']}"


def cmd_stop(state: AppState, args: list[str]) -> str:
    task = state.timer.stop(_resolve_id(state, args))
    last = task.time_tracking.sessions[-1]
    return f"Timer stopped: {task.to_dict()['title']} ({format_duration(last.duration)})"


def cmd_active(state: AppState, args: list[str]) -> str:
    active = state.timer.get_active()
    if active is None:
        return "No timer running."
    return f"Running: {active.title} ({format_duration(active.current_duration)})"


def cmd_stopall(state: AppState, args: list[str]) -> str:
    stopped = state.timer.stop_all()
    return f"Stopped {len(stopped)} active timer(s)."


def cmd_timestats(state: AppState, args: list[str]) -> str:
    s = state.timer.get_stats()
    return (
        "Time tracking:\n"
        f"  Total tracked: {format_duration(s.total_time_tracked)}\n"
        f"  Tasks with time: {s.tasks_with_time_count}\n"
        f"  Sessions: {s.total_sessions}\n"
        f"  Average session: {format_duration(int(s.average_session_duration))}"
    )


def cmd_backup(state: AppState, args: list[str]) -> str:
    path = state.store.backup()
    if path is None:
        return "No backup written (backups disabled or nothing to back up)."
    return f"Backup written: {path}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register(
    "list",
    cmd_list,
    help_text="List tasks: /list [status] [priority] [category] [search...]",
    aliases=["ls"],
)
registry.register("add", cmd_add, help_text="Create a task: /add <title>")
registry.register("done", cmd_done, help_text="Mark a task completed: /done <id>")
registry.register("undo", cmd_undo, help_text="Mark a task active again: /undo <id>")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>", aliases=["del"])
registry.register("stats", cmd_stats, help_text="Show task statistics.")
registry.register("categories", cmd_categories, help_text="List categories in use.")
registry.register("start", cmd_start, help_text="Start the timer on a task: /start <id>")
registry.register("stop", cmd_stop, help_text="Stop the timer on a task: /stop <id>")
registry.register("active", cmd_active, help_text="Show the running timer.")
registry.register("stopall", cmd_stopall, help_text="Stop every running timer.")
registry.register("timestats", cmd_timestats, help_text="Show time tracking statistics.")
registry.register("backup", cmd_backup, help_text="Write a timestamped copy of the task file.")
