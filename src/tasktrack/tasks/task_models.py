# src/tasktrack/tasks/task_models.py

from __future__ import annotations

import json
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import StrEnum
from typing import Any

TITLE_MAX_LEN = 200
DESCRIPTION_MAX_LEN = 1000
CATEGORY_MAX_LEN = 50

DEFAULT_CATEGORY = "general"


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_WEIGHTS: dict[str, int] = {
    Priority.HIGH.value: 3,
    Priority.MEDIUM.value: 2,
    Priority.LOW.value: 1,
}


def utc_now() -> datetime:
    """Current UTC time truncated to the millisecond precision we persist."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def format_ts(dt: datetime) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. 2024-05-01T10:00:00.000Z."""
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_ts(raw: Any) -> datetime | None:
    """
    Parse an ISO-8601 string into an aware datetime.

    Naive values (e.g. a bare "2024-05-01") are taken as local time.
    Returns None for anything that is not a parseable string.
    """
    if isinstance(raw, datetime):
        dt = raw
    elif isinstance(raw, str) and raw.strip():
        try:
            dt = datetime.fromisoformat(raw.strip())
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt


def format_duration(ms: int) -> str:
    total_s = max(0, int(ms)) // 1000
    hours, rem = divmod(total_s, 3600)
    minutes, seconds = divmod(rem, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def _ms_between(start: datetime, end: datetime) -> int:
    return max(0, int((end - start) / timedelta(milliseconds=1)))


def _record_id(raw: Mapping[str, Any]) -> str:
    """Id for a stored record that has none: derived from its content, so repeated loads agree."""
    canonical = json.dumps(dict(raw), sort_keys=True, default=str)
    return str(uuid.uuid5(uuid.NAMESPACE_URL, "tasktrack:" + canonical))


@dataclass(slots=True, frozen=True)
class TimeSession:
    start: datetime
    end: datetime
    duration: int  # milliseconds

    def to_dict(self) -> dict[str, Any]:
        return {"start": format_ts(self.start), "end": format_ts(self.end), "duration": self.duration}

    @classmethod
    def from_record(cls, raw: Mapping[str, Any]) -> TimeSession | None:
        start = parse_ts(raw.get("start"))
        end = parse_ts(raw.get("end"))
        if start is None or end is None:
            return None
        try:
            duration = int(raw.get("duration", _ms_between(start, end)))
        except (TypeError, ValueError):
            duration = _ms_between(start, end)
        return cls(start=start, end=end, duration=max(0, duration))


@dataclass(slots=True)
class TimeTracking:
    """
    Per-task time tracking.

    States:
    - IDLE:    is_active=False, active_session_start=None
    - RUNNING: is_active=True,  active_session_start=<instant>

    total_time is derived from sessions so it can never drift from their sum.
    """

    is_active: bool = False
    active_session_start: datetime | None = None
    sessions: list[TimeSession] = field(default_factory=list)

    @property
    def total_time(self) -> int:
        return sum(s.duration for s in self.sessions)

    def start(self, now: datetime) -> None:
        if self.is_active:
            raise RuntimeError("session already open")
        self.is_active = True
        self.active_session_start = now

    def stop(self, now: datetime) -> TimeSession:
        if not self.is_active or self.active_session_start is None:
            raise RuntimeError("no open session")
        session = TimeSession(
            start=self.active_session_start,
            end=now,
            duration=_ms_between(self.active_session_start, now),
        )
        self.sessions.append(session)
        self.is_active = False
        self.active_session_start = None
        return session

    def current_session_time(self, now: datetime) -> int:
        if not self.is_active or self.active_session_start is None:
            return 0
        return _ms_between(self.active_session_start, now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "isActive": self.is_active,
            "activeSessionStart": (
                format_ts(self.active_session_start) if self.active_session_start else None
            ),
            "sessions": [s.to_dict() for s in self.sessions],
            "totalTime": self.total_time,
        }

    @classmethod
    def from_record(cls, raw: Any) -> TimeTracking:
        if not isinstance(raw, Mapping):
            return cls()
        sessions: list[TimeSession] = []
        for item in raw.get("sessions") or []:
            if isinstance(item, Mapping):
                s = TimeSession.from_record(item)
                if s is not None:
                    sessions.append(s)
        start = parse_ts(raw.get("activeSessionStart"))
        # An "active" flag without a start instant cannot be stopped; treat it as idle.
        is_active = bool(raw.get("isActive")) and start is not None
        return cls(
            is_active=is_active,
            active_session_start=start if is_active else None,
            sessions=sessions,
        )


@dataclass(slots=True)
class Task:
    id: str
    title: Any
    description: Any = ""
    completed: Any = False
    priority: Any = Priority.MEDIUM.value
    category: Any = DEFAULT_CATEGORY
    due_date: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    time_tracking: TimeTracking = field(default_factory=TimeTracking)

    # ---- construction ----

    @classmethod
    def new(cls, data: Mapping[str, Any], *, now: datetime | None = None) -> Task:
        """Build a fresh task from user-supplied fields, applying defaults."""
        now = now or utc_now()
        return cls(
            id=str(uuid.uuid4()),
            title=data.get("title") or "",
            description=data.get("description") or "",
            completed=bool(data.get("completed", False)),
            priority=data.get("priority") or Priority.MEDIUM.value,
            category=data.get("category") or DEFAULT_CATEGORY,
            due_date=data.get("due_date") or None,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def from_record(cls, raw: Mapping[str, Any]) -> Task:
        """Rebuild a task from its persisted (camelCase) form."""
        created = parse_ts(raw.get("createdAt")) or utc_now()
        updated = parse_ts(raw.get("updatedAt")) or created
        return cls(
            id=str(raw.get("id") or _record_id(raw)),
            title=raw.get("title") or "",
            description=raw.get("description") or "",
            completed=bool(raw.get("completed", False)),
            priority=raw.get("priority") or Priority.MEDIUM.value,
            category=raw.get("category") or DEFAULT_CATEGORY,
            due_date=raw.get("dueDate") or None,
            created_at=created,
            updated_at=max(updated, created),
            time_tracking=TimeTracking.from_record(raw.get("timeTracking")),
        )

    # ---- validation ----

    def validate(self) -> list[str]:
        """Return every rule violation (empty list means valid)."""
        errors: list[str] = []

        if not isinstance(self.title, str) or not self.title.strip():
            errors.append("Title is required")
        elif len(self.title.strip()) > TITLE_MAX_LEN:
            errors.append(f"Title must be less than {TITLE_MAX_LEN} characters")

        if self.description is not None and not isinstance(self.description, str):
            errors.append("Description must be a string")
        elif self.description and len(self.description.strip()) > DESCRIPTION_MAX_LEN:
            errors.append(f"Description must be less than {DESCRIPTION_MAX_LEN} characters")

        if not isinstance(self.completed, bool):
            errors.append("Completed must be a boolean")

        if not isinstance(self.priority, str) or self.priority not in PRIORITY_WEIGHTS:
            errors.append("Priority must be one of: high, medium, low")

        if not isinstance(self.category, str):
            errors.append("Category must be a string")
        elif len(self.category) > CATEGORY_MAX_LEN:
            errors.append(f"Category must be less than {CATEGORY_MAX_LEN} characters")

        if self.due_date is not None and parse_ts(self.due_date) is None:
            errors.append("Due date must be a valid date")

        return errors

    # ---- mutation ----

    def touch(self, now: datetime | None = None) -> None:
        now = now or utc_now()
        # updated_at must strictly increase at persisted (millisecond) precision.
        floor = self.updated_at + timedelta(milliseconds=1)
        if now < floor:
            now = floor
        self.updated_at = now

    def start_timer(self, now: datetime) -> None:
        self.time_tracking.start(now)
        self.touch(now)

    def stop_timer(self, now: datetime) -> TimeSession:
        session = self.time_tracking.stop(now)
        self.touch(now)
        return session

    # ---- derived predicates ----

    @property
    def due_at(self) -> datetime | None:
        return parse_ts(self.due_date)

    def is_overdue(self, now: datetime | None = None) -> bool:
        due = self.due_at
        if self.completed or due is None:
            return False
        return due < (now or utc_now())

    def is_due_today(self, now: datetime | None = None) -> bool:
        due = self.due_at
        if self.completed or due is None:
            return False
        local_now = (now or utc_now()).astimezone()
        start_of_today = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
        start_of_tomorrow = start_of_today + timedelta(days=1)
        return start_of_today <= due < start_of_tomorrow

    @property
    def priority_weight(self) -> int:
        if not isinstance(self.priority, str):
            return 2
        return PRIORITY_WEIGHTS.get(self.priority, 2)

    def current_session_time(self, now: datetime | None = None) -> int:
        return self.time_tracking.current_session_time(now or utc_now())

    # ---- serialization ----

    def to_dict(self) -> dict[str, Any]:
        title = self.title if isinstance(self.title, str) else ""
        description = self.description if isinstance(self.description, str) else ""
        return {
            "id": self.id,
            "title": title.strip(),
            "description": description.strip(),
            "completed": bool(self.completed),
            "priority": self.priority or Priority.MEDIUM.value,
            "category": self.category or DEFAULT_CATEGORY,
            "dueDate": self.due_date,
            "createdAt": format_ts(self.created_at),
            "updatedAt": format_ts(self.updated_at),
            "timeTracking": self.time_tracking.to_dict(),
        }
