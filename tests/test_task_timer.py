# tests/test_task_timer.py

from __future__ import annotations

import pytest

from tasktrack.core.errors import TaskNotFoundError, TimerConflictError
from tasktrack.tasks.task_repo import TaskRepository
from tasktrack.tasks.task_store import TaskStore
from tasktrack.tasks.task_timer import TimerCoordinator

from .fakes import FakeClock, FakeTaskStorage


@pytest.fixture()
def storage() -> FakeTaskStorage:
    return FakeTaskStorage()


@pytest.fixture()
def tasks_repo(storage: FakeTaskStorage, clock: FakeClock) -> TaskRepository:
    return TaskRepository(storage, clock=clock)


@pytest.fixture()
def timer(storage: FakeTaskStorage, clock: FakeClock) -> TimerCoordinator:
    return TimerCoordinator(storage, clock=clock)


def _active_ids(repo: TaskRepository) -> list[str]:
    return [t.id for t in repo.find_all() if t.time_tracking.is_active]


def test_start_then_stop_records_one_session(
    tasks_repo: TaskRepository, timer: TimerCoordinator, clock: FakeClock
) -> None:
    task = tasks_repo.create({"title": "Focus"})

    started = timer.start(task.id)
    assert started.time_tracking.is_active
    assert started.time_tracking.active_session_start == clock.now
    assert started.updated_at > task.updated_at

    clock.advance(minutes=25)
    stopped = timer.stop(task.id)

    tt = stopped.time_tracking
    assert not tt.is_active
    assert tt.active_session_start is None
    assert len(tt.sessions) == 1
    assert tt.sessions[0].duration == 25 * 60 * 1000
    assert tt.total_time == 25 * 60 * 1000


def test_starting_another_task_auto_stops_the_running_one(
    tasks_repo: TaskRepository, timer: TimerCoordinator, clock: FakeClock
) -> None:
    x = tasks_repo.create({"title": "X"})
    y = tasks_repo.create({"title": "Y"})

    timer.start(x.id)
    clock.advance(seconds=90)
    timer.start(y.id)

    x_now = tasks_repo.find_by_id(x.id)
    y_now = tasks_repo.find_by_id(y.id)
    assert not x_now.time_tracking.is_active
    assert len(x_now.time_tracking.sessions) == 1
    assert x_now.time_tracking.total_time == 90_000
    assert y_now.time_tracking.is_active
    assert _active_ids(tasks_repo) == [y.id]


def test_starting_the_running_task_again_is_a_conflict(
    tasks_repo: TaskRepository, timer: TimerCoordinator, storage: FakeTaskStorage
) -> None:
    task = tasks_repo.create({"title": "Busy"})
    timer.start(task.id)
    saves = storage.saves

    with pytest.raises(TimerConflictError):
        timer.start(task.id)

    assert storage.saves == saves
    assert _active_ids(tasks_repo) == [task.id]


def test_stop_without_session_is_a_conflict_and_mutates_nothing(
    tasks_repo: TaskRepository, timer: TimerCoordinator, storage: FakeTaskStorage
) -> None:
    task = tasks_repo.create({"title": "Idle"})
    before = storage.load()

    with pytest.raises(TimerConflictError):
        timer.stop(task.id)

    assert storage.load() == before


def test_unknown_task_is_not_found(timer: TimerCoordinator) -> None:
    with pytest.raises(TaskNotFoundError):
        timer.start("nope")
    with pytest.raises(TaskNotFoundError):
        timer.stop("nope")


def test_get_active_reports_live_duration(
    tasks_repo: TaskRepository, timer: TimerCoordinator, clock: FakeClock
) -> None:
    assert timer.get_active() is None

    task = tasks_repo.create({"title": "  Deep work  "})
    timer.start(task.id)
    started_at = clock.now

    clock.advance(seconds=61)
    active = timer.get_active()
    assert active is not None
    assert active.task_id == task.id
    assert active.title == "Deep work"
    assert active.start_time == started_at
    assert active.current_duration == 61_000
    assert active.to_dict()["formattedDuration"] == "00:01:01"

    clock.advance(seconds=60)
    assert timer.get_active().current_duration == 121_000


def test_stop_all_handles_zero_and_many(
    storage: FakeTaskStorage, tasks_repo: TaskRepository, timer: TimerCoordinator, clock: FakeClock
) -> None:
    assert timer.stop_all() == []

    a = tasks_repo.create({"title": "A"})
    b = tasks_repo.create({"title": "B"})

    # Simulate a file written by something that broke the single-timer rule.
    records = storage.load()
    for r in records:
        r["timeTracking"]["isActive"] = True
        r["timeTracking"]["activeSessionStart"] = "2024-05-01T09:00:00.000Z"
    storage.save(records)

    clock.advance(minutes=10)
    stopped = timer.stop_all()

    assert sorted(t.id for t in stopped) == sorted([a.id, b.id])
    assert _active_ids(tasks_repo) == []
    assert all(len(t.time_tracking.sessions) == 1 for t in tasks_repo.find_all())


def test_at_most_one_active_after_any_sequence(
    tasks_repo: TaskRepository, timer: TimerCoordinator, clock: FakeClock
) -> None:
    ids = [tasks_repo.create({"title": f"t{i}"}).id for i in range(3)]
    script = [("start", 0), ("start", 1), ("start", 2), ("stop", 2), ("start", 0), ("start", 1), ("stopall", None)]

    for op, idx in script:
        clock.advance(seconds=5)
        if op == "start":
            timer.start(ids[idx])
        elif op == "stop":
            timer.stop(ids[idx])
        else:
            timer.stop_all()
        assert len(_active_ids(tasks_repo)) <= 1


def test_stats(tasks_repo: TaskRepository, timer: TimerCoordinator, clock: FakeClock) -> None:
    empty = timer.get_stats()
    assert empty.total_sessions == 0
    assert empty.average_session_duration == 0

    a = tasks_repo.create({"title": "A"})
    b = tasks_repo.create({"title": "B"})
    tasks_repo.create({"title": "never tracked"})

    timer.start(a.id)
    clock.advance(seconds=10)
    timer.stop(a.id)
    timer.start(a.id)
    clock.advance(seconds=20)
    timer.start(b.id)  # auto-stops a
    clock.advance(seconds=30)
    timer.stop(b.id)

    stats = timer.get_stats()
    assert stats.total_time_tracked == 60_000
    assert stats.tasks_with_time_count == 2
    assert stats.total_sessions == 3
    assert stats.average_session_duration == pytest.approx(20_000)


def test_timer_state_survives_the_json_store(state) -> None:
    task = state.repo.create({"title": "Persisted"})
    state.timer.start(task.id)

    fresh = TimerCoordinator(TaskStore(state.store.path, backup_enabled=False))
    active = fresh.get_active()

    assert active is not None
    assert active.task_id == task.id
    stopped = fresh.stop(task.id)
    assert len(stopped.time_tracking.sessions) == 1
