# tests/test_task_repo.py

from __future__ import annotations

import json
import threading

import pytest

from tasktrack.core.errors import TaskNotFoundError, ValidationError
from tasktrack.tasks.task_models import parse_ts
from tasktrack.tasks.task_repo import TaskRepository
from tasktrack.tasks.task_store import TaskStore


def test_create_with_defaults(repo: TaskRepository) -> None:
    task = repo.create({"title": "Buy groceries"})

    assert task.priority == "medium"
    assert task.category == "general"
    assert task.completed is False
    assert task.created_at == task.updated_at

    stored = repo.find_by_id(task.id)
    assert stored is not None
    assert stored.to_dict() == task.to_dict()


def test_create_assigns_unique_ids(repo: TaskRepository) -> None:
    ids = {repo.create({"title": f"task {i}"}).id for i in range(5)}
    assert len(ids) == 5
    assert len(repo.find_all()) == 5


def test_create_empty_title_fails_without_writing(repo: TaskRepository, store: TaskStore) -> None:
    with pytest.raises(ValidationError) as ei:
        repo.create({"title": ""})

    assert "Title is required" in ei.value.errors
    assert not store.path.exists()


def test_create_too_long_title(repo: TaskRepository) -> None:
    with pytest.raises(ValidationError) as ei:
        repo.create({"title": "a" * 201})
    assert ei.value.errors == ["Title must be less than 200 characters"]


def test_create_reports_all_violations(repo: TaskRepository) -> None:
    with pytest.raises(ValidationError) as ei:
        repo.create({"title": "", "priority": "urgent", "category": "x" * 60})
    assert len(ei.value.errors) == 3


def test_serialized_task_round_trips_through_store(repo: TaskRepository, store: TaskStore) -> None:
    task = repo.create({"title": "Report", "description": "Q2", "priority": "high", "due_date": "2024-07-01"})

    on_disk = json.loads(store.path.read_text("utf-8"))

    assert on_disk == [task.to_dict()]


def test_update_only_touches_supplied_fields(repo: TaskRepository) -> None:
    task = repo.create({"title": "Old", "description": "keep me", "priority": "low"})

    updated = repo.update(task.id, {"title": "New", "completed": True})

    assert updated.title == "New"
    assert updated.completed is True
    assert updated.description == "keep me"
    assert updated.priority == "low"
    assert updated.created_at == task.created_at


def test_empty_update_only_bumps_updated_at(repo: TaskRepository) -> None:
    task = repo.create({"title": "Same"})
    before = task.to_dict()

    after = repo.update(task.id, {}).to_dict()

    assert parse_ts(after["updatedAt"]) > parse_ts(before["updatedAt"])
    before.pop("updatedAt")
    after.pop("updatedAt")
    assert after == before


def test_due_date_null_clears_and_absent_keeps(repo: TaskRepository) -> None:
    task = repo.create({"title": "Due", "due_date": "2024-07-01T10:00:00Z"})

    kept = repo.update(task.id, {"title": "Still due"})
    assert kept.due_date == "2024-07-01T10:00:00Z"

    cleared = repo.update(task.id, {"due_date": None})
    assert cleared.due_date is None
    assert repo.find_by_id(task.id).due_date is None


def test_update_missing_id_is_not_found(repo: TaskRepository) -> None:
    repo.create({"title": "exists"})
    with pytest.raises(TaskNotFoundError):
        repo.update("missing-id", {"title": "x"})


def test_update_revalidates_whole_task_and_does_not_write(repo: TaskRepository) -> None:
    task = repo.create({"title": "Valid"})

    with pytest.raises(ValidationError) as ei:
        repo.update(task.id, {"priority": "urgent"})

    assert ei.value.errors == ["Priority must be one of: high, medium, low"]
    assert repo.find_by_id(task.id).priority == "medium"


def test_delete_twice(repo: TaskRepository) -> None:
    task = repo.create({"title": "Temp"})

    assert repo.delete(task.id) is True
    assert repo.delete(task.id) is False
    assert repo.find_by_id(task.id) is None


def test_find_by_status_partitions_collection(repo: TaskRepository) -> None:
    a = repo.create({"title": "a"})
    repo.create({"title": "b"})
    repo.update(a.id, {"completed": True})

    done = {t.id for t in repo.find_by_status(True)}
    open_ = {t.id for t in repo.find_by_status(False)}

    assert done.isdisjoint(open_)
    assert done | open_ == {t.id for t in repo.find_all()}
    assert done == {a.id}


def test_find_by_priority_and_category(repo: TaskRepository) -> None:
    repo.create({"title": "a", "priority": "high", "category": "work"})
    repo.create({"title": "b", "priority": "low", "category": "home"})
    repo.create({"title": "c", "priority": "high", "category": "home"})

    assert sorted(t.title for t in repo.find_by_priority("high")) == ["a", "c"]
    assert sorted(t.title for t in repo.find_by_category("home")) == ["b", "c"]
    assert repo.get_categories() == {"work", "home"}


def test_statistics(repo: TaskRepository) -> None:
    empty = repo.get_statistics()
    assert empty.total == 0
    assert empty.completion_rate == 0

    ids = [repo.create({"title": f"t{i}"}).id for i in range(3)]
    repo.update(ids[0], {"completed": True})

    stats = repo.get_statistics()
    assert (stats.total, stats.completed, stats.active) == (3, 1, 2)
    assert stats.completion_rate == pytest.approx(33.333, rel=1e-3)
    assert stats.to_dict()["completionRate"] == stats.completion_rate


def test_every_read_goes_to_disk(repo: TaskRepository, store: TaskStore) -> None:
    repo.create({"title": "first"})
    records = store.load()
    records[0]["title"] = "edited elsewhere"
    store.save(records)

    assert repo.find_all()[0].title == "edited elsewhere"


def test_concurrent_creates_do_not_lose_writes(store: TaskStore) -> None:
    repos = [TaskRepository(TaskStore(store.path, backup_enabled=False)) for _ in range(4)]

    def worker(r: TaskRepository, n: int) -> None:
        for i in range(10):
            r.create({"title": f"w{n}-{i}"})

    threads = [threading.Thread(target=worker, args=(r, n)) for n, r in enumerate(repos)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(TaskRepository(store).find_all()) == 40


def test_wire_name_due_date_is_accepted(repo: TaskRepository) -> None:
    task = repo.create({"title": "Due", "dueDate": "2024-07-01"})
    assert task.due_date == "2024-07-01"

    moved = repo.update(task.id, {"dueDate": "2024-08-01"})
    assert moved.due_date == "2024-08-01"

    cleared = repo.update(task.id, {"dueDate": None})
    assert cleared.due_date is None


def test_record_without_id_keeps_the_same_id_across_reads(repo: TaskRepository, store: TaskStore) -> None:
    store.save([{"title": "legacy", "createdAt": "2024-01-01T00:00:00.000Z"}])

    listed = repo.find_all()[0]
    assert listed.id == repo.find_all()[0].id

    found = repo.find_by_id(listed.id)
    assert found is not None
    assert found.title == "legacy"

    repo.update(listed.id, {"completed": True})
    assert store.load()[0]["id"] == listed.id
