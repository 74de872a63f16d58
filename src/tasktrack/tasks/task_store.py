# src/tasktrack/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import os
import shutil
import threading
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from typing import Any

from ..core.errors import StorageError

logger = logging.getLogger(__name__)

# One lock per backing file, shared by every TaskStore instance pointing at it.
_FILE_LOCKS: dict[Path, threading.RLock] = {}
_FILE_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    key = path.resolve()
    with _FILE_LOCKS_GUARD:
        lock = _FILE_LOCKS.get(key)
        if lock is None:
            lock = threading.RLock()
            _FILE_LOCKS[key] = lock
        return lock


class TaskStore:
    """
    JSON file task store.

    The whole collection lives in one JSON array and is always read and written in full:
    - load() re-reads the file on every call (no cache)
    - save() writes a temp file next to the target and renames it over the original

    Thread-safety:
    - callers wrap a load-modify-save cycle in `with store.locked():`
    - the lock is re-entrant and keyed on the resolved file path
    """

    def __init__(self, path: str | Path = "tasks.json", *, backup_enabled: bool = True) -> None:
        self._path = Path(path)
        self._backup_enabled = bool(backup_enabled)
        self._lock = _lock_for(self._path)
        logger.info("TaskStore ready file=%s backups=%s", self._path, self._backup_enabled)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def backup_enabled(self) -> bool:
        return self._backup_enabled

    @contextlib.contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    # ---- public API ----

    def load(self) -> list[dict[str, Any]]:
        """
        Return every persisted task record.

        Missing file -> created with [] and [] returned.
        Corrupt file (bad encoding, bad JSON or not an array) -> logged, [] returned.
        Any other OSError -> StorageError.
        """
        with self._lock:
            if not self._path.exists():
                self.save([])
                return []

            try:
                raw = self._path.read_bytes()
            except OSError as e:
                raise StorageError(f"Failed to read {self._path}: {e}") from e

            try:
                data = json.loads(raw)
            except (json.JSONDecodeError, UnicodeDecodeError):
                logger.warning("Task file %s is not valid UTF-8 JSON; treating as empty.", self._path, exc_info=True)
                return []

            if not isinstance(data, list):
                logger.warning("Task file %s does not hold a JSON array; treating as empty.", self._path)
                return []

            records = [r for r in data if isinstance(r, dict)]
            logger.debug("Loaded %d task records from %s", len(records), self._path)
            return records

    def save(self, tasks: list[dict[str, Any]]) -> None:
        """Overwrite the task file with the full collection (pretty-printed)."""
        with self._lock:
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                tmp.write_text(json.dumps(tasks, ensure_ascii=False, indent=2), "utf-8")
                os.replace(tmp, self._path)
            except OSError as e:
                with contextlib.suppress(OSError):
                    tmp.unlink()
                raise StorageError(f"Failed to write {self._path}: {e}") from e
            logger.debug("Saved %d task records to %s", len(tasks), self._path)

    def backup(self) -> Path | None:
        """
        Copy the current file verbatim to tasks-backup-<timestamp>.json in the same directory.

        No-op (returns None) if backups are disabled or there is nothing to copy.
        Best-effort: a failed copy is logged, not raised.
        """
        if not self._backup_enabled:
            return None

        with self._lock:
            if not self._path.exists():
                return None

            stamp = datetime.now().astimezone().isoformat(timespec="milliseconds")
            stamp = stamp.replace(":", "-").replace(".", "-")
            target = self._backup_target(stamp)
            try:
                shutil.copyfile(self._path, target)
            except OSError:
                logger.exception("Failed to back up %s to %s", self._path, target)
                return None

        logger.info("Tasks backed up to %s", target)
        return target

    def _backup_target(self, stamp: str) -> Path:
        """First free backup name for `stamp`; later ones in the same millisecond get -1, -2, ..."""
        base = f"{self._path.stem}-backup-{stamp}"
        target = self._path.parent / f"{base}{self._path.suffix}"
        n = 0
        while target.exists():
            n += 1
            target = self._path.parent / f"{base}-{n}{self._path.suffix}"
        return target
