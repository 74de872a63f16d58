# src/tasktrack/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Test environment gets its own data directory and no backups.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

ENV_PREFIX = "TASKTRACK"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    env: str
    log_level: str

    # ---- Storage (ignored by git) ----
    data_dir: Path
    tasks_file: Path
    backup_enabled: bool
    backup_on_start: bool

    # ---- Connectors ----
    http_enabled: bool
    http_host: str
    http_port: int
    cors_origins: List[str]
    static_dir: Path
    console_enabled: bool

    @property
    def is_test(self) -> bool:
        return self.env == "test"

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "tasktrack")
        env = _env(_k("ENV"), "development").strip().lower() or "development"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        default_data_dir = Path(".local/tasktrack-test") if env == "test" else Path(".local/tasktrack")
        data_dir = _env_path(_k("DATA_DIR"), default_data_dir)
        tasks_file = _env_path(_k("TASKS_FILE"), data_dir / "tasks.json")

        # Backups are noise in throwaway test data.
        backup_enabled = _env_bool(_k("BACKUP_ENABLED"), env != "test")
        backup_on_start = _env_bool(_k("BACKUP_ON_START"), True)

        http_enabled = _env_bool(_k("HTTP_ENABLED"), True)
        http_host = _env(_k("HTTP_HOST"), "127.0.0.1")
        http_port = _env_int(_k("HTTP_PORT"), _env_int("PORT", 3000))
        cors_origins = _env_list(_k("CORS_ORIGINS"), ["*"])
        static_dir = _env_path(_k("STATIC_DIR"), Path("public"))
        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), False)

        return Settings(
            app_name=app_name,
            env=env,
            log_level=log_level,
            data_dir=data_dir,
            tasks_file=tasks_file,
            backup_enabled=backup_enabled,
            backup_on_start=backup_on_start,
            http_enabled=http_enabled,
            http_host=http_host,
            http_port=http_port,
            cors_origins=cors_origins,
            static_dir=static_dir,
            console_enabled=console_enabled,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
