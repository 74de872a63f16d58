# src/tasktrack/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Minimum console level per logger-name prefix; first match wins.
_CONSOLE_THRESHOLDS: tuple[tuple[str, int], ...] = (
    ("tasktrack.connectors.http_", logging.WARNING),
    ("tasktrack.", logging.NOTSET),
    ("uvicorn", logging.WARNING),
    ("py.warnings", logging.ERROR),
)


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keeps the console readable while the REPL is in use.

    Task and timer logs pass. The HTTP connector and uvicorn only show warnings,
    since they run in a background thread. Everything else needs ERROR.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for prefix, level in _CONSOLE_THRESHOLDS:
            if record.name.startswith(prefix):
                return record.levelno >= level
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/tasktrack",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Install a filtered stderr handler and an unfiltered `tasktrack.log` file handler
    on the root logger. Existing root handlers are replaced.

    Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "tasktrack.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    # warnings.warn(...) arrives as "py.warnings"
    logging.captureWarnings(True)
    return log_file
