# src/tasktrack/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then starts connectors:
- HTTP API in a background thread (optional),
- console REPL in the main thread (optional).
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import backup_on_start, create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..connectors.http_api import HttpBackgroundRunner, start_http_in_background
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _wait_for_signal() -> None:
    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)
    except (ValueError, OSError):
        # Some platforms may not support SIGTERM, etc.
        logger.debug("Signal handlers not installed.", exc_info=True)

    stop_main.wait()


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/tasktrack")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s (env=%s)...", settings.app_name, settings.env)

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)
    backup_on_start(state)

    http_runner: HttpBackgroundRunner | None = start_http_in_background(state)

    if http_runner is None and not settings.console_enabled:
        logger.warning("Both HTTP and console connectors are disabled; nothing to do.")
        return

    try:
        if settings.console_enabled:
            # The REPL handles Ctrl+C itself (KeyboardInterrupt).
            run_console_loop(state)
        else:
            logger.info("Console disabled. Serving HTTP only. Press Ctrl+C to stop.")
            _wait_for_signal()

    finally:
        if http_runner is not None:
            http_runner.stop()
            http_runner.join(timeout=10.0)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
