# src/tasktrack/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.errors import StorageError
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (file=%s).", state.store.path)
    _print_ts("[CONSOLE] Type /help for commands. Plain text creates a task. Use /exit to quit.\n")

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        try:
            user_input = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        # Plain text is shorthand for /add.
        line = user_input if user_input.startswith("/") else f"/add {user_input}"

        try:
            reply = command_registry.handle(state, line, emit=emit)
        except StorageError:
            logger.exception("Storage failure while handling %r.", line)
            reply = "Could not read or write the task file (see log)."
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is not None:
            _print_ts(reply)

    logger.info("Console connector finished.")
