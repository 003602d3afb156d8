# src/taskly/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from .local_dispatcher import FiredNotification

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def print_notification(note: FiredNotification) -> None:
    """Sink for the local dispatcher: show a fired reminder in the console."""
    _print_ts(f"[REMINDER] {note.title}: {note.body}")


async def run_console_loop(state: AppState) -> None:
    """
    Read slash commands from stdin until /exit or EOF.

    input() runs in a worker thread so reminder timers keep firing on the
    event loop while the prompt waits.
    """
    logger.info("Console connector started (user=%s).", state.session.user_id)
    _print_ts("[CONSOLE] Use /help for commands, /list to see tasks, /exit to quit.\n")

    while True:
        try:
            line = (await asyncio.to_thread(input, "taskly> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break

        if not line:
            continue

        if line.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not line.startswith("/"):
            # Bare text is a shortcut for /add.
            line = f"/add {line}"

        try:
            reply = await command_registry.handle(state, line, emit=_print_ts)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is not None:
            print(reply, flush=True)

    logger.info("Console connector finished.")
