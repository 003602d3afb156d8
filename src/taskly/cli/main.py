# src/taskly/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, subscribes the board to the task store,
re-issues reminders for pending tasks, then runs the console REPL (or just
keeps reminder timers alive when the console is disabled).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import print_notification, run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        state.board.stop()
    except Exception:
        logger.exception("Failed to stop task board subscription.")

    # Pending timers die with the process; reminders are re-issued on next start.
    shutdown = getattr(state.dispatcher, "shutdown", None)
    if shutdown is not None:
        try:
            shutdown()
        except Exception:
            logger.debug("Dispatcher shutdown failed.", exc_info=True)

    try:
        state.task_store.close()
    except Exception:
        logger.debug("Task store close failed.", exc_info=True)


async def _run(settings) -> None:
    state = create_initial_state(settings=settings, sink=print_notification)

    state.board.start()
    await state.board.reschedule_all()

    stop_main = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not available on every platform/loop (e.g. Windows).
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop_main.set)

    try:
        if settings.console_enabled:
            console = asyncio.create_task(run_console_loop(state))
            stopper = asyncio.create_task(stop_main.wait())
            done, _ = await asyncio.wait({console, stopper}, return_when=asyncio.FIRST_COMPLETED)
            if console not in done:
                logger.info("Signal received, shutting down...")
            elif console.exception() is not None:
                logger.error("Console loop failed", exc_info=console.exception())
            # The input() worker thread is not interruptible; it ends on the next line or EOF.
            for t in (console, stopper):
                t.cancel()
        else:
            logger.info("Console disabled. Keeping reminders alive. Press Ctrl+C to stop.")
            await stop_main.wait()
    finally:
        _shutdown(state)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/taskly")
    log_file = setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s (log file %s)...", getattr(settings, "app_name", "taskly"), log_file)

    try:
        asyncio.run(_run(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    logger.info("Bye.")


if __name__ == "__main__":
    main()
