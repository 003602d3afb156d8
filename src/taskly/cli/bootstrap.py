# src/taskly/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- builds the Session from settings,
- wires the SQLite task store, the local notification dispatcher, the reminder
  scheduler and the category store into a TaskBoard and an AppState.
"""

from __future__ import annotations

import logging
import time

from ..config import get_settings, resolve_timezone
from ..connectors.local_dispatcher import LocalNotificationDispatcher, NotificationSink
from ..core.state import AppState, Session
from ..tasks.categories import CategoryStore
from ..tasks.reminder_scheduler import ReminderScheduler
from ..tasks.task_board import TaskBoard
from ..tasks.task_store import SqliteTaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.categories_path.parent.mkdir(parents=True, exist_ok=True)


def build_session(settings) -> Session:
    return Session(
        user_id=settings.user_id,
        tz=resolve_timezone(settings.timezone),
        first_weekday=int(settings.first_weekday),
        clock=time.time,
    )


def create_initial_state(*, settings=None, sink: NotificationSink | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    session = build_session(settings)

    if sink is None:

        def sink(note) -> None:
            logger.info("Reminder fired id=%s: %s", note.identifier, note.body)

    dispatcher = LocalNotificationDispatcher(sink, clock=session.clock)
    scheduler = ReminderScheduler(
        dispatcher,
        clock=session.clock,
        title_at=settings.reminder_title_at,
        title_pre=settings.reminder_title_pre,
    )
    task_store = SqliteTaskStore(settings.tasks_db_path)
    categories = CategoryStore(settings.categories_path)

    board = TaskBoard(
        session=session,
        store=task_store,
        scheduler=scheduler,
        categories=categories,
    )

    return AppState(
        settings=settings,
        session=session,
        task_store=task_store,
        dispatcher=dispatcher,
        scheduler=scheduler,
        categories=categories,
        board=board,
    )
