# src/taskly/core/state.py

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..tasks.categories import CategoryStore
    from ..tasks.reminder_scheduler import ReminderScheduler
    from ..tasks.task_board import TaskBoard
    from .ports import NotificationDispatcher, TaskStore


@dataclass(slots=True)
class Session:
    """
    Who is signed in and how "now" is read.

    Passed explicitly to the components that need identity or wall-clock time
    instead of a process-wide current-user holder.
    """

    user_id: str | None
    tz: tzinfo = timezone.utc
    first_weekday: int = 0
    clock: Callable[[], float] = time.time

    @property
    def signed_in(self) -> bool:
        return bool(self.user_id)

    def now_ts(self) -> float:
        return float(self.clock())

    def now(self) -> datetime:
        return datetime.fromtimestamp(self.now_ts(), tz=self.tz)


@dataclass
class AppState:
    # Store Settings on the state for easy access in command handlers.
    settings: Any

    session: Session
    task_store: TaskStore
    dispatcher: NotificationDispatcher
    scheduler: ReminderScheduler
    categories: CategoryStore
    board: TaskBoard

    # Console-only: short row numbers (1..n) -> task ids from the last /list.
    listing: dict[int, str] = field(default_factory=dict)
