# src/taskly/tasks/reminder_scheduler.py

from __future__ import annotations

"""
Reminder scheduler.

For every task with a future due date there are up to two local reminders:
- "<id>#at"  fires exactly at due_at
- "<id>#30m" fires 30 minutes before due_at

Each slot is registered only if its instant is still in the future when
schedule() runs. schedule() always cancels both identifiers first, so calling
it again replaces rather than duplicates. Delivery belongs to the injected
NotificationDispatcher; the scheduler never re-validates after registering.
"""

import asyncio
import contextlib
import hashlib
import logging
import time
from collections.abc import AsyncIterator, Callable
from enum import StrEnum

from ..core.ports import NotificationDispatcher
from .task_models import Reminder, Task

logger = logging.getLogger(__name__)

PRE_DUE_LEAD_SECONDS = 30 * 60


class ReminderSlot(StrEnum):
    AT_DUE = "at"
    PRE_DUE = "30m"


def task_key(task: Task) -> str:
    """
    Identity used for reminder identifiers.

    Persisted tasks use their store id. Unsaved tasks get a placeholder derived
    from their content, so the same unsaved task maps to the same identifiers;
    such reminders cannot be found later by id, callers should schedule only
    after the store assigned one.
    """
    if task.id:
        return task.id
    seed = f"{task.title}\x1f{task.category}\x1f{task.created_at}\x1f{task.notes or ''}"
    return "local-" + hashlib.sha1(seed.encode("utf-8")).hexdigest()[:16]


def reminder_id(key: str, slot: ReminderSlot) -> str:
    return f"{key}#{slot.value}"


def reminder_ids(key: str) -> set[str]:
    """Both reminder identifiers that belong to a task key."""
    return {reminder_id(key, slot) for slot in ReminderSlot}


def plan_reminders(
        task: Task,
        *,
        now_ts: float,
        title_at: str = "Task due now",
        title_pre: str = "Task due in 30 minutes",
) -> list[Reminder]:
    """
    Which reminders should exist for `task` as of now_ts.

    Returns [] for done tasks and tasks without a due date; otherwise the
    at-due and pre-due reminders whose instants are strictly in the future.
    """
    if task.done or task.due_at is None:
        return []

    key = task_key(task)
    due = float(task.due_at)
    out: list[Reminder] = []

    if due > now_ts:
        out.append(
            Reminder(
                identifier=reminder_id(key, ReminderSlot.AT_DUE),
                task_key=key,
                fire_at=due,
                title=title_at,
                body=task.title,
            )
        )

    before = due - PRE_DUE_LEAD_SECONDS
    if before > now_ts:
        out.append(
            Reminder(
                identifier=reminder_id(key, ReminderSlot.PRE_DUE),
                task_key=key,
                fire_at=before,
                title=title_pre,
                body=task.title,
            )
        )

    return out


class ReminderScheduler:
    """
    Issues register/cancel requests to a NotificationDispatcher.

    Operations for the same task key are serialized with a per-key lock, so the
    cancel of a re-schedule always completes before its new registrations.
    Keys are independent of each other.

    Dispatcher failures are logged and swallowed: reminders never block task
    mutations.
    """

    def __init__(
            self,
            dispatcher: NotificationDispatcher,
            *,
            clock: Callable[[], float] = time.time,
            title_at: str = "Task due now",
            title_pre: str = "Task due in 30 minutes",
    ) -> None:
        self._dispatcher = dispatcher
        self._clock = clock
        self._title_at = title_at
        self._title_pre = title_pre
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @contextlib.asynccontextmanager
    async def _serialized(self, key: str) -> AsyncIterator[None]:
        # The lock is dropped once nobody holds or waits for it.
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if self._lock_users[key] == 0:
                del self._lock_users[key]
                del self._locks[key]

    async def schedule(self, task: Task) -> list[Reminder]:
        """
        Replace whatever reminders exist for `task` with the ones it needs now.

        Returns the reminders the dispatcher accepted.
        """
        key = task_key(task)
        if not task.id:
            logger.warning("Scheduling reminders for unsaved task under placeholder key=%s", key)

        async with self._serialized(key):
            await self._cancel_key(key)

            planned = plan_reminders(
                task,
                now_ts=float(self._clock()),
                title_at=self._title_at,
                title_pre=self._title_pre,
            )

            registered: list[Reminder] = []
            for reminder in planned:
                try:
                    await self._dispatcher.register(
                        identifier=reminder.identifier,
                        fire_at=reminder.fire_at,
                        title=reminder.title,
                        body=reminder.body,
                    )
                except Exception:
                    logger.exception("Reminder register failed id=%s", reminder.identifier)
                    continue
                registered.append(reminder)

            logger.debug(
                "Reminders scheduled key=%s count=%d due_at=%s done=%s",
                key,
                len(registered),
                task.due_at,
                task.done,
            )
            return registered

    async def cancel(self, task: Task) -> None:
        key = task_key(task)
        async with self._serialized(key):
            await self._cancel_key(key)

    async def _cancel_key(self, key: str) -> None:
        ids = reminder_ids(key)
        try:
            await self._dispatcher.cancel(ids)
        except Exception:
            logger.exception("Reminder cancel failed key=%s", key)
