# src/taskly/tasks/task_board.py

from __future__ import annotations

"""
Task board: the presentation-facing controller.

Owns the live subscription, the current snapshot (replaced wholesale on every
emission), the session-local filter state and the category set, and wires task
mutations to the reminder scheduler:

- add       -> store.create, then schedule once the store returned an id
- done      -> store.update, then cancel
- undone    -> store.update, then schedule
- edit      -> store.update, then schedule (due date or title may have changed)
- delete    -> cancel, then store.delete

Store failures propagate as TaskStoreError; reminder failures are logged by
the scheduler and never block the mutation.
"""

import logging
from collections.abc import Callable
from typing import Any

from ..core.errors import (
    InvalidCategoryError,
    InvalidTaskError,
    NotSignedInError,
    TaskNotFoundError,
    TaskStoreError,
)
from ..core.ports import Subscription, TaskStore
from ..core.state import Session
from .categories import CategorySet, CategoryStore
from .reminder_scheduler import ReminderScheduler
from .task_filters import TaskPartition, filter_segments, partition
from .task_models import FilterState, Reminder, Task, TaskSnapshot, TemporalFilter

logger = logging.getLogger(__name__)

BoardListener = Callable[["TaskBoard"], None]

_UNSET: Any = object()


class TaskBoard:
    def __init__(
            self,
            *,
            session: Session,
            store: TaskStore,
            scheduler: ReminderScheduler,
            categories: CategoryStore,
    ) -> None:
        self.session = session
        self._store = store
        self._scheduler = scheduler
        self._categories = categories

        self.tasks: tuple[Task, ...] = ()
        self.filters = FilterState()
        self.last_error: Exception | None = None

        self._subscription: Subscription | None = None
        self._listeners: list[BoardListener] = []

    # ---- subscription ----

    def start(self) -> None:
        """(Re)subscribe to the signed-in user's tasks."""
        self.stop()
        if not self.session.signed_in:
            logger.info("No signed-in user; task board is empty.")
            self.tasks = ()
            self._changed()
            return
        assert self.session.user_id is not None
        self._subscription = self._store.subscribe(self.session.user_id, self._on_snapshot)
        logger.info("Task board subscribed user=%s", self.session.user_id)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.remove()
            self._subscription = None

    def add_listener(self, listener: BoardListener) -> None:
        self._listeners.append(listener)

    def _on_snapshot(self, snapshot: TaskSnapshot) -> None:
        if not snapshot.ok:
            # Keep the last good snapshot; retrying is the store client's job.
            self.last_error = snapshot.error
            logger.error("Task subscription error user=%s: %s", self.session.user_id, snapshot.error)
            self._changed()
            return
        self.last_error = None
        self.tasks = snapshot.tasks
        logger.debug("Task snapshot received count=%d", len(self.tasks))
        self._changed()

    def _changed(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Task board listener failed")

    # ---- views ----

    def partition(self) -> TaskPartition:
        return partition(
            self.tasks,
            self.filters,
            now=self.session.now(),
            first_weekday=self.session.first_weekday,
        )

    def pending(self) -> tuple[Task, ...]:
        return self.partition().pending

    def completed(self) -> tuple[Task, ...]:
        return self.partition().completed

    def get(self, task_id: str) -> Task:
        for t in self.tasks:
            if t.id == task_id:
                return t
        raise TaskNotFoundError(task_id)

    # ---- filters ----

    @property
    def categories(self) -> CategorySet:
        return self._categories.current

    def segments(self) -> list[str | None]:
        return filter_segments(self.categories.symbols)

    def select_category(self, category: str | None) -> None:
        self.filters = self.filters.with_category(category)
        self._changed()

    def select_mode(self, mode: TemporalFilter) -> None:
        self.filters = self.filters.with_mode(mode)
        self._changed()

    def _toggle(self, mode: TemporalFilter) -> None:
        self.select_mode(TemporalFilter.ALL if self.filters.mode == mode else mode)

    def toggle_today(self) -> None:
        self._toggle(TemporalFilter.TODAY)

    def toggle_this_week(self) -> None:
        self._toggle(TemporalFilter.WEEK)

    def toggle_overdue(self) -> None:
        self._toggle(TemporalFilter.OVERDUE)

    def rename_category(self, index: int, symbol: str) -> CategorySet:
        """
        Replace one category slot. An active filter on the old symbol follows
        the new one. Existing tasks keep the symbol they were tagged with.
        """
        old = self.categories[index] if 0 <= index < len(self.categories) else None
        updated = self._categories.replace(index, symbol)
        if old is not None and self.filters.active_category == old:
            self.filters = self.filters.with_category(updated[index])
        self._changed()
        return updated

    # ---- mutations ----

    def _check_category(self, category: str) -> None:
        if category not in self.categories:
            raise InvalidCategoryError(
                f"Unknown category {category!r}; choose one of: {' '.join(self.categories)}"
            )

    def _user_id(self) -> str:
        if not self.session.signed_in:
            raise NotSignedInError()
        assert self.session.user_id is not None
        return self.session.user_id

    async def add_task(
            self,
            title: str,
            *,
            category: str | None = None,
            due_at: float | None = None,
            notes: str | None = None,
    ) -> Task:
        """
        Create a task and schedule its reminders once the store assigned an id.

        category defaults to the active category filter.
        """
        user_id = self._user_id()

        clean_title = (title or "").strip()
        if not clean_title:
            raise InvalidTaskError("Task title is required.")

        chosen = category or self.filters.active_category
        if not chosen:
            raise InvalidTaskError("Choose a category for the new task.")
        self._check_category(chosen)

        draft = Task(
            id=None,
            title=clean_title,
            category=chosen,
            done=False,
            due_at=due_at,
            notes=(notes or "").strip() or None,
        )

        task_id = await self._store.create(user_id, draft)
        created = draft.with_changes(id=task_id)
        logger.info("Task created id=%s category=%s due_at=%s", task_id, chosen, due_at)

        await self._scheduler.schedule(created)
        return created

    async def set_done(self, task_id: str, done: bool) -> Task:
        user_id = self._user_id()
        task = self.get(task_id)

        await self._store.update(user_id, task_id, {"done": bool(done)})
        updated = task.with_changes(done=bool(done))

        if updated.done:
            await self._scheduler.cancel(updated)
        else:
            await self._scheduler.schedule(updated)
        logger.info("Task %s -> %s", task_id, "done" if updated.done else "pending")
        return updated

    async def toggle_done(self, task_id: str) -> Task:
        return await self.set_done(task_id, not self.get(task_id).done)

    async def edit_task(
            self,
            task_id: str,
            *,
            title: str | None = None,
            category: str | None = None,
            notes: Any = _UNSET,
            due_at: Any = _UNSET,
    ) -> Task:
        """
        Edit fields of an existing task. notes/due_at accept None to clear them.
        """
        user_id = self._user_id()
        task = self.get(task_id)

        changes: dict[str, Any] = {}
        if title is not None:
            clean = title.strip()
            if not clean:
                raise InvalidTaskError("Task title is required.")
            changes["title"] = clean
        if category is not None and category != task.category:
            self._check_category(category)
            changes["category"] = category
        if notes is not _UNSET:
            changes["notes"] = (notes or "").strip() or None
        if due_at is not _UNSET:
            changes["due_at"] = float(due_at) if due_at is not None else None

        if not changes:
            return task

        await self._store.update(user_id, task_id, changes)
        updated = task.with_changes(**changes)

        if "due_at" in changes or "title" in changes:
            await self._scheduler.schedule(updated)
        return updated

    async def set_due_date(self, task_id: str, due_at: float | None) -> Task:
        return await self.edit_task(task_id, due_at=due_at)

    async def delete_task(self, task_id: str) -> None:
        user_id = self._user_id()
        known: Task | None
        try:
            known = self.get(task_id)
        except TaskNotFoundError:
            known = None

        await self._scheduler.cancel(known or Task(id=task_id, title="", category=""))
        try:
            await self._store.delete(user_id, task_id)
        except TaskStoreError:
            # The task is still stored; put its reminders back.
            if known is not None:
                await self._scheduler.schedule(known)
            raise
        logger.info("Task deleted id=%s", task_id)

    async def reschedule_all(self) -> list[Reminder]:
        """Re-issue reminders for every task in the current snapshot."""
        out: list[Reminder] = []
        for task in self.tasks:
            if task.done or task.due_at is None:
                continue
            out.extend(await self._scheduler.schedule(task))
        logger.info("Reminders re-issued count=%d", len(out))
        return out
