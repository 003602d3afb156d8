# src/taskly/tasks/task_filters.py

from __future__ import annotations

"""
Task filter engine.

Pure functions that split a task snapshot into the two display partitions:
- pending:   done == False, category filter, today/week/overdue filter
- completed: done == True,  category filter, today/week filter

"now" is an aware datetime; its tzinfo decides which calendar day and week a
due timestamp falls on. Input order (ascending creation time) is preserved.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from .task_models import FilterState, Task

SECTION_PENDING = "pending"
SECTION_COMPLETED = "completed"


@dataclass(slots=True, frozen=True)
class TaskPartition:
    """
    Both partitions plus what a caller needs to decide section count.

    completed_relevant is False while the overdue-only filter is active: the
    view is conventionally single-section then.
    """

    pending: tuple[Task, ...]
    completed: tuple[Task, ...]
    completed_relevant: bool = True

    @property
    def sections(self) -> tuple[str, ...]:
        """Names of partitions that are relevant and non-empty, in display order."""
        out: list[str] = []
        if self.pending:
            out.append(SECTION_PENDING)
        if self.completed_relevant and self.completed:
            out.append(SECTION_COMPLETED)
        return tuple(out)

    @property
    def is_empty(self) -> bool:
        return not self.sections


def _due_local(task: Task, now: datetime) -> datetime | None:
    if task.due_at is None:
        return None
    return datetime.fromtimestamp(task.due_at, tz=now.tzinfo)


def week_start(day: date, first_weekday: int = 0) -> date:
    """First day of the week containing `day` (0 = Monday .. 6 = Sunday)."""
    return day - timedelta(days=(day.weekday() - first_weekday) % 7)


def is_due_today(task: Task, now: datetime) -> bool:
    due = _due_local(task, now)
    return due is not None and due.date() == now.date()


def is_due_this_week(task: Task, now: datetime, first_weekday: int = 0) -> bool:
    due = _due_local(task, now)
    if due is None:
        return False
    start = week_start(now.date(), first_weekday)
    return start <= due.date() < start + timedelta(days=7)


def is_overdue(task: Task, now: datetime) -> bool:
    # Completed tasks are never overdue.
    if task.done or task.due_at is None:
        return False
    return task.due_at < now.timestamp()


def _matches_common(task: Task, filters: FilterState, now: datetime, first_weekday: int) -> bool:
    if filters.active_category is not None and task.category != filters.active_category:
        return False
    if filters.show_today_only and not is_due_today(task, now):
        return False
    if filters.show_this_week_only and not is_due_this_week(task, now, first_weekday):
        return False
    return True


def pending(
        tasks: Iterable[Task],
        filters: FilterState,
        *,
        now: datetime,
        first_weekday: int = 0,
) -> tuple[Task, ...]:
    return tuple(
        t
        for t in tasks
        if not t.done
        and _matches_common(t, filters, now, first_weekday)
        and (not filters.show_overdue_only or is_overdue(t, now))
    )


def completed(
        tasks: Iterable[Task],
        filters: FilterState,
        *,
        now: datetime,
        first_weekday: int = 0,
) -> tuple[Task, ...]:
    return tuple(t for t in tasks if t.done and _matches_common(t, filters, now, first_weekday))


def partition(
        tasks: Sequence[Task],
        filters: FilterState,
        *,
        now: datetime,
        first_weekday: int = 0,
) -> TaskPartition:
    return TaskPartition(
        pending=pending(tasks, filters, now=now, first_weekday=first_weekday),
        completed=completed(tasks, filters, now=now, first_weekday=first_weekday),
        completed_relevant=not filters.show_overdue_only,
    )


def filter_segments(categories: Sequence[str]) -> list[str | None]:
    """
    Segments of the category filter control: None ("all") first, then one per
    category. An empty category set still yields the "all" segment.
    """
    return [None, *categories]
