# src/taskly/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum


class TemporalFilter(StrEnum):
    """
    Single-select date filter used by the board.

    FilterState still stores three flags; selecting a mode sets exactly one of
    them (or none for ALL).
    """

    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    OVERDUE = "overdue"

    @classmethod
    def parse(cls, raw: str | None) -> TemporalFilter:
        """Case-insensitive mode name; empty means ALL, unknown names raise ValueError."""
        if not raw or not raw.strip():
            return cls.ALL
        return cls(raw.strip().lower())


@dataclass(slots=True, frozen=True)
class Task:
    # None until the store assigns one.
    id: str | None
    title: str
    category: str
    done: bool = False

    # POSIX timestamps (seconds).
    due_at: float | None = None
    notes: str | None = None
    created_at: float | None = None

    def with_changes(self, **changes) -> Task:
        return replace(self, **changes)


# Fields a store update may touch; id and created_at are owned by the store.
EDITABLE_FIELDS: frozenset[str] = frozenset({"title", "category", "done", "due_at", "notes"})


@dataclass(slots=True, frozen=True)
class FilterState:
    active_category: str | None = None
    show_today_only: bool = False
    show_this_week_only: bool = False
    show_overdue_only: bool = False

    @property
    def mode(self) -> TemporalFilter:
        if self.show_overdue_only:
            return TemporalFilter.OVERDUE
        if self.show_today_only:
            return TemporalFilter.TODAY
        if self.show_this_week_only:
            return TemporalFilter.WEEK
        return TemporalFilter.ALL

    def with_mode(self, mode: TemporalFilter) -> FilterState:
        """Select one temporal mode and clear the other two flags."""
        return replace(
            self,
            show_today_only=mode == TemporalFilter.TODAY,
            show_this_week_only=mode == TemporalFilter.WEEK,
            show_overdue_only=mode == TemporalFilter.OVERDUE,
        )

    def with_category(self, category: str | None) -> FilterState:
        return replace(self, active_category=category)


@dataclass(slots=True, frozen=True)
class TaskSnapshot:
    """
    One emission of a store subscription: the full ordered task collection,
    or the error that prevented reading it.
    """

    tasks: tuple[Task, ...] = ()
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True, frozen=True)
class Reminder:
    identifier: str
    task_key: str
    fire_at: float
    title: str
    body: str
