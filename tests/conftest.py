# tests/conftest.py

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest

from taskly.core.state import Session
from taskly.tasks.categories import CategoryStore
from taskly.tasks.reminder_scheduler import ReminderScheduler
from taskly.tasks.task_board import TaskBoard

from .fakes import FakeDispatcher, FakeTaskStore, FixedClock

# Wednesday, noon UTC. Week (Monday start) is 2026-10-12 .. 2026-10-18.
NOW = datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(NOW.timestamp())


@pytest.fixture()
def session(clock: FixedClock) -> Session:
    return Session(user_id="u1", tz=timezone.utc, first_weekday=0, clock=clock)


@pytest.fixture()
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture()
def scheduler(dispatcher: FakeDispatcher, clock: FixedClock) -> ReminderScheduler:
    return ReminderScheduler(dispatcher, clock=clock)


@pytest.fixture()
def fake_store() -> FakeTaskStore:
    return FakeTaskStore()


@pytest.fixture()
def categories(tmp_path: Path) -> CategoryStore:
    return CategoryStore(tmp_path / "categories.json")


@pytest.fixture()
def board(
    session: Session,
    fake_store: FakeTaskStore,
    scheduler: ReminderScheduler,
    categories: CategoryStore,
) -> TaskBoard:
    b = TaskBoard(session=session, store=fake_store, scheduler=scheduler, categories=categories)
    b.start()
    return b


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskly-test",
        log_level="DEBUG",
        user_id="u1",
        timezone=None,
        first_weekday=0,
        console_enabled=False,
        reminder_title_at="Due now",
        reminder_title_pre="Due in 30 minutes",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        categories_path=tmp_path / "categories.json",
    )
