# tests/test_task_board.py

from __future__ import annotations

from datetime import timedelta

import pytest

from taskly.core.errors import InvalidCategoryError, InvalidTaskError, NotSignedInError, TaskStoreError
from taskly.core.state import Session
from taskly.tasks.categories import CategoryStore
from taskly.tasks.reminder_scheduler import ReminderScheduler
from taskly.tasks.task_board import TaskBoard
from taskly.tasks.task_models import TemporalFilter

from .conftest import NOW
from .fakes import FakeDispatcher, FakeTaskStore, FixedClock

HOUR = 3600.0


@pytest.mark.asyncio
async def test_add_task_schedules_under_store_id(board: TaskBoard, dispatcher: FakeDispatcher, clock: FixedClock) -> None:
    task = await board.add_task("  Dentist  ", category="💼", due_at=clock.now + 2 * HOUR, notes=" ")

    assert task.id == "t1"
    assert task.title == "Dentist"
    assert task.notes is None
    assert dispatcher.ids_for("t1") == {"t1#at", "t1#30m"}
    # Snapshot arrived through the subscription.
    assert [t.id for t in board.tasks] == ["t1"]


@pytest.mark.asyncio
async def test_add_task_category_defaults_to_active_filter(board: TaskBoard) -> None:
    board.select_category("🏠")

    task = await board.add_task("Water plants")

    assert task.category == "🏠"


@pytest.mark.asyncio
async def test_add_task_validates_input(board: TaskBoard) -> None:
    with pytest.raises(InvalidTaskError):
        await board.add_task("   ", category="📝")
    with pytest.raises(InvalidTaskError):
        await board.add_task("No category")


@pytest.mark.asyncio
async def test_failed_create_schedules_nothing(
    board: TaskBoard, fake_store: FakeTaskStore, dispatcher: FakeDispatcher, clock: FixedClock
) -> None:
    fake_store.fail_writes = True

    with pytest.raises(TaskStoreError):
        await board.add_task("Lost", category="📝", due_at=clock.now + 2 * HOUR)

    assert dispatcher.calls == []
    assert board.tasks == ()


@pytest.mark.asyncio
async def test_done_cancels_and_undone_restores(board: TaskBoard, dispatcher: FakeDispatcher, clock: FixedClock) -> None:
    task = await board.add_task("Report", category="💼", due_at=clock.now + 3 * HOUR)
    fresh = dict(dispatcher.registered)

    await board.toggle_done(task.id)
    assert board.get(task.id).done is True
    assert dispatcher.ids_for(task.id) == set()
    assert board.pending() == ()
    assert [t.id for t in board.completed()] == [task.id]

    await board.toggle_done(task.id)
    assert board.get(task.id).done is False
    assert dispatcher.registered == fresh


@pytest.mark.asyncio
async def test_failed_update_leaves_reminders_alone(
    board: TaskBoard, fake_store: FakeTaskStore, dispatcher: FakeDispatcher, clock: FixedClock
) -> None:
    task = await board.add_task("Report", category="💼", due_at=clock.now + 3 * HOUR)
    fake_store.fail_writes = True

    with pytest.raises(TaskStoreError):
        await board.set_done(task.id, True)

    assert dispatcher.ids_for(task.id) == {f"{task.id}#at", f"{task.id}#30m"}
    assert board.get(task.id).done is False


@pytest.mark.asyncio
async def test_due_date_edits_reschedule(board: TaskBoard, dispatcher: FakeDispatcher, clock: FixedClock) -> None:
    task = await board.add_task("Gym", category="🏃🏻", due_at=clock.now + 3 * HOUR)

    await board.set_due_date(task.id, clock.now + 600)
    assert dispatcher.ids_for(task.id) == {f"{task.id}#at"}
    assert dispatcher.registered[f"{task.id}#at"].fire_at == clock.now + 600

    await board.set_due_date(task.id, None)
    assert dispatcher.ids_for(task.id) == set()
    assert board.get(task.id).due_at is None


@pytest.mark.asyncio
async def test_title_edit_updates_reminder_body(board: TaskBoard, dispatcher: FakeDispatcher, clock: FixedClock) -> None:
    task = await board.add_task("Gym", category="🏃🏻", due_at=clock.now + 3 * HOUR)

    await board.edit_task(task.id, title="Swimming", notes="bring goggles")

    assert dispatcher.registered[f"{task.id}#at"].body == "Swimming"
    assert board.get(task.id).notes == "bring goggles"


@pytest.mark.asyncio
async def test_delete_cancels_then_removes(board: TaskBoard, dispatcher: FakeDispatcher, clock: FixedClock) -> None:
    task = await board.add_task("Old", category="📝", due_at=clock.now + 3 * HOUR)

    await board.delete_task(task.id)

    assert dispatcher.ids_for(task.id) == set()
    assert board.tasks == ()


@pytest.mark.asyncio
async def test_subscription_error_keeps_previous_snapshot(board: TaskBoard, fake_store: FakeTaskStore) -> None:
    await board.add_task("Keep me", category="📝")
    before = board.tasks

    fake_store.emit_error("u1", TaskStoreError("offline"))

    assert board.tasks == before
    assert isinstance(board.last_error, TaskStoreError)

    await board.add_task("Back online", category="📝")
    assert board.last_error is None
    assert len(board.tasks) == 2


@pytest.mark.asyncio
async def test_reminder_failure_does_not_block_add(board: TaskBoard, dispatcher: FakeDispatcher, clock: FixedClock) -> None:
    dispatcher.fail_ids = {"t1#at", "t1#30m"}

    task = await board.add_task("Still added", category="📝", due_at=clock.now + 3 * HOUR)

    assert [t.id for t in board.tasks] == [task.id]
    assert dispatcher.registered == {}


@pytest.mark.asyncio
async def test_reschedule_all_covers_pending_dated_tasks(
    board: TaskBoard, dispatcher: FakeDispatcher, clock: FixedClock
) -> None:
    a = await board.add_task("a", category="📝", due_at=clock.now + 3 * HOUR)
    b = await board.add_task("b", category="📝")
    c = await board.add_task("c", category="📝", due_at=clock.now + 3 * HOUR)
    await board.set_done(c.id, True)
    dispatcher.registered.clear()

    reminders = await board.reschedule_all()

    assert {r.identifier for r in reminders} == {f"{a.id}#at", f"{a.id}#30m"}
    assert dispatcher.ids_for(b.id) == set()


@pytest.mark.asyncio
async def test_overdue_mode_view(board: TaskBoard, clock: FixedClock) -> None:
    late = await board.add_task("late", category="📝", due_at=(NOW - timedelta(days=1)).timestamp())
    await board.add_task("soon", category="📝", due_at=(NOW + timedelta(days=1)).timestamp())
    finished = await board.add_task("finished", category="📝")
    await board.set_done(finished.id, True)

    board.toggle_overdue()
    view = board.partition()

    assert [t.id for t in view.pending] == [late.id]
    assert view.completed_relevant is False

    board.toggle_overdue()
    assert board.filters.mode == TemporalFilter.ALL


def test_modes_are_single_select(board: TaskBoard) -> None:
    board.toggle_today()
    board.toggle_this_week()

    assert board.filters.mode == TemporalFilter.WEEK
    assert not board.filters.show_today_only


def test_rename_category_moves_active_filter(board: TaskBoard, categories: CategoryStore) -> None:
    seen: list[str | None] = []
    board.add_listener(lambda b: seen.append(b.filters.active_category))
    board.select_category("💼")

    board.rename_category(1, "🎓")

    assert board.filters.active_category == "🎓"
    assert categories.current[1] == "🎓"
    assert board.segments() == [None, "📝", "🎓", "🏠", "🏃🏻"]
    assert seen[-1] == "🎓"


@pytest.mark.asyncio
async def test_signed_out_board_is_empty_and_read_only(
    fake_store: FakeTaskStore, scheduler: ReminderScheduler, categories: CategoryStore, clock: FixedClock
) -> None:
    session = Session(user_id=None, clock=clock)
    board = TaskBoard(session=session, store=fake_store, scheduler=scheduler, categories=categories)

    board.start()

    assert board.tasks == ()
    assert fake_store.subscriptions == []
    with pytest.raises(NotSignedInError):
        await board.add_task("x", category="📝")


def test_stop_removes_subscription(board: TaskBoard, fake_store: FakeTaskStore) -> None:
    assert len(fake_store.subscriptions) == 1

    board.stop()

    assert fake_store.subscriptions == []


@pytest.mark.asyncio
async def test_category_must_come_from_the_set(board: TaskBoard, fake_store: FakeTaskStore) -> None:
    with pytest.raises(InvalidCategoryError):
        await board.add_task("x", category="not-a-category")
    assert board.tasks == ()

    task = await board.add_task("x", category="📝")
    with pytest.raises(InvalidCategoryError):
        await board.edit_task(task.id, category="")
    assert board.get(task.id).category == "📝"

    moved = await board.edit_task(task.id, category="🏠")
    assert moved.category == "🏠"


@pytest.mark.asyncio
async def test_renamed_symbol_stays_on_existing_tasks(board: TaskBoard) -> None:
    task = await board.add_task("Report", category="💼")
    board.rename_category(1, "🎓")

    # Editing other fields keeps the old symbol the task was tagged with.
    edited = await board.edit_task(task.id, title="Final report", category="💼")

    assert edited.category == "💼"
    assert edited.title == "Final report"
    with pytest.raises(InvalidCategoryError):
        await board.add_task("New", category="💼")


@pytest.mark.asyncio
async def test_failed_delete_restores_reminders(
    board: TaskBoard, fake_store: FakeTaskStore, dispatcher: FakeDispatcher, clock: FixedClock
) -> None:
    task = await board.add_task("Keep", category="📝", due_at=clock.now + 3 * HOUR)
    fake_store.fail_writes = True

    with pytest.raises(TaskStoreError):
        await board.delete_task(task.id)

    assert [t.id for t in board.tasks] == [task.id]
    assert dispatcher.ids_for(task.id) == {f"{task.id}#at", f"{task.id}#30m"}
