# tests/test_local_dispatcher.py

from __future__ import annotations

import asyncio
import time

import pytest

from taskly.connectors.local_dispatcher import FiredNotification, LocalNotificationDispatcher


@pytest.mark.asyncio
async def test_register_replaces_and_cancel_ignores_unknown() -> None:
    fired: list[FiredNotification] = []
    dispatcher = LocalNotificationDispatcher(fired.append)
    later = time.time() + 3600

    await dispatcher.register(identifier="1#at", fire_at=later, title="Due", body="old")
    await dispatcher.register(identifier="1#at", fire_at=later + 60, title="Due", body="new")
    await dispatcher.cancel({"nope#at", "nope#30m"})

    pending = dispatcher.pending()
    assert [(n.identifier, n.body) for n in pending] == [("1#at", "new")]

    await dispatcher.cancel({"1#at", "1#30m"})
    assert dispatcher.pending() == []
    assert fired == []


@pytest.mark.asyncio
async def test_due_notification_is_delivered_once() -> None:
    fired: list[FiredNotification] = []
    dispatcher = LocalNotificationDispatcher(fired.append)

    await dispatcher.register(identifier="2#at", fire_at=time.time() - 1, title="Due", body="now")
    await asyncio.sleep(0.05)

    assert [n.identifier for n in fired] == ["2#at"]
    assert dispatcher.pending() == []


@pytest.mark.asyncio
async def test_sink_failure_is_contained() -> None:
    def bad_sink(note: FiredNotification) -> None:
        raise RuntimeError("display failed")

    dispatcher = LocalNotificationDispatcher(bad_sink)
    await dispatcher.register(identifier="3#at", fire_at=0.0, title="Due", body="x")
    await asyncio.sleep(0.05)

    assert dispatcher.pending() == []


@pytest.mark.asyncio
async def test_shutdown_drops_pending_timers() -> None:
    fired: list[FiredNotification] = []
    dispatcher = LocalNotificationDispatcher(fired.append)
    await dispatcher.register(identifier="4#at", fire_at=time.time() + 0.01, title="Due", body="x")

    dispatcher.shutdown()
    await asyncio.sleep(0.05)

    assert fired == []
