# src/taskly/connectors/local_dispatcher.py

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class FiredNotification:
    identifier: str
    fire_at: float
    title: str
    body: str


NotificationSink = Callable[[FiredNotification], None]


class LocalNotificationDispatcher:
    """
    In-process NotificationDispatcher backed by asyncio timers.

    - register() replaces an existing identifier
    - cancel() ignores unknown identifiers
    - on fire, the notification is handed to `sink` (the console prints it)

    Must be used from a running event loop.
    """

    def __init__(
            self,
            sink: NotificationSink,
            *,
            clock: Callable[[], float] = time.time,
    ) -> None:
        self._sink = sink
        self._clock = clock
        self._pending: dict[str, tuple[asyncio.TimerHandle, FiredNotification]] = {}

    async def register(
            self,
            *,
            identifier: str,
            fire_at: float,
            title: str,
            body: str,
    ) -> None:
        self._drop(identifier)

        note = FiredNotification(identifier=identifier, fire_at=fire_at, title=title, body=body)
        delay = max(0.0, float(fire_at) - float(self._clock()))
        loop = asyncio.get_running_loop()
        handle = loop.call_later(delay, self._fire, identifier)
        self._pending[identifier] = (handle, note)
        logger.debug("Notification registered id=%s in %.0fs", identifier, delay)

    async def cancel(self, identifiers: Iterable[str]) -> None:
        for identifier in identifiers:
            self._drop(identifier)

    def pending(self) -> list[FiredNotification]:
        """Registered, not yet fired notifications ordered by fire time."""
        return sorted((note for _, note in self._pending.values()), key=lambda n: n.fire_at)

    def shutdown(self) -> None:
        for handle, _ in self._pending.values():
            handle.cancel()
        self._pending.clear()

    def _drop(self, identifier: str) -> None:
        entry = self._pending.pop(identifier, None)
        if entry is None:
            return
        entry[0].cancel()
        logger.debug("Notification cancelled id=%s", identifier)

    def _fire(self, identifier: str) -> None:
        entry = self._pending.pop(identifier, None)
        if entry is None:
            return
        try:
            self._sink(entry[1])
        except Exception:
            logger.exception("Notification sink failed id=%s", identifier)
