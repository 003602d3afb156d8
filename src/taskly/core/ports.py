# src/taskly/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the task backend and the notification facility swappable and makes
testing easier.
"""

from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any, Protocol

from ..tasks.task_models import Task, TaskSnapshot

SnapshotListener = Callable[[TaskSnapshot], None]


class Subscription(Protocol):
    """Handle returned by TaskStore.subscribe; remove() stops delivery."""

    def remove(self) -> None: ...


class TaskStore(Protocol):
    """
    Live, per-user task collection.

    subscribe():
    - delivers the current snapshot right away, then a full replacement
      snapshot (ascending creation order) after every change
    - delivers read failures as TaskSnapshot(error=...), it never retries

    Writes are coroutines and raise TaskStoreError on failure.
    """

    def subscribe(self, user_id: str, listener: SnapshotListener) -> Subscription: ...

    def create(self, user_id: str, task: Task) -> Awaitable[str]: ...

    def update(self, user_id: str, task_id: str, changes: Mapping[str, Any]) -> Awaitable[None]: ...

    def delete(self, user_id: str, task_id: str) -> Awaitable[None]: ...


class NotificationDispatcher(Protocol):
    """
    One-shot local notification facility.

    register() with an identifier that already exists replaces it.
    cancel() ignores identifiers it does not know.
    """

    def register(
            self,
            *,
            identifier: str,
            fire_at: float,
            title: str,
            body: str,
    ) -> Awaitable[None]: ...

    def cancel(self, identifiers: Iterable[str]) -> Awaitable[None]: ...
