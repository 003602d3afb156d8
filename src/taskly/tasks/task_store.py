# src/taskly/tasks/task_store.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sqlite3
import time
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..core.errors import InvalidTaskError, TaskNotFoundError, TaskStoreError
from ..core.ports import SnapshotListener
from .task_models import EDITABLE_FIELDS, Task, TaskSnapshot

logger = logging.getLogger(__name__)


@dataclass(slots=True, eq=False)
class _Subscription:
    store: SqliteTaskStore
    user_id: str
    listener: SnapshotListener

    def remove(self) -> None:
        self.store._remove_listener(self)


class SqliteTaskStore:
    """
    SQLite implementation of the TaskStore port.

    - one table, rows scoped by user_id
    - AUTOINCREMENT ids, so a deleted id is never handed out again
    - snapshots are ordered by created_at, then id
    - writes run in a worker thread; listeners are notified on the caller's
      event loop after the write committed

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._listeners: list[_Subscription] = []
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except sqlite3.Error:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Drop all listeners (no persistent connections to close)."""
        self._listeners.clear()

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    category TEXT NOT NULL DEFAULT '',
                    done INTEGER NOT NULL DEFAULT 0,
                    due_at REAL,
                    notes TEXT,
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("category", "TEXT NOT NULL DEFAULT ''")
            add_col("done", "INTEGER NOT NULL DEFAULT 0")
            add_col("due_at", "REAL")
            add_col("notes", "TEXT")
            add_col("updated_at", "REAL NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_user_created ON tasks(user_id, created_at)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=str(row["id"]),
            title=str(row["title"] or ""),
            category=str(row["category"] or ""),
            done=bool(row["done"]),
            due_at=float(row["due_at"]) if row["due_at"] is not None else None,
            notes=row["notes"],
            created_at=float(row["created_at"] or 0.0),
        )

    @staticmethod
    def _row_id(task_id: str) -> int:
        try:
            return int(task_id)
        except (TypeError, ValueError):
            raise TaskNotFoundError(str(task_id)) from None

    # ---- synchronous core (runs in worker threads) ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def list_tasks(self, user_id: str) -> list[Task]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT *
                FROM tasks
                WHERE user_id = ?
                ORDER BY created_at ASC, id ASC
                """,
                (user_id,),
            )
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def _insert(self, user_id: str, task: Task) -> str:
        title = (task.title or "").strip()
        if not title:
            raise InvalidTaskError("title is required")

        notes = (task.notes or "").strip() or None
        now = time.time()

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO tasks(user_id, title, category, done, due_at, notes, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    title,
                    task.category,
                    int(bool(task.done)),
                    float(task.due_at) if task.due_at is not None else None,
                    notes,
                    now,
                    now,
                ),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise TaskStoreError("SQLite did not return lastrowid for tasks insert")
            logger.debug("Task added id=%s user=%s due_at=%s", rowid, user_id, task.due_at)
            return str(rowid)
        finally:
            conn.close()

    def _update(self, user_id: str, task_id: str, changes: Mapping[str, Any]) -> None:
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise InvalidTaskError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        fields: list[str] = []
        params: list[Any] = []

        for name, value in changes.items():
            if name == "title":
                value = (value or "").strip()
                if not value:
                    raise InvalidTaskError("title is required")
            elif name == "done":
                value = int(bool(value))
            elif name == "due_at":
                value = float(value) if value is not None else None
            elif name == "notes":
                value = (value or "").strip() or None
            fields.append(f"{name} = ?")
            params.append(value)

        fields.append("updated_at = ?")
        params.append(time.time())
        params.extend([self._row_id(task_id), user_id])

        sql = f"UPDATE tasks SET {', '.join(fields)} WHERE id = ? AND user_id = ?"

        conn = self._get_conn()
        try:
            cur = conn.execute(sql, params)
            conn.commit()
            if cur.rowcount != 1:
                raise TaskNotFoundError(task_id)
        finally:
            conn.close()

    def _delete(self, user_id: str, task_id: str) -> None:
        try:
            row_id = self._row_id(task_id)
        except TaskNotFoundError:
            return

        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM tasks WHERE id = ? AND user_id = ?", (row_id, user_id))
            conn.commit()
            if cur.rowcount == 0:
                logger.debug("Delete of unknown task id=%s user=%s ignored", task_id, user_id)
        finally:
            conn.close()

    # ---- TaskStore port ----

    def subscribe(self, user_id: str, listener: SnapshotListener) -> _Subscription:
        sub = _Subscription(store=self, user_id=user_id, listener=listener)
        self._listeners.append(sub)
        self._deliver(sub, self._snapshot(user_id))
        return sub

    def _remove_listener(self, sub: _Subscription) -> None:
        with contextlib.suppress(ValueError):
            self._listeners.remove(sub)

    async def create(self, user_id: str, task: Task) -> str:
        try:
            task_id = await asyncio.to_thread(self._insert, user_id, task)
        except sqlite3.Error as e:
            raise TaskStoreError(f"Failed to create task: {e}") from e
        self._notify(user_id)
        return task_id

    async def update(self, user_id: str, task_id: str, changes: Mapping[str, Any]) -> None:
        if not changes:
            return
        try:
            await asyncio.to_thread(self._update, user_id, task_id, dict(changes))
        except sqlite3.Error as e:
            raise TaskStoreError(f"Failed to update task {task_id}: {e}") from e
        self._notify(user_id)

    async def delete(self, user_id: str, task_id: str) -> None:
        try:
            await asyncio.to_thread(self._delete, user_id, task_id)
        except sqlite3.Error as e:
            raise TaskStoreError(f"Failed to delete task {task_id}: {e}") from e
        self._notify(user_id)

    # ---- change notification ----

    def _snapshot(self, user_id: str) -> TaskSnapshot:
        try:
            return TaskSnapshot(tasks=tuple(self.list_tasks(user_id)))
        except sqlite3.Error as e:
            logger.exception("Failed to read tasks for user=%s", user_id)
            return TaskSnapshot(error=TaskStoreError(f"Failed to read tasks: {e}"))

    def _notify(self, user_id: str) -> None:
        subs = [s for s in self._listeners if s.user_id == user_id]
        if not subs:
            return
        snapshot = self._snapshot(user_id)
        for sub in subs:
            self._deliver(sub, snapshot)

    @staticmethod
    def _deliver(sub: _Subscription, snapshot: TaskSnapshot) -> None:
        try:
            sub.listener(snapshot)
        except Exception:
            logger.exception("Task snapshot listener failed user=%s", sub.user_id)
