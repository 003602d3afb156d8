# src/taskly/core/errors.py

"""Exceptions raised across the taskly core."""

from __future__ import annotations


class TasklyError(Exception):
    """Base class for every error the core raises on purpose."""


class TaskStoreError(TasklyError):
    """A read, write or subscription against the task store failed."""


class TaskNotFoundError(TaskStoreError, LookupError):
    def __init__(self, task_id: str):
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class InvalidTaskError(TasklyError, ValueError):
    """Task input rejected before it reaches the store (e.g. empty title)."""


class InvalidCategoryError(TasklyError, ValueError):
    """Category symbol or slot index rejected."""


class NotSignedInError(TasklyError):
    """Raised when an operation needs a user but the session has none."""

    def __init__(self, message: str = "Sign in to manage tasks."):
        super().__init__(message)
