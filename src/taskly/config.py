# src/taskly/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing is required at import time; every key has a default.
- Invalid values fall back to defaults instead of failing startup.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

ENV_PREFIX = "TASKLY"

DEFAULT_CATEGORIES: tuple[str, ...] = ("📝", "💼", "🏠", "🏃🏻")

logger = logging.getLogger(__name__)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_optional(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return raw.strip()


def resolve_timezone(name: str | None) -> tzinfo:
    """
    IANA zone for `name`, or the system local zone when unset/unknown.
    """
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown time zone %r; using system local zone.", name)
    local = datetime.now().astimezone().tzinfo
    assert local is not None
    return local


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Session ----
    user_id: str | None
    timezone: str | None
    first_weekday: int

    # ---- Front end ----
    console_enabled: bool

    # ---- Reminder wording ----
    reminder_title_at: str
    reminder_title_pre: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path
    categories_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskly").strip() or "taskly"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        # Unset means the default local user; set-but-empty means signed out.
        raw_user = os.getenv(_k("USER_ID"))
        user_id = "local" if raw_user is None else (raw_user.strip() or None)

        timezone = _env_optional(_k("TIMEZONE"))

        first_weekday = _env_int(_k("FIRST_WEEKDAY"), 0)
        if not 0 <= first_weekday <= 6:
            first_weekday = 0

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        reminder_title_at = _env(_k("REMINDER_TITLE_AT"), "Task due now")
        reminder_title_pre = _env(_k("REMINDER_TITLE_PRE"), "Task due in 30 minutes")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskly"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")
        categories_path = _env_path(_k("CATEGORIES_PATH"), data_dir / "categories.json")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            user_id=user_id,
            timezone=timezone,
            first_weekday=first_weekday,
            console_enabled=console_enabled,
            reminder_title_at=reminder_title_at,
            reminder_title_pre=reminder_title_pre,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            categories_path=categories_path,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
