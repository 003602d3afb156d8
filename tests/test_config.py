# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from taskly.cli.bootstrap import build_session, create_initial_state
from taskly.config import Settings, resolve_timezone

_KEYS = (
    "TASKLY_APP_NAME",
    "TASKLY_USER_ID",
    "TASKLY_TIMEZONE",
    "TASKLY_FIRST_WEEKDAY",
    "TASKLY_DATA_DIR",
    "TASKLY_TASKS_DB_PATH",
    "TASKLY_CATEGORIES_PATH",
    "TASKLY_CONSOLE_ENABLED",
)


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for key in _KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_defaults(clean_env: pytest.MonkeyPatch) -> None:
    s = Settings.from_env()

    assert s.app_name == "taskly"
    assert s.user_id == "local"
    assert s.first_weekday == 0
    assert s.console_enabled is True
    assert s.tasks_db_path == Path(".local/taskly") / "tasks.sqlite3"
    assert s.categories_path == Path(".local/taskly") / "categories.json"


def test_env_overrides_and_fallbacks(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    clean_env.setenv("TASKLY_USER_ID", "  ")
    clean_env.setenv("TASKLY_FIRST_WEEKDAY", "9")
    clean_env.setenv("TASKLY_DATA_DIR", str(tmp_path))
    clean_env.setenv("TASKLY_CONSOLE_ENABLED", "off")

    s = Settings.from_env()

    assert s.user_id is None
    assert s.first_weekday == 0
    assert s.console_enabled is False
    assert s.tasks_db_path == tmp_path / "tasks.sqlite3"

    clean_env.setenv("TASKLY_FIRST_WEEKDAY", "6")
    assert Settings.from_env().first_weekday == 6


def test_unknown_timezone_falls_back_to_local() -> None:
    assert resolve_timezone("Not/AZone") is not None
    assert resolve_timezone(None) is not None


def test_bootstrap_wires_session_from_settings(settings) -> None:
    settings.first_weekday = 6
    state = create_initial_state(settings=settings)

    assert state.session.user_id == "u1"
    assert state.session.first_weekday == 6
    assert build_session(settings).signed_in
    assert state.board.categories.symbols[0] == "📝"
    assert settings.tasks_db_path.exists()
