# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Every key has a default; invalid values fall back to the default.

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TASKLY_APP_NAME": "App display name (default: taskly).",
    "TASKLY_LOG_LEVEL": "Logging level (default: INFO).",
    # Session
    "TASKLY_USER_ID": "Owner of the task list (default: local; set to empty to run signed out).",
    "TASKLY_TIMEZONE": "IANA time zone for today/week filters (default: system local zone).",
    "TASKLY_FIRST_WEEKDAY": "First day of the week, 0=Monday .. 6=Sunday (default: 0).",
    # Front end
    "TASKLY_CONSOLE_ENABLED": "Enable console connector (true/false).",
    # Reminder wording
    "TASKLY_REMINDER_TITLE_AT": "Title of the at-due reminder (default: Task due now).",
    "TASKLY_REMINDER_TITLE_PRE": "Title of the 30-minute reminder (default: Task due in 30 minutes).",
    # Paths (gitignored)
    "TASKLY_DATA_DIR": "Local data directory (default: .local/taskly).",
    "TASKLY_TASKS_DB_PATH": "TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
    "TASKLY_CATEGORIES_PATH": "Category symbols JSON path (default: <data_dir>/categories.json).",
}
