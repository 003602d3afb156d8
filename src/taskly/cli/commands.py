# src/taskly/cli/commands.py

from __future__ import annotations

import inspect
import logging
import re
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from typing import cast

from ..core.errors import InvalidCategoryError, TasklyError, TaskNotFoundError
from ..core.state import AppState, Session
from ..tasks.task_filters import SECTION_PENDING, is_overdue
from ..tasks.task_models import Task, TemporalFilter

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[AppState, list[str]], CommandResult]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

_RELATIVE_RE = re.compile(r"^\+(\d+)([mhd])$")
_RELATIVE_UNITS = {"m": "minutes", "h": "hours", "d": "days"}


class CommandRegistry:
    """Slash-command registry used by the console front end (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Handlers may be plain functions or coroutine functions.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                result = cast(CommandHandler3, handler)(state, args, emit)
            else:
                result = cast(CommandHandler2, handler)(state, args)
            if inspect.isawaitable(result):
                result = await result
        except TasklyError as e:
            # Expected failures (bad input, unknown task, store errors) become replies.
            logger.debug("Command /%s failed: %s", name, e)
            return f"Error: {e}"
        return cast(str, result)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- parsing helpers ----

def parse_when(raw: str, session: Session) -> float | None:
    """
    Due date argument -> POSIX timestamp.

    Accepts "none", relative offsets ("+45m", "+2h", "+1d") and ISO dates
    ("2026-10-18T09:30", "2026-10-18"); naive values are read in the session zone.
    """
    text = raw.strip()
    if text.lower() in ("none", "-", "clear"):
        return None

    m = _RELATIVE_RE.match(text)
    if m:
        try:
            delta = timedelta(**{_RELATIVE_UNITS[m.group(2)]: int(m.group(1))})
            return (session.now() + delta).timestamp()
        except OverflowError:
            raise ValueError(f"Cannot read date/time: {raw!r}") from None

    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        raise ValueError(f"Cannot read date/time: {raw!r}") from None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=session.tz)
    return dt.timestamp()


def _resolve_task_id(state: AppState, raw: str) -> str:
    """Row number from the last /list, otherwise a raw task id."""
    try:
        row = int(raw)
    except ValueError:
        row = None
    if row is not None and row in state.listing:
        return state.listing[row]
    state.board.get(raw)
    return raw


def _format_due(ts: float | None, session: Session) -> str:
    if ts is None:
        return ""
    return datetime.fromtimestamp(ts, tz=session.tz).strftime("%Y-%m-%d %H:%M")


def _format_task(row: int, task: Task, session: Session) -> str:
    mark = "[x]" if task.done else "[ ]"
    parts = [f"{row:>3}. {mark} {task.category} {task.title}"]
    due = _format_due(task.due_at, session)
    if due:
        flag = " (overdue)" if is_overdue(task, session.now()) else ""
        parts.append(f"due {due}{flag}")
    if task.notes:
        parts.append(f"- {task.notes}")
    return "  ".join(parts)


# ---- handlers ----

def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    board = state.board
    filters = board.filters
    user = state.session.user_id or "(signed out)"
    err = f"\n  Last store error: {board.last_error}" if board.last_error else ""
    return (
        "Status:\n"
        f"  User: {user}\n"
        f"  Time zone: {state.session.tz}\n"
        f"  Tasks: {len(board.tasks)}\n"
        f"  Filter: {filters.mode.value}, category {filters.active_category or 'all'}\n"
        f"  Categories: {' '.join(board.categories)}"
        f"{err}"
    )


def cmd_list(state: AppState, args: list[str]) -> str:
    board = state.board
    view = board.partition()
    session = state.session

    state.listing = {}
    if view.is_empty:
        return "No tasks match the current filter."

    lines: list[str] = []
    row = 0
    for section in view.sections:
        items = view.pending if section == SECTION_PENDING else view.completed
        lines.append("Pending:" if section == SECTION_PENDING else "Completed:")
        for task in items:
            row += 1
            assert task.id is not None
            state.listing[row] = task.id
            lines.append(_format_task(row, task, session))
    return "\n".join(lines)


async def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <title words> [@when] [#category] [-- notes]
    """
    if not args:
        return "Usage: /add <title> [@+30m | @2026-10-18T09:30] [#category] [-- notes]"

    title_words: list[str] = []
    notes_words: list[str] = []
    due_at: float | None = None
    category: str | None = None
    in_notes = False

    for token in args:
        if in_notes:
            notes_words.append(token)
        elif token == "--":
            in_notes = True
        elif token.startswith("@") and len(token) > 1:
            try:
                due_at = parse_when(token[1:], state.session)
            except ValueError as e:
                return str(e)
        elif token.startswith("#") and len(token) > 1:
            category = token[1:]
        else:
            title_words.append(token)

    if category is None and state.board.filters.active_category is None:
        category = state.board.categories[0]

    task = await state.board.add_task(
        " ".join(title_words),
        category=category,
        due_at=due_at,
        notes=" ".join(notes_words) or None,
    )
    due = _format_due(task.due_at, state.session)
    return f"Added {task.category} {task.title}" + (f" (due {due})" if due else "") + f" [id {task.id}]"


async def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <row|id>"
    task = await state.board.set_done(_resolve_task_id(state, args[0]), True)
    return f"Completed: {task.title}"


async def cmd_undo(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /undo <row|id>"
    task = await state.board.set_done(_resolve_task_id(state, args[0]), False)
    return f"Back to pending: {task.title}"


async def cmd_due(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /due <row|id> <+30m | 2026-10-18T09:30 | none>"
    task_id = _resolve_task_id(state, args[0])
    try:
        due_at = parse_when(" ".join(args[1:]), state.session)
    except ValueError as e:
        return str(e)
    task = await state.board.set_due_date(task_id, due_at)
    due = _format_due(task.due_at, state.session)
    return f"Due date {'set to ' + due if due else 'cleared'}: {task.title}"


async def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /del <row|id>"
    try:
        task_id = _resolve_task_id(state, args[0])
    except TaskNotFoundError:
        return f"No such task: {args[0]}"
    await state.board.delete_task(task_id)
    return "Deleted."


def cmd_filter(state: AppState, args: list[str]) -> str:
    if not args:
        return f"Filter is {state.board.filters.mode.value}. Use /filter all|today|week|overdue."
    try:
        mode = TemporalFilter.parse(args[0])
    except ValueError:
        return "Usage: /filter all|today|week|overdue"
    state.board.select_mode(mode)
    return f"Filter: {mode.value}."


def cmd_cat(state: AppState, args: list[str]) -> str:
    """
    /cat          -> show segments
    /cat all      -> no category filter
    /cat <n|sym>  -> filter by slot number (1-4) or symbol
    """
    board = state.board
    if not args:
        segs = ["all" if s is None else s for s in board.segments()]
        current = board.filters.active_category or "all"
        return f"Categories: {' | '.join(segs)} (active: {current})"

    raw = args[0]
    if raw.lower() == "all":
        board.select_category(None)
        return "Category filter cleared."

    symbol = raw
    if raw.isdigit():
        idx = int(raw) - 1
        if not 0 <= idx < len(board.categories):
            return f"No category slot {raw}."
        symbol = board.categories[idx]
    board.select_category(symbol)
    return f"Category filter: {symbol}."


def cmd_cats(state: AppState, args: list[str]) -> str:
    return "\n".join(f"  {i}. {s}" for i, s in enumerate(state.board.categories, start=1))


def cmd_setcat(state: AppState, args: list[str]) -> str:
    if len(args) != 2 or not args[0].isdigit():
        return "Usage: /setcat <1-4> <symbol>"
    try:
        updated = state.board.rename_category(int(args[0]) - 1, args[1])
    except InvalidCategoryError as e:
        return f"Invalid category: {e}"
    return f"Categories: {' '.join(updated)}"


def cmd_reminders(state: AppState, args: list[str]) -> str:
    pending_fn = getattr(state.dispatcher, "pending", None)
    if pending_fn is None:
        return "Reminder listing is not supported by this dispatcher."
    notes = pending_fn()
    if not notes:
        return "No reminders scheduled."
    lines = ["Scheduled reminders:"]
    for n in notes:
        lines.append(f"  {_format_due(n.fire_at, state.session)}  {n.title}: {n.body}  [{n.identifier}]")
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show user, filter and store state.")
registry.register("list", cmd_list, help_text="List tasks for the current filter.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add <title> [@when] [#category] [-- notes].")
registry.register("done", cmd_done, help_text="Mark a task completed: /done <row>.")
registry.register("undo", cmd_undo, help_text="Mark a task pending again: /undo <row>.")
registry.register("due", cmd_due, help_text="Set or clear a due date: /due <row> <when|none>.")
registry.register("del", cmd_delete, help_text="Delete a task: /del <row>.", aliases=["rm"])
registry.register("filter", cmd_filter, help_text="Date filter: /filter all|today|week|overdue.")
registry.register("cat", cmd_cat, help_text="Category filter: /cat all | /cat <1-4> | /cat <symbol>.")
registry.register("cats", cmd_cats, help_text="Show the category set.")
registry.register("setcat", cmd_setcat, help_text="Replace a category: /setcat <1-4> <symbol>.")
registry.register("reminders", cmd_reminders, help_text="Show scheduled reminders.")
