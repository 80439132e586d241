# src/weekboard/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import date, datetime, time, timedelta
from typing import cast

from ..core.state import AppState
from ..errors import DraftValidationError
from ..scheduling.weeks import DAY_NAMES, format_week_range, parse_date, week_dates
from ..tasks.task_models import ALL_BOARDS, Board, Priority, Task, TaskDraft, TaskStatus
from ..tracker.session import validate_draft

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[AppState, list[str]], CommandResult]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

STATUS_MARKS = {TaskStatus.OPEN: "[ ]", TaskStatus.DONE: "[x]", TaskStatus.SKIPPED: "[-]"}
PRIORITY_ALIASES = {"low": Priority.LOW, "med": Priority.MED, "medium": Priority.MED, "high": Priority.HIGH}
WEEKDAY_ALIASES = {name.lower(): i for i, name in enumerate(DAY_NAMES)}


class CommandRegistry:
    """Slash-command registry used by the console (/help, /add, /next, ...)."""

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
        Handlers may be plain functions or coroutines.
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

        if nparams >= 3:
            result = cast(CommandHandler3, handler)(state, args, emit)
        else:
            result = cast(CommandHandler2, handler)(state, args)

        if inspect.isawaitable(result):
            return await result
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- parsing helpers ----


def parse_day(state: AppState, value: str, *, today: date | None = None) -> date:
    """
    Accepts YYYY-MM-DD, "today", "tomorrow" or a weekday name (mon..sun)
    which resolves inside the current week.
    """
    raw = value.strip().lower()
    today = today or date.today()
    if raw == "today":
        return today
    if raw == "tomorrow":
        return today + timedelta(days=1)
    if raw[:3] in WEEKDAY_ALIASES:
        return week_dates(state.session.current_week_id)[WEEKDAY_ALIASES[raw[:3]]]
    return parse_date(value)


def parse_time(value: str) -> time:
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except ValueError as e:
        raise ValueError(f"expected HH:MM, got {value!r}") from e


def parse_draft(state: AppState, args: list[str]) -> TaskDraft:
    """
    Build a TaskDraft from "/add" arguments:

        [board:<b>] [date:<day>] [pri:<p>] [at:HH:MM] <title words> [-- <notes>]
    """
    session = state.session
    board_raw = session.selected_board if session.selected_board != ALL_BOARDS else state.default_board
    day = session.selected_date or date.today()
    priority = Priority.MED
    at: time | None = None

    title_words: list[str] = []
    notes_words: list[str] = []
    in_notes = False
    for token in args:
        if in_notes:
            notes_words.append(token)
            continue
        if token == "--":
            in_notes = True
            continue
        key, sep, value = token.partition(":")
        key = key.lower()
        if sep and value and key in ("board", "b"):
            board_raw = value.lower()
        elif sep and value and key in ("date", "d"):
            day = parse_day(state, value)
        elif sep and value and key in ("pri", "p"):
            if value.lower() not in PRIORITY_ALIASES:
                raise ValueError(f"unknown priority {value!r} (low/med/high)")
            priority = PRIORITY_ALIASES[value.lower()]
        elif sep and value and key == "at":
            at = parse_time(value)
        else:
            title_words.append(token)

    try:
        board = Board(board_raw)
    except ValueError as e:
        raise ValueError(f"unknown board {board_raw!r} (todos/exercise/dinner)") from e

    draft = TaskDraft(
        title=" ".join(title_words),
        board=board,
        scheduled_for=day,
        priority=priority,
        notes=" ".join(notes_words) or None,
        # Reminders are wall-clock times on the scheduled day.
        remind_at=datetime.combine(day, at) if at is not None else None,
    )
    validate_draft(draft)
    return draft


def visible_tasks(state: AppState) -> list[Task]:
    session = state.session
    if session.selected_date is None:
        return []
    return session.tasks_for(session.selected_date, session.selected_board)


def resolve_task(state: AppState, ref: str) -> Task | None:
    """A task by its number in the current listing (1-based) or by its id."""
    if ref.isdigit():
        idx = int(ref) - 1
        tasks = visible_tasks(state)
        return tasks[idx] if 0 <= idx < len(tasks) else None
    return state.session.get(ref)


# ---- rendering ----


def format_task_line(n: int, task: Task) -> str:
    parts = [f"{n}. {STATUS_MARKS[task.status]} {task.title}"]
    tags = [task.board.value]
    if task.priority == Priority.HIGH:
        tags.append("!high")
    if task.remind_at is not None:
        tags.append(task.remind_at.strftime("%H:%M"))
    parts.append(f"({', '.join(tags)})")
    if task.notes:
        parts.append(f"- {task.notes}")
    return " ".join(parts)


def render_week(state: AppState, *, today: date | None = None) -> str:
    session = state.session
    wid = session.current_week_id
    today = today or date.today()

    strip: list[str] = []
    for i, dc in enumerate(session.day_counts(wid)):
        cell = f"{DAY_NAMES[i]} {dc.day.day}"
        if dc.total:
            cell += f" {dc.remaining}/{dc.total}"
        if dc.day == session.selected_date:
            cell = f"[{cell}]"
        elif dc.day == today:
            cell = f"*{cell}*"
        strip.append(cell)

    counts = session.board_counts()
    boards = []
    for name in (ALL_BOARDS, *(b.value for b in Board)):
        cell = f"{name} {counts[name]}"
        boards.append(f"[{cell}]" if name == session.selected_board else cell)

    lines = [
        f"Week {format_week_range(wid)} ({wid})",
        "  ".join(strip),
        "Boards: " + "  ".join(boards),
    ]
    tasks = visible_tasks(state)
    if session.selected_date is not None:
        lines.append(f"{session.selected_date:%A %Y-%m-%d}:")
    if not tasks:
        lines.append("  (no tasks)")
    for n, t in enumerate(tasks, start=1):
        lines.append("  " + format_task_line(n, t))
    return "\n".join(lines)


# ---- command handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_week(state: AppState, args: list[str]) -> str:
    return render_week(state)


async def cmd_day(state: AppState, args: list[str]) -> str:
    """
    /day <YYYY-MM-DD|mon..sun|today|tomorrow>
    """
    if not args:
        return "Usage: /day <YYYY-MM-DD | mon..sun | today | tomorrow>"
    await state.session.select_date(parse_day(state, args[0]))
    return render_week(state)


def cmd_board(state: AppState, args: list[str]) -> str:
    if not args:
        return f"Board filter is '{state.session.selected_board}'. Use /board all|todos|exercise|dinner."
    try:
        state.session.select_board(args[0].lower())
    except ValueError:
        return f"Unknown board: {args[0]}. Use all, todos, exercise or dinner."
    return render_week(state)


async def cmd_add(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /add [board:<b>] [date:<day>] [pri:low|med|high] [at:HH:MM] <title> [-- notes]"
    try:
        draft = parse_draft(state, args)
    except DraftValidationError:
        return "A task needs a title."
    task = await state.session.add(draft)
    return f"Added '{task.title}' to {task.board} on {task.scheduled_for:%a %Y-%m-%d}."


async def cmd_edit(state: AppState, args: list[str]) -> str:
    """
    /edit <n|id> title|notes|board|pri|date|at <value...>
    """
    if len(args) < 3:
        return "Usage: /edit <n|id> title|notes|board|pri|date|at <value>  ('-' clears notes/at)"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task {args[0]}."

    field = args[1].lower()
    value = " ".join(args[2:])
    if field == "title":
        if not value.strip():
            return "A task needs a title."
        changes: dict[str, object] = {"title": value}
    elif field == "notes":
        changes = {"notes": None if value == "-" else value}
    elif field == "board":
        changes = {"board": Board(value.lower())}
    elif field in ("pri", "priority"):
        if value.lower() not in PRIORITY_ALIASES:
            return f"Unknown priority {value!r} (low/med/high)."
        changes = {"priority": PRIORITY_ALIASES[value.lower()]}
    elif field == "date":
        changes = {"scheduled_for": parse_day(state, value)}
    elif field == "at":
        changes = {
            "remind_at": None if value == "-" else datetime.combine(task.scheduled_for, parse_time(value))
        }
    else:
        return f"Unknown field {field!r}."

    updated = await state.session.update(task.id, **changes)
    if updated is None:
        return f"No task {args[0]}."
    return f"Updated '{updated.title}'."


async def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <n|id>"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task {args[0]}."
    updated = await state.session.toggle(task.id)
    if updated is None:
        return f"No task {args[0]}."
    if updated.status == TaskStatus.SKIPPED:
        return f"'{updated.title}' is skipped; use /edit or /skip to change it."
    return f"'{updated.title}' is now {updated.status}."


async def cmd_skip(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /skip <n|id>"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task {args[0]}."
    await state.session.skip(task.id)
    return f"Skipped '{task.title}'."


async def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <n|id>"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task {args[0]}."
    await state.session.delete(task.id)
    return f"Deleted '{task.title}'."


async def cmd_prev(state: AppState, args: list[str]) -> str:
    await state.session.navigate("prev")
    return render_week(state)


async def cmd_next(state: AppState, args: list[str]) -> str:
    await state.session.navigate("next")
    return render_week(state)


async def cmd_today(state: AppState, args: list[str]) -> str:
    await state.session.go_to_today()
    return render_week(state)


async def cmd_rollover(
    state: AppState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    result = await state.session.start_next_week()
    if emit and result.created:
        emit(f"Rolled {len(result.rolled)} open task(s) into {format_week_range(result.week_id)}.")
    elif emit:
        emit("Next week was already started; moving there.")
    return render_week(state)


def cmd_status(state: AppState, args: list[str]) -> str:
    session = state.session
    summary = session.week_summary()
    total = sum(summary.values())
    return (
        f"Week {format_week_range(session.current_week_id)}:\n"
        f"  Tasks: {total}\n"
        f"  Open: {summary[TaskStatus.OPEN]}\n"
        f"  Done: {summary[TaskStatus.DONE]}\n"
        f"  Skipped: {summary[TaskStatus.SKIPPED]}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("week", cmd_week, help_text="Show the current week and the selected day.", aliases=["w", "ls"])
registry.register("day", cmd_day, help_text="Select a day: /day 2024-01-03 | /day wed | /day today.")
registry.register("board", cmd_board, help_text="Filter by board: /board all|todos|exercise|dinner.")
registry.register(
    "add",
    cmd_add,
    help_text="Add a task: /add [board:b] [date:d] [pri:p] [at:HH:MM] title [-- notes].",
    aliases=["a"],
)
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <n|id> <field> <value>.")
registry.register("done", cmd_done, help_text="Toggle a task between open and done.", aliases=["x"])
registry.register("skip", cmd_skip, help_text="Mark a task as skipped.")
registry.register("rm", cmd_rm, help_text="Delete a task.", aliases=["del"])
registry.register("prev", cmd_prev, help_text="Go to the previous week.")
registry.register("next", cmd_next, help_text="Go to the next week.")
registry.register("today", cmd_today, help_text="Jump to today.")
registry.register(
    "rollover",
    cmd_rollover,
    help_text="Start next week, carrying open tasks forward (once per week).",
    aliases=["nextweek"],
)
registry.register("status", cmd_status, help_text="Show this week's task totals.")
