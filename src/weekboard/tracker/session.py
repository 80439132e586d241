# src/weekboard/tracker/session.py

"""
Session-scoped tracker state.

TrackerSession owns the in-memory copy of both collections (tasks, weeks),
the current week and the active date/board selection. Every mutation updates
memory first and then writes the whole affected collection back through the
CollectionStore. A failed write raises StorageWriteError; the in-memory state
keeps the change. Rollover is the exception: it commits nothing until its
tasks are saved, so a failed rollover can be retried.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any

from ..errors import DraftValidationError, StorageWriteError
from ..scheduling.weeks import adjacent_week_id, parse_date, same_weekday_in, week_dates, week_id
from ..storage.collection_store import CollectionStore
from ..tasks.task_models import (
    ALL_BOARDS,
    Board,
    Priority,
    Task,
    TaskDraft,
    TaskMeta,
    TaskStatus,
    Week,
    parse_timestamp,
    utc_now,
)

logger = logging.getLogger(__name__)

# Fields a caller may change through update(). id/week_id/timestamps are owned by the session.
UPDATABLE_FIELDS = frozenset(
    {"board", "title", "notes", "status", "scheduled_for", "remind_at", "priority", "meta"}
)

NAVIGATION_STEPS = {"prev": -1, "next": 1}


def new_task_id(now: datetime | None = None) -> str:
    now = now or utc_now()
    return f"tsk_{int(now.timestamp() * 1000)}_{uuid.uuid4().hex[:9]}"


def validate_draft(draft: TaskDraft) -> None:
    """Caller-side check; the session itself does not re-validate drafts."""
    if not draft.title or not draft.title.strip():
        raise DraftValidationError("title is required")


@dataclass(slots=True, frozen=True)
class DayCount:
    day: date
    remaining: int  # not done
    total: int


@dataclass(slots=True, frozen=True)
class RolloverResult:
    week_id: str
    created: bool
    rolled: tuple[Task, ...]


def _coerce_field(name: str, value: Any) -> Any:
    if name == "board":
        return Board(value)
    if name == "status":
        return TaskStatus(value)
    if name == "priority":
        return Priority(value)
    if name == "meta" and value is not None and not isinstance(value, TaskMeta):
        return TaskMeta.from_raw(value)
    if name == "scheduled_for":
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            return parse_date(value)
        raise ValueError(f"scheduled_for must be a date, got {type(value).__name__}")
    if name == "remind_at" and value is not None:
        if isinstance(value, (str, datetime)):
            ts = parse_timestamp(value)
            if ts is not None:
                return ts
        raise ValueError(f"remind_at must be a datetime or ISO timestamp, got {value!r}")
    return value


class TrackerSession:
    def __init__(
        self,
        store: CollectionStore,
        *,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[datetime], str] = new_task_id,
    ) -> None:
        self._store = store
        self._clock = clock
        self._new_id = id_factory

        self._tasks: list[Task] = []
        self._weeks: list[Week] = []

        self.current_week_id: str = ""
        self.selected_date: date | None = None
        self.selected_board: str = ALL_BOARDS

    # ---- read accessors ----

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def weeks(self) -> list[Week]:
        return list(self._weeks)

    def get(self, task_id: str) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def find_week(self, wid: str) -> Week | None:
        for w in self._weeks:
            if w.id == wid:
                return w
        return None

    # ---- startup ----

    async def load(self, today: date | None = None) -> None:
        """
        Load both collections (in parallel) and open the week containing `today`.
        """
        tasks, weeks = await asyncio.gather(self._store.load_tasks(), self._store.load_weeks())
        self._tasks = tasks
        self._weeks = weeks

        today = today or date.today()
        self.current_week_id = week_id(today)
        self.selected_date = today
        logger.info(
            "Session loaded tasks=%d weeks=%d current=%s",
            len(self._tasks),
            len(self._weeks),
            self.current_week_id,
        )
        try:
            await self.ensure_week(self.current_week_id)
        except StorageWriteError as e:
            # The week is open in memory; the next successful write persists it.
            logger.warning("Could not save week %s at startup: %s", self.current_week_id, e)

    # ---- task CRUD ----

    async def add(self, draft: TaskDraft) -> Task:
        now = self._clock()
        task = Task(
            id=self._new_id(now),
            board=draft.board,
            title=draft.title,
            status=draft.status,
            scheduled_for=draft.scheduled_for,
            week_id=week_id(draft.scheduled_for),
            priority=draft.priority,
            created_at=now,
            updated_at=now,
            notes=draft.notes,
            remind_at=draft.remind_at,
            meta=draft.meta,
        )
        self._tasks = [*self._tasks, task]
        logger.debug("Task added id=%s board=%s date=%s", task.id, task.board, task.scheduled_for)
        await self._store.save_tasks(self._tasks)
        return task

    async def update(self, task_id: str, **fields: Any) -> Task | None:
        """
        Merge `fields` into the task with `task_id`.

        Unknown ids are ignored (returns None). week_id is left as is even when
        scheduled_for changes.
        """
        bad = set(fields) - UPDATABLE_FIELDS
        if bad:
            raise ValueError(f"cannot update field(s): {', '.join(sorted(bad))}")

        current = self.get(task_id)
        if current is None:
            logger.debug("update ignored: unknown task id=%s", task_id)
            return None

        changes = {name: _coerce_field(name, value) for name, value in fields.items()}
        updated = replace(current, **changes, updated_at=self._clock())
        if "scheduled_for" in changes and week_id(updated.scheduled_for) != updated.week_id:
            logger.warning(
                "Task %s moved to %s but stays in %s",
                task_id,
                updated.scheduled_for,
                updated.week_id,
            )

        self._tasks = [updated if t.id == task_id else t for t in self._tasks]
        await self._store.save_tasks(self._tasks)
        return updated

    async def delete(self, task_id: str) -> bool:
        remaining = [t for t in self._tasks if t.id != task_id]
        if len(remaining) == len(self._tasks):
            logger.debug("delete ignored: unknown task id=%s", task_id)
            return False
        self._tasks = remaining
        await self._store.save_tasks(self._tasks)
        return True

    async def toggle(self, task_id: str) -> Task | None:
        """Flip open <-> done. Skipped tasks are returned unchanged."""
        task = self.get(task_id)
        if task is None:
            return None
        if task.status == TaskStatus.OPEN:
            return await self.update(task_id, status=TaskStatus.DONE)
        if task.status == TaskStatus.DONE:
            return await self.update(task_id, status=TaskStatus.OPEN)
        return task

    async def skip(self, task_id: str) -> Task | None:
        return await self.update(task_id, status=TaskStatus.SKIPPED)

    # ---- weeks / navigation ----

    async def ensure_week(self, wid: str) -> Week:
        existing = self.find_week(wid)
        if existing is not None:
            return existing

        dates = week_dates(wid)
        week = Week(id=wid, start_date=dates[0], end_date=dates[-1], created_at=self._clock())
        self._weeks = [*self._weeks, week]
        logger.info("Week created id=%s", wid)
        await self._store.save_weeks(self._weeks)
        return week

    async def navigate(self, direction: str) -> str:
        step = NAVIGATION_STEPS.get(direction)
        if step is None:
            raise ValueError(f"direction must be 'prev' or 'next', got {direction!r}")
        target = adjacent_week_id(self._require_current_week(), step)
        await self.ensure_week(target)
        self._open_week(target)
        return target

    async def select_date(self, d: date) -> None:
        """Make `d` the active date; the current week follows it."""
        wid = week_id(d)
        if wid != self.current_week_id:
            await self.ensure_week(wid)
            self.current_week_id = wid
        self.selected_date = d

    async def go_to_today(self, today: date | None = None) -> None:
        await self.select_date(today or date.today())

    def select_board(self, board: str) -> None:
        self.selected_board = ALL_BOARDS if board == ALL_BOARDS else Board(board).value

    def _require_current_week(self) -> str:
        if not self.current_week_id:
            raise RuntimeError("session not loaded")
        return self.current_week_id

    def _open_week(self, wid: str) -> None:
        self.current_week_id = wid
        self.selected_date = week_dates(wid)[0]

    # ---- rollover ----

    async def start_next_week(self) -> RolloverResult:
        """
        Carry every open task of the current week into the next one.

        Runs at most once per week boundary: when the next week already exists
        only the view moves forward. Rolled tasks are new records on the same
        weekday; the originals stay where they were.
        """
        current = self._require_current_week()
        next_id = adjacent_week_id(current, 1)

        if self.find_week(next_id) is not None:
            logger.info("Rollover skipped: %s already exists", next_id)
            self._open_week(next_id)
            return RolloverResult(week_id=next_id, created=False, rolled=())

        now = self._clock()
        dates = week_dates(next_id)
        week = Week(id=next_id, start_date=dates[0], end_date=dates[-1], created_at=now)
        rolled = [
            replace(
                t,
                id=self._new_id(now),
                week_id=next_id,
                scheduled_for=same_weekday_in(next_id, t.scheduled_for),
                created_at=now,
                updated_at=now,
            )
            for t in self._tasks
            if t.week_id == current and t.status == TaskStatus.OPEN
        ]
        tasks = [*self._tasks, *rolled]

        # Nothing changes in memory until the tasks are saved; an existing next
        # week means the boundary was already rolled.
        await self._store.save_tasks(tasks)
        self._tasks = tasks
        self._weeks = [*self._weeks, week]
        logger.info("Rollover %s -> %s: %d task(s)", current, next_id, len(rolled))
        self._open_week(next_id)
        await self._store.save_weeks(self._weeks)
        return RolloverResult(week_id=next_id, created=True, rolled=tuple(rolled))

    # ---- queries ----

    def tasks_for(self, d: date, board_filter: str = ALL_BOARDS) -> list[Task]:
        """
        Tasks scheduled on `d` for the board (or all boards).

        Not-done tasks come first, done tasks last; order inside each group is
        the collection order.
        """
        matching = [
            t
            for t in self._tasks
            if t.scheduled_for == d and (board_filter == ALL_BOARDS or t.board == board_filter)
        ]
        pending = [t for t in matching if t.status != TaskStatus.DONE]
        done = [t for t in matching if t.status == TaskStatus.DONE]
        return pending + done

    def day_counts(self, wid: str | None = None) -> list[DayCount]:
        out: list[DayCount] = []
        for d in week_dates(wid or self._require_current_week()):
            day_tasks = [t for t in self._tasks if t.scheduled_for == d]
            remaining = sum(1 for t in day_tasks if t.status != TaskStatus.DONE)
            out.append(DayCount(day=d, remaining=remaining, total=len(day_tasks)))
        return out

    def board_counts(self, d: date | None = None) -> dict[str, int]:
        d = d or self.selected_date
        counts = {ALL_BOARDS: 0, **{b.value: 0 for b in Board}}
        for t in self._tasks:
            if t.scheduled_for != d:
                continue
            counts[ALL_BOARDS] += 1
            counts[t.board.value] += 1
        return counts

    def week_summary(self, wid: str | None = None) -> dict[TaskStatus, int]:
        wid = wid or self._require_current_week()
        summary = {s: 0 for s in TaskStatus}
        for t in self._tasks:
            if t.week_id == wid:
                summary[t.status] += 1
        return summary

    def week_range(self, wid: str | None = None) -> tuple[date, date]:
        dates = week_dates(wid or self._require_current_week())
        return dates[0], dates[-1]

