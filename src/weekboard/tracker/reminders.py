# src/weekboard/tracker/reminders.py

from __future__ import annotations

"""
Reminder loop.

A small polling loop that:
- looks at the session's tasks,
- picks open tasks whose remind_at is due (optionally a few minutes early),
- sends each one once through an injected notifier port.

Delivery (console print, desktop popup, ...) belongs to the notifier, not the loop.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.ports import ReminderNotifier
from ..tasks.task_models import Task, TaskStatus, utc_now
from .session import TrackerSession

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ReminderDispatch:
    task: Task
    text: str


def _as_aware(ts: datetime) -> datetime:
    # Naive timestamps are wall-clock local time.
    return ts if ts.tzinfo is not None else ts.astimezone()


def format_reminder(task: Task) -> str:
    when = _as_aware(task.remind_at).astimezone().strftime("%H:%M") if task.remind_at else "--:--"
    line = f"Reminder {when} [{task.board}] {task.title}"
    if task.notes:
        line += f" - {task.notes}"
    return line


def reminder_key(task: Task) -> str:
    """
    Identity of a reminder for "already sent" bookkeeping.

    Rollover copies a task under a new id with the same remind_at, so the key
    is the reminder's content rather than the task id.
    """
    when = task.remind_at.isoformat() if task.remind_at else ""
    return f"{task.board}|{when}|{task.title}"


def due_reminders(
    tasks: Iterable[Task],
    *,
    now: datetime,
    lead: timedelta = timedelta(0),
    already_sent: Iterable[str] = (),
) -> list[ReminderDispatch]:
    """Open tasks whose reminder time is at or before now + lead, oldest first."""
    sent = set(already_sent)
    horizon = _as_aware(now) + lead
    out: list[ReminderDispatch] = []
    for t in tasks:
        key = reminder_key(t)
        if t.remind_at is None or t.status != TaskStatus.OPEN or key in sent:
            continue
        if _as_aware(t.remind_at) <= horizon:
            out.append(ReminderDispatch(task=t, text=format_reminder(t)))
            sent.add(key)
    out.sort(key=lambda d: _as_aware(d.task.remind_at))  # type: ignore[arg-type]
    return out


async def run_reminder_loop(
        session: TrackerSession,
        notifier: ReminderNotifier,
        *,
        interval_seconds: float = 30.0,
        lead_minutes: int = 0,
        clock: Callable[[], datetime] = utc_now,
        sent: set[str] | None = None,
) -> None:
    """
    Simple polling loop.

    Every interval_seconds:
    - collect due reminders that were not sent yet
    - send via notifier.notify(...)
    - remember the reminder_key on success; failures are retried on the next tick

    To stop the loop, cancel the coroutine/task.
    """
    sleep_s = max(0.05, float(interval_seconds))
    lead = timedelta(minutes=max(0, int(lead_minutes)))
    sent_keys = sent if sent is not None else set()

    while True:
        try:
            due = due_reminders(session.tasks, now=clock(), lead=lead, already_sent=sent_keys)
        except Exception:
            logger.exception("due_reminders failed")
            due = []

        for dispatch in due:
            task_id = dispatch.task.id
            try:
                await notifier.notify(dispatch.text)
            except Exception:
                logger.exception("reminder send failed task_id=%s", task_id)
                continue
            sent_keys.add(reminder_key(dispatch.task))
            logger.info("Reminder sent task_id=%s", task_id)

        await asyncio.sleep(sleep_s)
