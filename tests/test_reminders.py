# tests/test_reminders.py

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from weekboard.tracker.reminders import due_reminders, reminder_key, run_reminder_loop

from .fakes import MONDAY, FakeNotifier, make_draft

NOW = datetime(2024, 1, 3, 18, 0, tzinfo=timezone.utc)


async def _add_with_reminder(session, title: str, remind_at: datetime | None):
    return await session.add(replace(make_draft(title), remind_at=remind_at))


@pytest.mark.asyncio
async def test_due_reminders_picks_open_tasks_at_or_before_now(session) -> None:
    await session.load(today=MONDAY)
    late = await _add_with_reminder(session, "late", NOW - timedelta(minutes=30))
    exact = await _add_with_reminder(session, "exact", NOW)
    await _add_with_reminder(session, "future", NOW + timedelta(minutes=10))
    await _add_with_reminder(session, "none", None)
    done = await _add_with_reminder(session, "done", NOW - timedelta(hours=1))
    await session.toggle(done.id)

    due = due_reminders(session.tasks, now=NOW)
    assert [d.task.id for d in due] == [late.id, exact.id]
    assert "late" in due[0].text

    early = due_reminders(session.tasks, now=NOW, lead=timedelta(minutes=15))
    assert len(early) == 3

    assert due_reminders(session.tasks, now=NOW, already_sent=[reminder_key(late), reminder_key(exact)]) == []


@pytest.mark.asyncio
async def test_reminder_loop_sends_each_reminder_once(session) -> None:
    await session.load(today=MONDAY)
    await _add_with_reminder(session, "stretch", NOW - timedelta(minutes=1))
    notifier = FakeNotifier()

    runner = asyncio.create_task(
        run_reminder_loop(session, notifier, interval_seconds=0.01, clock=lambda: NOW)
    )

    await asyncio.sleep(0.3)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert len(notifier.sent) == 1
    assert "stretch" in notifier.sent[0]


@pytest.mark.asyncio
async def test_reminder_loop_retries_after_a_failed_send(session) -> None:
    await session.load(today=MONDAY)
    task = await _add_with_reminder(session, "cook", NOW - timedelta(minutes=1))
    notifier = FakeNotifier(fail_times=1)
    sent: set[str] = set()

    runner = asyncio.create_task(
        run_reminder_loop(session, notifier, interval_seconds=0.01, clock=lambda: NOW, sent=sent)
    )

    await asyncio.sleep(0.3)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert len(notifier.sent) == 1
    assert sent == {reminder_key(task)}


@pytest.mark.asyncio
async def test_rolled_copies_do_not_repeat_a_sent_reminder(session) -> None:
    await session.load(today=MONDAY)
    task = await _add_with_reminder(session, "Buy milk", NOW)
    sent = {reminder_key(d.task) for d in due_reminders(session.tasks, now=NOW)}
    assert sent == {reminder_key(task)}

    result = await session.start_next_week()

    assert result.rolled[0].remind_at == task.remind_at
    later = NOW + timedelta(minutes=1)
    assert due_reminders(session.tasks, now=later, already_sent=sent) == []


@pytest.mark.asyncio
async def test_same_reminder_on_two_records_is_sent_once(session) -> None:
    await session.load(today=MONDAY)
    await _add_with_reminder(session, "Buy milk", NOW)
    await session.start_next_week()
    assert len(session.tasks) == 2

    due = due_reminders(session.tasks, now=NOW)

    assert len(due) == 1
