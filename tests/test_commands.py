# tests/test_commands.py

from __future__ import annotations

from datetime import date, datetime

import pytest

from weekboard.cli.commands import CommandRegistry, parse_draft, registry, render_week
from weekboard.connectors.console_connector import handle_line
from weekboard.errors import DraftValidationError
from weekboard.tasks.task_models import Board, Priority, TaskStatus

from .fakes import MONDAY, WEDNESDAY


@pytest.mark.asyncio
async def test_command_registry_routes_sync_async_and_emit_handlers(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}
    notes: list[str] = []

    def h2(state, args):
        called["h2"] += 1
        return "h2"

    async def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3 " + " ".join(args)

    reg.register("a", h2, "a")
    reg.register("b", h3, "b", aliases=["bee"])

    assert await reg.handle(state, "/a x") == "h2"
    assert await reg.handle(state, "/BEE y z", emit=notes.append) == "h3 y z"
    assert called == {"h2": 1, "h3": 1}
    assert notes == ["note"]


@pytest.mark.asyncio
async def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert await reg.handle(state, "hello") is None
    assert "Unknown command" in (await reg.handle(state, "/nope") or "")
    assert "Empty command" in (await reg.handle(state, "/") or "")


@pytest.mark.asyncio
async def test_parse_draft_reads_options_title_and_notes(state) -> None:
    await state.session.load(today=MONDAY)

    draft = parse_draft(
        state,
        "board:exercise date:wed pri:high at:07:30 Morning run -- 5k easy".split(),
    )

    assert draft.board == Board.EXERCISE
    assert draft.scheduled_for == WEDNESDAY
    assert draft.priority == Priority.HIGH
    assert draft.title == "Morning run"
    assert draft.notes == "5k easy"
    assert draft.remind_at == datetime(2024, 1, 3, 7, 30)


@pytest.mark.asyncio
async def test_parse_draft_defaults_and_validation(state) -> None:
    await state.session.load(today=WEDNESDAY)
    state.session.select_board("dinner")

    draft = parse_draft(state, ["Tacos"])
    assert draft.board == Board.DINNER
    assert draft.scheduled_for == WEDNESDAY
    assert draft.priority == Priority.MED
    assert draft.remind_at is None

    with pytest.raises(DraftValidationError):
        parse_draft(state, ["pri:low"])
    with pytest.raises(ValueError):
        parse_draft(state, ["board:garden", "dig"])


@pytest.mark.asyncio
async def test_add_toggle_and_delete_through_commands(state) -> None:
    await state.session.load(today=WEDNESDAY)

    reply = await registry.handle(state, "/add Buy milk")
    assert reply is not None and "Buy milk" in reply
    await registry.handle(state, "/add board:dinner Soup")

    await registry.handle(state, "/done 1")
    tasks = state.session.tasks_for(WEDNESDAY)
    assert [t.title for t in tasks] == ["Soup", "Buy milk"]
    assert tasks[1].status == TaskStatus.DONE

    assert "No task" in (await registry.handle(state, "/rm 9") or "")
    await registry.handle(state, "/rm 1")
    assert [t.title for t in state.session.tasks] == ["Buy milk"]


@pytest.mark.asyncio
async def test_edit_command(state) -> None:
    await state.session.load(today=WEDNESDAY)
    await registry.handle(state, "/add Laundry")

    await registry.handle(state, "/edit 1 title Laundry and ironing")
    await registry.handle(state, "/edit 1 pri high")
    await registry.handle(state, "/edit 1 at 19:15")

    (task,) = state.session.tasks
    assert task.title == "Laundry and ironing"
    assert task.priority == Priority.HIGH
    assert task.remind_at == datetime(2024, 1, 3, 19, 15)

    await registry.handle(state, "/edit 1 at -")
    assert state.session.tasks[0].remind_at is None


@pytest.mark.asyncio
async def test_rollover_command_and_render(state) -> None:
    await state.session.load(today=MONDAY)
    await registry.handle(state, "/add date:wed Call plumber")
    emitted: list[str] = []

    text = await registry.handle(state, "/rollover", emit=emitted.append)

    assert emitted == ["Rolled 1 open task(s) into 8 Jan - 14 Jan."]
    assert text is not None and text.startswith("Week 8 Jan - 14 Jan (wk_2024-01-08)")
    await state.session.select_date(date(2024, 1, 10))
    assert "Call plumber" in render_week(state, today=MONDAY)


@pytest.mark.asyncio
async def test_console_reports_errors_and_treats_plain_text_as_add(state) -> None:
    await state.session.load(today=WEDNESDAY)

    assert await handle_line(state, "   ") is None
    reply = await handle_line(state, "Pick up parcel")
    assert reply is not None and "Pick up parcel" in reply
    assert (await handle_line(state, "/day 2024-13-40") or "").startswith("Error:")
