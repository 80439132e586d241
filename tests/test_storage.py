# tests/test_storage.py

from __future__ import annotations

import json
from dataclasses import replace
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from weekboard.errors import StorageWriteError
from weekboard.storage.collection_store import TASKS_KEY, WEEKS_KEY, CollectionStore
from weekboard.storage.kv_store import SqliteKeyValueStore
from weekboard.tasks.task_models import Board, Priority, Task, TaskMeta, TaskStatus, Week

from .fakes import FailingKeyValueStore, InMemoryKeyValueStore


def _task(task_id: str = "tsk_1") -> Task:
    ts = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)
    return Task(
        id=task_id,
        board=Board.DINNER,
        title="Pasta",
        status=TaskStatus.OPEN,
        scheduled_for=date(2024, 1, 3),
        week_id="wk_2024-01-01",
        priority=Priority.HIGH,
        created_at=ts,
        updated_at=ts,
        notes="fresh basil",
        meta=TaskMeta(kind="recipe", payload={"servings": 2}),
    )


@pytest.mark.asyncio
async def test_sqlite_store_get_set_and_reopen(tmp_path: Path) -> None:
    db = tmp_path / "kv.sqlite3"
    store = SqliteKeyValueStore(db)
    assert await store.get("tasks") is None

    await store.set("tasks", "[1]")
    await store.set("tasks", "[1, 2]")
    assert await store.get("tasks") == "[1, 2]"

    reopened = SqliteKeyValueStore(db)
    assert await reopened.get("tasks") == "[1, 2]"


@pytest.mark.asyncio
async def test_collections_save_and_load_tasks_and_weeks() -> None:
    kv = InMemoryKeyValueStore()
    store = CollectionStore(kv)
    week = Week(
        id="wk_2024-01-01",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 7),
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )

    await store.save_tasks([_task()])
    await store.save_weeks([week])

    assert await store.load_tasks() == [_task()]
    assert await store.load_weeks() == [week]
    assert json.loads(kv.data[TASKS_KEY])[0]["scheduled_for"] == "2024-01-03"


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", [None, "", "{not json", '{"a": 1}', "42"])
async def test_unreadable_collections_load_as_empty(raw: str | None) -> None:
    kv = InMemoryKeyValueStore({} if raw is None else {TASKS_KEY: raw, WEEKS_KEY: raw})
    store = CollectionStore(kv)
    assert await store.load_tasks() == []
    assert await store.load_weeks() == []


@pytest.mark.asyncio
async def test_read_errors_load_as_empty() -> None:
    store = CollectionStore(FailingKeyValueStore(fail_reads=True))
    assert await store.load_tasks() == []


@pytest.mark.asyncio
async def test_malformed_entries_are_skipped() -> None:
    good = _task().to_dict()
    kv = InMemoryKeyValueStore(
        {
            TASKS_KEY: json.dumps(
                [
                    good,
                    "not an object",
                    {"title": "no id", "scheduled_for": "2024-01-03", "week_id": "wk_2024-01-01"},
                    {**good, "id": "tsk_2", "scheduled_for": "someday"},
                ]
            )
        }
    )
    tasks = await CollectionStore(kv).load_tasks()
    assert [t.id for t in tasks] == ["tsk_1"]


@pytest.mark.asyncio
async def test_write_failures_are_surfaced() -> None:
    store = CollectionStore(FailingKeyValueStore())
    with pytest.raises(StorageWriteError) as excinfo:
        await store.save_tasks([_task()])
    assert excinfo.value.key == TASKS_KEY
    assert isinstance(excinfo.value.cause, OSError)


def test_task_from_dict_tolerates_older_records() -> None:
    raw = {
        "id": "tsk_1700000000000_abc",
        "board": "gardening",
        "title": "Water plants",
        "status": "archived",
        "scheduled_for": "2024-01-07",
        "week_id": "wk_2024-01-01",
        "priority": "urgent",
        "created_at": "2024-01-01T08:00:00.000Z",
        "remind_at": "2024-01-07T18:30",
        "meta": {"source": "import"},
    }
    task = Task.from_dict(raw)
    assert task.board == Board.TODOS
    assert task.status == TaskStatus.OPEN
    assert task.priority == Priority.MED
    assert task.created_at.tzinfo is not None
    assert task.updated_at == task.created_at
    assert task.remind_at == datetime(2024, 1, 7, 18, 30)
    assert task.meta == TaskMeta(kind="legacy", payload={"source": "import"})


def test_task_meta_absent_stays_none() -> None:
    assert TaskMeta.from_raw(None) is None
    assert TaskMeta.from_raw({}) is None
    assert "meta" not in replace(_task(), meta=None).to_dict()
