# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from weekboard.core.state import AppState
from weekboard.storage.collection_store import CollectionStore
from weekboard.tracker.session import TrackerSession

from .fakes import FixedClock, InMemoryKeyValueStore


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="weekboard-test",
        data_dir=tmp_path,
        store_db_path=tmp_path / "weekboard.sqlite3",
        default_board="todos",
        console_enabled=False,
        reminders_enabled=False,
        reminder_interval_seconds=0.05,
        reminder_lead_minutes=0,
    )


@pytest.fixture()
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def session(kv: InMemoryKeyValueStore, clock: FixedClock) -> TrackerSession:
    """Unloaded session over an in-memory store; tests call `await session.load(...)`."""
    return TrackerSession(CollectionStore(kv), clock=clock)


@pytest.fixture()
def state(settings: SimpleNamespace, kv: InMemoryKeyValueStore, session: TrackerSession) -> AppState:
    return AppState(settings=settings, kv_store=kv, session=session, default_board="todos")

