# src/weekboard/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the SQLite key-value store, the collection codec and the session into AppState,
- loads both collections and opens today's week.
"""

from __future__ import annotations

import logging
from datetime import date

from ..config import get_settings
from ..core.state import AppState
from ..storage.collection_store import CollectionStore
from ..storage.kv_store import SqliteKeyValueStore
from ..tracker.session import TrackerSession

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    kv = SqliteKeyValueStore(settings.store_db_path)
    session = TrackerSession(CollectionStore(kv))
    return AppState(
        settings=settings,
        kv_store=kv,
        session=session,
        default_board=getattr(settings, "default_board", "todos"),
    )


async def open_state(*, settings=None, today: date | None = None) -> AppState:
    """Build AppState and load the persisted collections into its session."""
    state = create_initial_state(settings=settings)
    await state.session.load(today=today)
    logger.info(
        "Opened %s with %d task(s), current week %s",
        getattr(state.settings, "app_name", "weekboard"),
        len(state.session.tasks),
        state.session.current_week_id,
    )
    return state
