# src/weekboard/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..tracker.session import TrackerSession
from .ports import KeyValueStore


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    kv_store: KeyValueStore
    session: TrackerSession

    # Board used by /add when neither the command nor the board filter names one.
    default_board: str = "todos"
