# src/weekboard/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing required at import time; every value has a local default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "WEEKBOARD"

BOARD_CHOICES = ("todos", "exercise", "dinner")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    store_db_path: Path

    # ---- Console ----
    console_enabled: bool
    default_board: str

    # ---- Reminders ----
    reminders_enabled: bool
    reminder_interval_seconds: float
    reminder_lead_minutes: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "weekboard") or "weekboard"
        log_level = _env(_k("LOG_LEVEL"), "WARNING")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/weekboard"))
        store_db_path = _env_path(_k("STORE_DB_PATH"), data_dir / "weekboard.sqlite3")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        default_board = _env(_k("DEFAULT_BOARD"), "todos").strip().lower()
        if default_board not in BOARD_CHOICES:
            default_board = "todos"

        reminders_enabled = _env_bool(_k("REMINDERS_ENABLED"), True)
        reminder_interval_seconds = _env_float(_k("REMINDER_INTERVAL_SECONDS"), 30.0)
        reminder_lead_minutes = _env_int(_k("REMINDER_LEAD_MINUTES"), 0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            store_db_path=store_db_path,
            console_enabled=console_enabled,
            default_board=default_board,
            reminders_enabled=reminders_enabled,
            reminder_interval_seconds=reminder_interval_seconds,
            reminder_lead_minutes=reminder_lead_minutes,
        )


@lru_cache
def get_settings() -> Settings:
    load_dotenv(override=False)
    return Settings.from_env()
