# src/weekboard/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from pathlib import Path

APP_LOGGER = "weekboard"
LOG_FILE_NAME = "weekboard.log"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Background components that speak through their own output (the reminder
# loop prints via its notifier); only their warnings reach the console.
QUIET_LOGGERS = ("weekboard.tracker.reminders",)


def _is_under(name: str, prefix: str) -> bool:
    return name == prefix or name.startswith(prefix + ".")


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the REPL readable:
    - app logs pass, quiet app loggers only at WARNING+
    - captured warnings ('py.warnings') and third-party logs only at ERROR+
    """

    def __init__(self, quiet: Iterable[str] = QUIET_LOGGERS) -> None:
        super().__init__()
        self._quiet = tuple(quiet)

    def filter(self, record: logging.LogRecord) -> bool:
        if not _is_under(record.name, APP_LOGGER):
            return record.levelno >= logging.ERROR
        if any(_is_under(record.name, q) for q in self._quiet):
            return record.levelno >= logging.WARNING
        return True


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    return handler


def setup_logging(
    *,
    log_dir: str | Path = ".local/weekboard",
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route all logging to stderr (filtered) and to `<log_dir>/weekboard.log`
    (everything at `file_level`). Replaces any handlers already installed.

    Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    console = _handler(logging.StreamHandler(sys.stderr), console_level)
    console.addFilter(_ConsoleNoiseFilter())

    logging.basicConfig(
        level=logging.DEBUG,
        handlers=[console, _handler(logging.FileHandler(str(log_file), encoding="utf-8"), file_level)],
        force=True,
    )
    logging.captureWarnings(True)
    return log_file
