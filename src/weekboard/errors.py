# src/weekboard/errors.py

from __future__ import annotations


class WeekboardError(Exception):
    """Base class for errors the console reports back to the user."""


class StorageWriteError(WeekboardError):
    """
    Persisting a collection failed.

    The in-memory session already holds the change; the caller decides whether
    to retry or tell the user.
    """

    def __init__(self, key: str, cause: BaseException | None = None) -> None:
        self.key = key
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"failed to save '{key}'{detail}")


class InvalidWeekIdError(ValueError):
    """A week identifier could not be parsed."""


class DraftValidationError(ValueError):
    """A task draft was rejected before reaching the session."""
