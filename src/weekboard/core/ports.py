# src/weekboard/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the tracker.

The session depends on Protocols instead of concrete implementations.
This keeps storage and output channels swappable and makes testing easier.
"""

from typing import Awaitable, Protocol


class KeyValueStore(Protocol):
    """
    Opaque async key-value store.

    Values are whole serialized collections. get() returns None when the key
    was never written.
    """

    def get(self, key: str) -> Awaitable[str | None]: ...

    def set(self, key: str, value: str) -> Awaitable[None]: ...


class ReminderNotifier(Protocol):
    """Where due reminders are delivered (console, desktop notification, ...)."""

    def notify(self, text: str) -> Awaitable[None]: ...
