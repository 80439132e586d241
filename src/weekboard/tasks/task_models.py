# src/weekboard/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import StrEnum
from typing import Any

from ..scheduling.weeks import parse_date


class Board(StrEnum):
    TODOS = "todos"
    EXERCISE = "exercise"
    DINNER = "dinner"

    @classmethod
    def from_raw(cls, raw: str | None) -> Board:
        if not raw:
            return cls.TODOS
        try:
            return cls(raw)
        except ValueError:
            return cls.TODOS


# Board filter accepted by queries in addition to the concrete boards.
ALL_BOARDS = "all"


class TaskStatus(StrEnum):
    """
    Task status.

    Only "open" tasks roll over into the next week; "skipped" is left alone by
    toggling.
    """

    OPEN = "open"
    DONE = "done"
    SKIPPED = "skipped"

    @classmethod
    def from_raw(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.OPEN
        try:
            return cls(raw)
        except ValueError:
            return cls.OPEN


class Priority(StrEnum):
    LOW = "low"
    MED = "med"
    HIGH = "high"

    @classmethod
    def from_raw(cls, raw: str | None) -> Priority:
        if not raw:
            return cls.MED
        try:
            return cls(raw)
        except ValueError:
            return cls.MED


@dataclass(slots=True, frozen=True)
class TaskMeta:
    """
    Optional free-form task metadata.

    `kind` says what the payload is; a task without metadata carries None
    instead of an empty dict.
    """

    kind: str
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "payload": dict(self.payload)}

    @classmethod
    def from_raw(cls, raw: Any) -> TaskMeta | None:
        if raw is None:
            return None
        if isinstance(raw, dict):
            kind = raw.get("kind")
            payload = raw.get("payload")
            if isinstance(kind, str) and kind and isinstance(payload, dict):
                return cls(kind=kind, payload=payload)
            if not raw:
                return None
            # Untagged dicts written by older versions.
            return cls(kind="legacy", payload=dict(raw))
        return cls(kind="legacy", payload={"value": raw})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(raw: Any) -> datetime | None:
    if not raw:
        return None
    if isinstance(raw, datetime):
        return raw
    try:
        # fromisoformat on 3.11 accepts the trailing "Z" JS writes.
        return datetime.fromisoformat(str(raw))
    except ValueError:
        return None


def _ts_to_str(ts: datetime | None) -> str | None:
    return ts.isoformat() if ts is not None else None


@dataclass(slots=True)
class TaskDraft:
    """What the caller supplies before id/timestamps/week are assigned."""

    title: str
    board: Board
    scheduled_for: date
    priority: Priority = Priority.MED
    notes: str | None = None
    remind_at: datetime | None = None
    status: TaskStatus = TaskStatus.OPEN
    meta: TaskMeta | None = None


@dataclass(slots=True)
class Task:
    id: str
    board: Board
    title: str
    status: TaskStatus
    scheduled_for: date
    week_id: str
    priority: Priority
    created_at: datetime
    updated_at: datetime

    notes: str | None = None
    remind_at: datetime | None = None
    meta: TaskMeta | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "board": self.board.value,
            "title": self.title,
            "status": self.status.value,
            "scheduled_for": self.scheduled_for.isoformat(),
            "week_id": self.week_id,
            "priority": self.priority.value,
            "created_at": _ts_to_str(self.created_at),
            "updated_at": _ts_to_str(self.updated_at),
        }
        if self.notes is not None:
            out["notes"] = self.notes
        if self.remind_at is not None:
            out["remind_at"] = _ts_to_str(self.remind_at)
        if self.meta is not None:
            out["meta"] = self.meta.to_dict()
        return out

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Task:
        """
        Build a Task from its stored form.

        Raises ValueError when a required field (id, title, scheduled_for,
        week_id) is missing or unparseable. Unknown enum values fall back to
        their defaults.
        """
        task_id = raw.get("id")
        title = raw.get("title")
        week = raw.get("week_id")
        if not isinstance(task_id, str) or not task_id:
            raise ValueError("task without id")
        if not isinstance(title, str):
            raise ValueError(f"task {task_id} without title")
        if not isinstance(week, str) or not week:
            raise ValueError(f"task {task_id} without week_id")
        scheduled_for = parse_date(str(raw.get("scheduled_for") or ""))

        created_at = parse_timestamp(raw.get("created_at")) or utc_now()
        updated_at = parse_timestamp(raw.get("updated_at")) or created_at
        notes = raw.get("notes")

        return cls(
            id=task_id,
            board=Board.from_raw(raw.get("board")),
            title=title,
            status=TaskStatus.from_raw(raw.get("status")),
            scheduled_for=scheduled_for,
            week_id=week,
            priority=Priority.from_raw(raw.get("priority")),
            created_at=created_at,
            updated_at=updated_at,
            notes=str(notes) if notes is not None else None,
            remind_at=parse_timestamp(raw.get("remind_at")),
            meta=TaskMeta.from_raw(raw.get("meta")),
        )


@dataclass(slots=True, frozen=True)
class Week:
    id: str
    start_date: date
    end_date: date
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "created_at": _ts_to_str(self.created_at),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Week:
        wid = raw.get("id")
        if not isinstance(wid, str) or not wid:
            raise ValueError("week without id")
        return cls(
            id=wid,
            start_date=parse_date(str(raw.get("start_date") or "")),
            end_date=parse_date(str(raw.get("end_date") or "")),
            created_at=parse_timestamp(raw.get("created_at")) or utc_now(),
        )
