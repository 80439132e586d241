# src/weekboard/scheduling/weeks.py

"""
Week identity helpers.

Weeks run Monday -> Sunday regardless of locale. A week is identified by its
Monday: "wk_YYYY-MM-DD". Every date maps to exactly one week id, and
week_dates(week_id(d)) always contains d.
"""

from __future__ import annotations

from datetime import date, timedelta

from ..errors import InvalidWeekIdError

WEEK_ID_PREFIX = "wk_"
DAYS_IN_WEEK = 7
DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def parse_date(text: str) -> date:
    """Parse a strict YYYY-MM-DD calendar date."""
    raw = (text or "").strip()
    if len(raw) != 10:
        raise ValueError(f"expected YYYY-MM-DD, got {text!r}")
    return date.fromisoformat(raw)


def week_start(d: date) -> date:
    # Sunday-based weekday: Sun=0 .. Sat=6.
    day = d.isoweekday() % 7
    back = 6 if day == 0 else day - 1
    return d - timedelta(days=back)


def weekday_index(d: date) -> int:
    """0-indexed Monday-start position of d (Monday=0, Sunday=6)."""
    day = d.isoweekday() % 7
    return 6 if day == 0 else day - 1


def week_id(d: date) -> str:
    return f"{WEEK_ID_PREFIX}{week_start(d).isoformat()}"


def week_start_from_id(wid: str) -> date:
    if not isinstance(wid, str) or not wid.startswith(WEEK_ID_PREFIX):
        raise InvalidWeekIdError(f"not a week id: {wid!r}")
    try:
        return parse_date(wid[len(WEEK_ID_PREFIX):])
    except ValueError as e:
        raise InvalidWeekIdError(f"not a week id: {wid!r}") from e


def week_dates(wid: str) -> list[date]:
    """
    The 7 calendar dates (Monday..Sunday) spanned by a week id.

    The embedded date is trusted as the first day; ids produced by week_id()
    always embed a Monday.
    """
    start = week_start_from_id(wid)
    return [start + timedelta(days=i) for i in range(DAYS_IN_WEEK)]


def adjacent_week_id(wid: str, step: int) -> str:
    """Id of the week `step` weeks away from `wid` (negative = earlier)."""
    start = week_start_from_id(wid)
    return week_id(start + timedelta(days=DAYS_IN_WEEK * int(step)))


def same_weekday_in(wid: str, d: date) -> date:
    """The date in week `wid` that shares d's Monday-start weekday position."""
    return week_dates(wid)[weekday_index(d)]


def format_week_range(wid: str) -> str:
    dates = week_dates(wid)
    first, last = dates[0], dates[-1]
    return f"{first.day} {first:%b} - {last.day} {last:%b}"
