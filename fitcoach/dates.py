# -*- coding: utf-8 -*-
"""Local-calendar date helpers.

Everything user facing ("today", "this morning") is expressed in the device's
local timezone, never in UTC.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Optional, Tuple

_DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def local_now() -> datetime:
    return datetime.now()


def to_local(value: Optional[datetime] = None) -> datetime:
    """Return a naive datetime in the local timezone.

    Aware datetimes are converted to local time first; naive values are assumed
    to already be local.
    """
    if value is None:
        return local_now()
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def get_local_date_string(value: Optional[datetime] = None) -> str:
    return to_local(value).strftime("%Y-%m-%d")


def get_current_day_of_week(value: Optional[datetime] = None) -> int:
    """1 = Monday .. 7 = Sunday."""
    return to_local(value).isoweekday()


def get_day_name(day_of_week: Optional[int]) -> str:
    if day_of_week is None:
        return ""
    return _DAY_NAMES[(day_of_week - 1) % 7]


def get_current_time_string(value: Optional[datetime] = None) -> str:
    return to_local(value).strftime("%H:%M")


def get_local_date_range_in_utc(value: Optional[datetime] = None) -> Tuple[str, str]:
    """UTC ISO bounds of the local calendar day containing ``value``."""
    local = to_local(value)
    start = datetime.combine(local.date(), time.min).astimezone()
    end = datetime.combine(local.date(), time.max).astimezone()
    return (
        start.astimezone(timezone.utc).isoformat(timespec="milliseconds"),
        end.astimezone(timezone.utc).isoformat(timespec="milliseconds"),
    )


def parse_date(value: str) -> date:
    return date.fromisoformat(value[:10])


def days_between(earlier: str, later: Optional[datetime] = None) -> int:
    """Whole local calendar days from ``earlier`` (YYYY-MM-DD...) to ``later``."""
    today = to_local(later).date()
    return (today - parse_date(earlier)).days


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def day_bounds(day: str) -> Tuple[str, str]:
    """Naive local start/end timestamps of a YYYY-MM-DD day, as stored by the backend."""
    d = parse_date(day)
    return f"{d.isoformat()}T00:00:00", f"{d.isoformat()}T23:59:59"
