# -*- coding: utf-8 -*-
"""Supplement and workout timing derived from the profile's daily rhythm."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional

from ..dates import get_current_time_string

MINUTES_PER_DAY = 24 * 60

DEFAULT_WAKE = "06:00"
DEFAULT_BED = "22:00"
DEFAULT_TRAINING = "17:00"


class ScheduleTime(NamedTuple):
    expected: str
    reminder: str
    grace_minutes: int


def parse_minutes(value: str) -> int:
    hours, minutes = value.split(":")[:2]
    return int(hours) * 60 + int(minutes)


def format_minutes(total: int) -> str:
    total %= MINUTES_PER_DAY
    return f"{total // 60:02d}:{total % 60:02d}"


def add_minutes(value: str, delta: int) -> str:
    return format_minutes(parse_minutes(value) + delta)


def midpoint(start: str, end: str) -> str:
    a = parse_minutes(start)
    b = parse_minutes(end)
    if b < a:
        b += MINUTES_PER_DAY
    return format_minutes((a + b) // 2)


def _profile_time(profile: Optional[Mapping[str, Any]], field: str, default: str) -> str:
    value = (profile or {}).get(field)
    return str(value)[:5] if value else default


def wake_time(profile: Optional[Mapping[str, Any]]) -> str:
    return _profile_time(profile, "nutrition_wakeup_time_of_day", DEFAULT_WAKE)


def bed_time(profile: Optional[Mapping[str, Any]]) -> str:
    return _profile_time(profile, "nutrition_bed_time_of_day", DEFAULT_BED)


def training_time(profile: Optional[Mapping[str, Any]]) -> str:
    return _profile_time(profile, "training_time_of_day", DEFAULT_TRAINING)


def schedule_time(schedule: Optional[str], profile: Optional[Mapping[str, Any]]) -> ScheduleTime:
    wake = wake_time(profile)
    bed = bed_time(profile)
    train = training_time(profile)
    mid = midpoint(wake, bed)
    evening = add_minutes(bed, -120)

    if schedule in ("Morning", "Empty Stomach"):
        return ScheduleTime(add_minutes(wake, 15), wake, 60)
    if schedule == "Before Workout":
        return ScheduleTime(add_minutes(train, -45), add_minutes(train, -60), 30)
    if schedule == "During Workout":
        return ScheduleTime(train, add_minutes(train, -15), 60)
    if schedule == "After Workout":
        return ScheduleTime(add_minutes(train, 45), add_minutes(train, 30), 60)
    if schedule == "With Meal":
        return ScheduleTime(mid, add_minutes(mid, -15), 120)
    if schedule == "Afternoon":
        return ScheduleTime(mid, add_minutes(mid, -30), 120)
    if schedule == "Evening":
        return ScheduleTime(evening, add_minutes(evening, -30), 90)
    if schedule == "Before Bed":
        return ScheduleTime(add_minutes(bed, -30), add_minutes(bed, -45), 45)
    # frequency based schedules (Daily, Weekly, ...) default to the morning
    return ScheduleTime(add_minutes(wake, 30), wake, 240)


def _now_minutes(now: Optional[datetime]) -> int:
    return parse_minutes(get_current_time_string(now))


def is_schedule_due(schedule: Optional[str], profile: Optional[Mapping[str, Any]], now: Optional[datetime] = None) -> bool:
    return _now_minutes(now) >= parse_minutes(schedule_time(schedule, profile).reminder)


def is_schedule_overdue(
    schedule: Optional[str],
    profile: Optional[Mapping[str, Any]],
    now: Optional[datetime] = None,
) -> bool:
    timing = schedule_time(schedule, profile)
    return _now_minutes(now) >= parse_minutes(timing.expected) + timing.grace_minutes


def supplement_status(
    schedule: Optional[str],
    is_logged: bool,
    profile: Optional[Mapping[str, Any]],
    now: Optional[datetime] = None,
) -> str:
    """taken, overdue, due or upcoming."""
    if is_logged:
        return "taken"
    if is_schedule_overdue(schedule, profile, now):
        return "overdue"
    if is_schedule_due(schedule, profile, now):
        return "due"
    return "upcoming"


def workout_status(
    has_workout_today: bool,
    completed: bool,
    profile: Optional[Mapping[str, Any]],
    now: Optional[datetime] = None,
    overdue_after_minutes: int = 120,
) -> str:
    """not_scheduled, completed, overdue, due or upcoming."""
    if not has_workout_today:
        return "not_scheduled"
    if completed:
        return "completed"
    current = _now_minutes(now)
    train = parse_minutes(training_time(profile))
    if current >= train + overdue_after_minutes:
        return "overdue"
    if current >= train - 30:
        return "due"
    return "upcoming"


def supplement_reminders(
    supplements: Iterable[Mapping[str, Any]],
    profile: Optional[Mapping[str, Any]],
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Per-schedule status with the untaken count, sorted by expected time."""
    by_schedule: Dict[str, List[int]] = {}
    for s in supplements:
        counts = by_schedule.setdefault(s.get("schedule") or "Daily", [0, 0])
        counts[1] += 1
        if s.get("is_logged"):
            counts[0] += 1

    result = []
    for schedule, (logged, total) in by_schedule.items():
        timing = schedule_time(schedule, profile)
        result.append(
            {
                "schedule": schedule,
                "status": supplement_status(schedule, logged == total, profile, now),
                "expected_time": timing.expected,
                "count": total - logged,
            }
        )
    return sorted(result, key=lambda r: parse_minutes(r["expected_time"]))


def urgent_supplement_count(
    supplements: Iterable[Mapping[str, Any]],
    profile: Optional[Mapping[str, Any]],
    now: Optional[datetime] = None,
) -> int:
    return sum(
        1
        for s in supplements
        if not s.get("is_logged") and supplement_status(s.get("schedule"), False, profile, now) in ("due", "overdue")
    )
