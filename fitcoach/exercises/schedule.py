# -*- coding: utf-8 -*-
"""Weekly program schedule helpers."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional

from ..dates import get_current_day_of_week

_PARENS_RE = re.compile(r"\s*\([^)]*\)\s*")
_SPACES_RE = re.compile(r"\s+")


def get_todays_workout(
    workouts: Iterable[Dict[str, Any]],
    now: Optional[datetime] = None,
) -> Optional[Dict[str, Any]]:
    today = get_current_day_of_week(now)
    for workout in workouts:
        if workout.get("day_of_week") == today:
            return workout
    return None


def is_effective_rest_day(workout: Optional[Mapping[str, Any]]) -> bool:
    """No workout, a workout without exercises, or one named as a rest day."""
    if not workout:
        return True
    if not workout.get("exercise_instances"):
        return True
    return "rest" in (workout.get("name") or "").lower()


def clean_exercise_name(name: str) -> str:
    if not name:
        return name
    return _SPACES_RE.sub(" ", _PARENS_RE.sub(" ", name)).strip()
