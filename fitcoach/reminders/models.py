# -*- coding: utf-8 -*-
"""Reminder models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ReminderPriority(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


PRIORITY_ORDER = {ReminderPriority.high: 0, ReminderPriority.medium: 1, ReminderPriority.low: 2}


class Reminder(BaseModel):
    id: str
    type: str
    title: str
    message: str
    priority: ReminderPriority
    href: Optional[str] = None
    created_at: str


class ReminderSnapshot(BaseModel):
    """Backend state the reminder rules are evaluated against."""

    profile: Dict[str, Any] = Field(default_factory=dict)
    has_workout_today: bool = False
    workout_completed: bool = False
    supplements: List[Dict[str, Any]] = Field(default_factory=list)
    plan_meals: List[Dict[str, Any]] = Field(default_factory=list)
    logged_meal_ids: List[str] = Field(default_factory=list)
    water_goal: Optional[int] = None
    water_intake: int = 0
    step_goal: int = 0
    step_count: int = 0
    days_since_check_in: Optional[int] = None
