# -*- coding: utf-8 -*-
"""Offline resources: Pydantic state snapshots."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ResourceState(BaseModel):
    is_loading: bool = False
    is_from_cache: bool = False
    error: Optional[str] = None


class WorkoutState(ResourceState):
    assignment: Optional[Dict[str, Any]] = None
    workouts: List[Dict[str, Any]] = Field(default_factory=list)
    todays_workout: Optional[Dict[str, Any]] = None
    is_completed: bool = False
    completion_time: Optional[str] = None
    is_rest_day: bool = True
    current_day_name: str = ""


class NutritionState(ResourceState):
    nutrition_plan: Optional[Dict[str, Any]] = None
    daily_log: Optional[Dict[str, Any]] = None
    meals_for_today: List[Dict[str, Any]] = Field(default_factory=list)


class SupplementsState(ResourceState):
    supplements: List[Dict[str, Any]] = Field(default_factory=list)
    total_supplements: int = 0
    logged_count: int = 0
    adherence_percentage: int = 0


class StepsState(ResourceState):
    step_goal: Optional[int] = None
    step_count: int = 0
    progress_percentage: int = 0
    remaining_steps: int = 0
    formatted_steps: str = "0"
    formatted_goal: str = "0"
    has_goal: bool = False


class WaterState(ResourceState):
    water_goal: Optional[int] = None
    water_intake: int = 0
    progress_percentage: int = 0
    remaining_ml: int = 0
    has_goal: bool = False


class HomeStats(BaseModel):
    """Dashboard totals for one day, cached during precache."""

    date: str
    workouts_completed: int = 0
    has_workout_program: bool = False
    has_workout_today: bool = False
    meals_logged: int = 0
    meals_planned: int = 0
    steps_count: int = 0
    steps_goal: int = 0
    water_intake: int = 0
    water_goal: int = 0
    supplements_taken: int = 0
    supplements_total: int = 0
    check_in_status: str = "todo"
    days_since_check_in: Optional[int] = None
