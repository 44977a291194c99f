# -*- coding: utf-8 -*-
"""Plan generation: request/response models."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ProgramAthleteData(BaseModel):
    gender: str
    age: int = Field(..., ge=10, le=100)
    weight: float = Field(..., gt=0, description="kg")
    height: float = Field(..., gt=0, description="cm")
    body_fat: Optional[float] = Field(None, ge=0, le=70)
    experience: str = Field("Intermediate", description="Beginner, Intermediate or Advanced")
    goal: str
    training_days: int = Field(..., ge=1, le=7)
    session_duration: int = Field(60, ge=10, description="minutes")
    weeks: int = Field(4, ge=1, le=52)
    preferences: str = ""
    target_muscle_groups: List[str] = Field(default_factory=list)
    available_equipment: List[str] = Field(default_factory=list)
    injury_considerations: str = ""


class MealPlanAthleteData(BaseModel):
    gender: str
    age: int = Field(..., ge=10, le=100)
    weight_kg: float = Field(..., gt=0)
    height_cm: float = Field(..., gt=0)
    body_fat_percentage: Optional[float] = Field(None, ge=0, le=70)
    goal_type: str
    goal_target_fat_loss_kg: Optional[float] = None
    goal_target_muscle_gain_kg: Optional[float] = None
    goal_physique_details: str = ""
    training_days_per_week: int = Field(4, ge=0, le=7)
    training_current_program: str = ""
    training_session_length_minutes: int = 60
    step_goal: Optional[int] = None
    meals_per_day: int = Field(4, ge=1, le=10)
    calories_target: float = Field(..., gt=0)
    protein_target: float = Field(..., ge=0)
    carbs_target: float = Field(..., ge=0)
    fat_target: float = Field(..., ge=0)
    nutrition_preferences: str = ""
    nutrition_allergies: Optional[str] = None


class ProgramRequest(BaseModel):
    athlete_data: ProgramAthleteData


class MealPlanRequest(BaseModel):
    athlete_data: MealPlanAthleteData


class GeneratedPlanResponse(BaseModel):
    success: bool = True
    model: str
    data: Dict[str, Any]
