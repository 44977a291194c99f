# -*- coding: utf-8 -*-
"""Exercise domain: Pydantic models."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class DbExercise(BaseModel):
    id: str
    name: str
    primary_muscle_group: Optional[str] = None
    equipment: Optional[str] = None
    target: Optional[str] = None
    body_part: Optional[str] = None
    description: Optional[str] = None


class CatalogExercise(BaseModel):
    id: str
    name: str
    description: str = ""
    category: str = "Uncategorized"
    muscles: List[str] = Field(default_factory=list)
    equipment: List[str] = Field(default_factory=list)
    image: Optional[str] = None
    instructions: List[str] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)
    type: Optional[str] = None


class PreviousSet(BaseModel):
    exercise_instance_id: str
    set_order: Optional[int] = None
    weight: Optional[str] = None
    reps: Optional[int] = None


class CatalogResponse(BaseModel):
    total: int
    items: List[CatalogExercise]


class ExerciseMatchRequest(BaseModel):
    name: str = Field(..., min_length=1)
    muscle_group: Optional[str] = None
    equipment: Optional[str] = None
