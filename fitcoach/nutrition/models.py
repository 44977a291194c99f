# -*- coding: utf-8 -*-
"""Nutrition domain: Pydantic models."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class NutritionValues(BaseModel):
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0


class FoodItem(BaseModel):
    id: Optional[str] = None
    food_name: str
    calories_per_100g: float = Field(0.0, ge=0)
    protein_per_100g: float = Field(0.0, ge=0)
    carbs_per_100g: float = Field(0.0, ge=0)
    fat_per_100g: float = Field(0.0, ge=0)
    fiber_per_100g: Optional[float] = None
    serving_size_g: Optional[float] = None
    nutrient_basis: Optional[str] = "per 100g"
    food_group: Optional[str] = None
    barcode: Optional[str] = None
    brand: Optional[str] = None
    source: Optional[str] = None
    source_id: Optional[str] = None
    is_verified: bool = False

    @field_validator("calories_per_100g", "protein_per_100g", "carbs_per_100g", "fat_per_100g", mode="before")
    @classmethod
    def _missing_as_zero(cls, v):
        return 0.0 if v is None else v

    @field_validator("is_verified", mode="before")
    @classmethod
    def _missing_as_false(cls, v):
        return bool(v)


class MissedMeal(BaseModel):
    meal_id: str
    name: str
    suggested_time: str


class NutritionTotalsRounded(BaseModel):
    total_calories: int = 0
    total_protein: int = 0
    total_carbs: int = 0
    total_fat: int = 0


class CalculateRequest(BaseModel):
    food_item: FoodItem
    quantity: float = Field(..., ge=0)
    unit: str = Field("g", min_length=1)


class CalculateResponse(BaseModel):
    grams: float
    values: NutritionValues
    rounded: NutritionValues


class FoodSearchResponse(BaseModel):
    query: str
    source: str
    items: List[FoodItem]
