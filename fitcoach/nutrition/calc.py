# -*- coding: utf-8 -*-
"""Nutrition arithmetic: unit conversion, per-100 g scaling and aggregation.

Values are kept unrounded so that they stay linear in the quantity;
``round_values`` / ``calculate_total_nutrition`` are for presentation only.
"""

from __future__ import annotations

import math
from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..dates import get_current_time_string
from .models import MissedMeal, NutritionTotalsRounded, NutritionValues

DEFAULT_DAY_TYPE = "Training Day"

# grams per unit; ``serving`` depends on the food item
_UNIT_GRAMS: Dict[str, float] = {
    "g": 1.0,
    "kg": 1000.0,
    "oz": 28.35,
    "lb": 453.59,
    "ml": 1.0,
    "l": 1000.0,
    "cup": 240.0,
    "tbsp": 15.0,
    "tsp": 5.0,
}


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves up (2.5 -> 3); the builtin ``round`` rounds them to even."""
    if digits == 0:
        return math.floor(value + 0.5)
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def _field(item: Any, name: str, default: Any = None) -> Any:
    if isinstance(item, Mapping):
        return item.get(name, default)
    return getattr(item, name, default)


def quantity_in_grams(food_item: Any, quantity: float, unit: str) -> float:
    unit = (unit or "g").strip().lower()
    if unit == "serving":
        return float(_field(food_item, "serving_size_g") or 100) * quantity
    return quantity * _UNIT_GRAMS.get(unit, 1.0)


def calculate_nutrition(food_item: Any, quantity: float, unit: str) -> NutritionValues:
    multiplier = quantity_in_grams(food_item, quantity, unit) / 100
    return NutritionValues(
        calories=float(_field(food_item, "calories_per_100g") or 0) * multiplier,
        protein=float(_field(food_item, "protein_per_100g") or 0) * multiplier,
        carbs=float(_field(food_item, "carbs_per_100g") or 0) * multiplier,
        fat=float(_field(food_item, "fat_per_100g") or 0) * multiplier,
    )


def round_values(values: NutritionValues) -> NutritionValues:
    """Display rounding: whole kcal, one decimal for macros."""
    return NutritionValues(
        calories=round_half_up(values.calories),
        protein=round_half_up(values.protein, 1),
        carbs=round_half_up(values.carbs, 1),
        fat=round_half_up(values.fat, 1),
    )


def sum_values(values: Iterable[NutritionValues]) -> NutritionValues:
    total = NutritionValues()
    for v in values:
        total.calories += v.calories
        total.protein += v.protein
        total.carbs += v.carbs
        total.fat += v.fat
    return total


def meal_totals(food_items: Sequence[Mapping[str, Any]]) -> NutritionValues:
    """Sum of per-item values for rows carrying ``food_item``, ``quantity`` and ``unit``."""
    parts = []
    for row in food_items:
        food = row.get("food_item")
        if food:
            parts.append(calculate_nutrition(food, float(row.get("quantity") or 0), row.get("unit") or "g"))
    return sum_values(parts)


def totals_of(rows: Iterable[Mapping[str, Any]]) -> NutritionValues:
    """Sum of the ``total_*`` fields of meal (or meal log) rows."""
    rows = list(rows)
    return NutritionValues(
        calories=sum(float(r.get("total_calories") or 0) for r in rows),
        protein=sum(float(r.get("total_protein") or 0) for r in rows),
        carbs=sum(float(r.get("total_carbs") or 0) for r in rows),
        fat=sum(float(r.get("total_fat") or 0) for r in rows),
    )


def calculate_total_nutrition(meals: Iterable[Mapping[str, Any]]) -> NutritionTotalsRounded:
    total = totals_of(meals)
    return NutritionTotalsRounded(
        total_calories=round_half_up(total.calories),
        total_protein=round_half_up(total.protein),
        total_carbs=round_half_up(total.carbs),
        total_fat=round_half_up(total.fat),
    )


def calculate_percentage(consumed: float, target: Optional[float] = None) -> float:
    if not target or target <= 0:
        return 0.0
    return min(max(consumed / target * 100, 0.0), 100.0)


def get_meals_for_day_type(plan: Mapping[str, Any], day_type: str) -> List[Dict[str, Any]]:
    """Meals of ``plan`` that apply to ``day_type``; "Training"/"Rest" also match heavy/light."""
    wanted = day_type.lower()
    selected = []
    for meal in plan.get("meals") or []:
        label = (meal.get("day_type") or "").lower()
        if not label:
            selected.append(meal)
        elif wanted == "training":
            if "training" in label or "heavy" in label:
                selected.append(meal)
        elif wanted == "rest":
            if "rest" in label or "light" in label:
                selected.append(meal)
        elif wanted in label:
            selected.append(meal)
    return selected


def get_day_type_targets(plan: Mapping[str, Any], day_type: str) -> NutritionValues:
    return totals_of(get_meals_for_day_type(plan, day_type))


def get_missed_meals(
    meals: Iterable[Mapping[str, Any]],
    logged_meal_ids: Iterable[str],
    day_type: str,
    now: Optional[datetime] = None,
) -> List[MissedMeal]:
    current = get_current_time_string(now)
    logged = set(logged_meal_ids)
    missed = []
    for meal in meals:
        label = meal.get("day_type")
        if label and day_type.lower() not in label.lower():
            continue
        if meal.get("id") in logged:
            continue
        suggestion = meal.get("time_suggestion")
        if suggestion and suggestion[:5] < current:
            missed.append(MissedMeal(meal_id=str(meal["id"]), name=meal.get("name") or "", suggested_time=suggestion))
    return missed


def primary_day_type(logged_meals: Iterable[Mapping[str, Any]]) -> str:
    counts = Counter(m.get("day_type") for m in logged_meals if m.get("day_type"))
    if not counts:
        return DEFAULT_DAY_TYPE
    return counts.most_common(1)[0][0]


def build_daily_log(
    day: str,
    logged_meals: List[Dict[str, Any]],
    plan: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Daily log document from meal log rows already carrying per-meal totals."""
    totals = totals_of(logged_meals)
    return {
        "date": day,
        "day_type": primary_day_type(logged_meals),
        "logged_meals": logged_meals,
        "total_calories": totals.calories,
        "total_protein": totals.protein,
        "total_carbs": totals.carbs,
        "total_fat": totals.fat,
        "target_calories": plan.get("total_calories") if plan else None,
        "target_protein": plan.get("protein_grams") if plan else None,
        "target_carbs": plan.get("carbohydrate_grams") if plan else None,
        "target_fat": plan.get("fat_grams") if plan else None,
    }
