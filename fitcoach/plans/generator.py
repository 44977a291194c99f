# -*- coding: utf-8 -*-
"""Workout program and meal plan generation through OpenRouter.

One chat completion per plan. The model is asked for JSON; whatever object it
returns is taken from the free-form reply and missing top-level keys are filled
with defaults. Nothing beyond that is validated.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from typing import Any, Dict, Optional, Sequence

import httpx

from ..config import settings
from ..errors import ConfigurationError, PlanGenerationError, PlanGenerationTimeout
from ..exercises.matching import find_best_exercise_match
from ..exercises.models import DbExercise
from .models import MealPlanAthleteData, ProgramAthleteData

logger = logging.getLogger(__name__)

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

PROGRAM_DEFAULTS: Dict[str, Any] = {
    "program_name": "Generated Program",
    "description": "",
    "phase": "",
    "fitness_level": "",
    "total_weeks": 0,
    "days_per_week": 0,
    "weeks": [],
    "progression_strategy": "",
    "deload_strategy": "",
    "notes": "",
}

MEAL_PLAN_DEFAULTS: Dict[str, Any] = {
    "plan_name": "Generated Meal Plan",
    "description": "",
    "total_calories": 0,
    "total_protein": 0,
    "total_carbs": 0,
    "total_fat": 0,
    "day_types": [],
    "weekly_schedule": [],
    "progression_strategy": "",
    "notes": "",
}

PROGRAM_SYSTEM_PROMPT = """You are an expert strength and conditioning coach. Create a training program.
Output MUST be a single valid JSON object with the keys: program_name, description, phase,
fitness_level, total_weeks, days_per_week, weeks (each with week_number, notes and workouts; each
workout with name, day_number, focus, notes and exercises; each exercise with name, sets, set_type,
reps, rest_seconds, tempo, primary_muscle_group, secondary_muscle_group, large_muscle_group,
equipment, notes), progression_strategy, deload_strategy, notes.
Only use the equipment the athlete has available."""

MEAL_PLAN_SYSTEM_PROMPT = """You are a sports nutritionist. Create a meal plan.
Output MUST be a single valid JSON object with the keys: plan_name, description, total_calories,
total_protein, total_carbs, total_fat, day_types (each with type, description, notes, the four
totals and meals; each meal with name, time in 24h HH:MM, the four totals and foods; each food with
name, quantity, unit in grams, calories, protein, carbs, fat), weekly_schedule (day, day_type),
progression_strategy, notes.
Include at least a training day and a rest day, and keep daily macros close to the targets given."""


def program_user_prompt(athlete: ProgramAthleteData) -> str:
    lines = [
        f"Athlete: {athlete.gender}, age {athlete.age}, weight {athlete.weight} kg, height {athlete.height} cm.",
        f"Experience: {athlete.experience}. Goal: {athlete.goal}.",
        f"Training {athlete.training_days} days a week, {athlete.session_duration} minutes per session, for {athlete.weeks} weeks.",
    ]
    if athlete.body_fat is not None:
        lines.append(f"Body fat: about {athlete.body_fat}%.")
    if athlete.target_muscle_groups:
        lines.append(f"Focus muscle groups: {', '.join(athlete.target_muscle_groups)}.")
    if athlete.available_equipment:
        lines.append(f"Available equipment: {', '.join(athlete.available_equipment)}.")
    if athlete.injury_considerations:
        lines.append(f"Injuries to work around: {athlete.injury_considerations}.")
    if athlete.preferences:
        lines.append(f"Preferences: {athlete.preferences}.")
    return "\n".join(lines)


def meal_plan_user_prompt(athlete: MealPlanAthleteData) -> str:
    lines = [
        f"Athlete: {athlete.gender}, age {athlete.age}, weight {athlete.weight_kg} kg, height {athlete.height_cm} cm.",
        f"Goal: {athlete.goal_type}. {athlete.goal_physique_details}".strip(),
        f"Trains {athlete.training_days_per_week}x a week ({athlete.training_current_program or 'general'} program, "
        f"{athlete.training_session_length_minutes} minutes).",
        f"{athlete.meals_per_day} meals a day. Targets: {athlete.calories_target} kcal, "
        f"{athlete.protein_target} g protein, {athlete.carbs_target} g carbs, {athlete.fat_target} g fat.",
    ]
    if athlete.body_fat_percentage is not None:
        lines.append(f"Body fat: about {athlete.body_fat_percentage}%.")
    if athlete.goal_target_fat_loss_kg:
        lines.append(f"Wants to lose {athlete.goal_target_fat_loss_kg} kg of fat.")
    if athlete.goal_target_muscle_gain_kg:
        lines.append(f"Wants to gain {athlete.goal_target_muscle_gain_kg} kg of muscle.")
    if athlete.step_goal:
        lines.append(f"Daily step goal: {athlete.step_goal}.")
    if athlete.nutrition_preferences:
        lines.append(f"Preferences: {athlete.nutrition_preferences}.")
    if athlete.nutrition_allergies:
        lines.append(f"Allergies: {athlete.nutrition_allergies}.")
    return "\n".join(lines)


def extract_json_object(content: str) -> Dict[str, Any]:
    match = _JSON_OBJECT_RE.search(content or "")
    if not match:
        raise PlanGenerationError("No valid JSON found in the AI response")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise PlanGenerationError(f"Failed to parse AI response JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise PlanGenerationError("AI response JSON is not an object")
    return data


def with_defaults(data: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(defaults)
    merged.update({k: v for k, v in data.items() if v is not None})
    return merged


async def chat_completion(
    system_prompt: str,
    user_prompt: str,
    *,
    model: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Single OpenRouter chat completion; returns the assistant message text."""
    if not settings.openrouter_api_key:
        raise ConfigurationError("OpenRouter API key is not defined in environment variables")

    url = settings.openrouter_base_url.rstrip("/") + "/chat/completions"
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {settings.openrouter_api_key}",
        "HTTP-Referer": settings.openrouter_referer,
        "X-Title": settings.openrouter_title,
    }
    payload = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "temperature": settings.openrouter_temperature,
        "max_tokens": settings.openrouter_max_tokens,
    }

    logger.info("Requesting completion from %s (timeout %ss)", model, settings.openrouter_timeout)
    try:
        async with httpx.AsyncClient(
            timeout=settings.openrouter_timeout, follow_redirects=True, transport=transport
        ) as client:
            resp = await client.post(url, headers=headers, json=payload)
            resp.raise_for_status()
            data = resp.json()
    except httpx.TimeoutException as exc:
        logger.error("OpenRouter request timed out: %s", exc)
        raise PlanGenerationTimeout() from exc
    except httpx.HTTPStatusError as exc:
        raise PlanGenerationError(
            f"OpenRouter returned {exc.response.status_code}: {exc.response.text[:300]}"
        ) from exc
    except (httpx.HTTPError, ValueError) as exc:
        raise PlanGenerationError(f"OpenRouter request failed: {exc}") from exc

    try:
        return str(data["choices"][0]["message"]["content"] or "")
    except (KeyError, IndexError, TypeError) as exc:
        raise PlanGenerationError("OpenRouter response has no message content") from exc


async def generate_workout_program(
    athlete: ProgramAthleteData,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    content = await chat_completion(
        PROGRAM_SYSTEM_PROMPT,
        program_user_prompt(athlete),
        model=settings.openrouter_program_model,
        transport=transport,
    )
    return with_defaults(extract_json_object(content), PROGRAM_DEFAULTS)


async def generate_meal_plan(
    athlete: MealPlanAthleteData,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    content = await chat_completion(
        MEAL_PLAN_SYSTEM_PROMPT,
        meal_plan_user_prompt(athlete),
        model=settings.openrouter_meal_model,
        transport=transport,
    )
    return with_defaults(extract_json_object(content), MEAL_PLAN_DEFAULTS)


def match_program_exercises(program: Dict[str, Any], exercises: Sequence[DbExercise]) -> int:
    """Attach ``exercise_id`` and ``matched_exercise_name`` to every generated exercise.

    Unmatched exercises get ``None`` for both. Returns how many were matched.
    """
    matched = 0
    for week in program.get("weeks") or []:
        for workout in week.get("workouts") or []:
            for item in workout.get("exercises") or []:
                found = find_best_exercise_match(
                    item.get("name") or "",
                    item.get("primary_muscle_group"),
                    item.get("equipment"),
                    exercises,
                )
                item["exercise_id"] = found.id if found else None
                item["matched_exercise_name"] = found.name if found else None
                if found:
                    matched += 1
    logger.info("Matched %d generated exercises to the exercise library", matched)
    return matched
