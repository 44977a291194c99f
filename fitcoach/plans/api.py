# -*- coding: utf-8 -*-
"""Plan generation endpoints (workout program / meal plan)."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..config import settings
from ..deps import get_optional_backend
from ..errors import ConfigurationError, PlanGenerationError, PlanGenerationTimeout
from ..exercises.matching import fetch_all_exercises
from .generator import generate_meal_plan, generate_workout_program, match_program_exercises
from .models import GeneratedPlanResponse, MealPlanRequest, ProgramRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/plans", tags=["Plans"])


async def _run(generation: Awaitable[Any]) -> Any:
    try:
        return await generation
    except PlanGenerationTimeout as exc:
        raise HTTPException(status_code=504, detail=str(exc)) from exc
    except ConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except PlanGenerationError as exc:
        logger.error("Plan generation failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.post("/program", response_model=GeneratedPlanResponse, summary="Generate a workout program")
async def create_program(request: ProgramRequest, client: Optional[Any] = Depends(get_optional_backend)):
    plan = await _run(generate_workout_program(request.athlete_data))
    if client is not None:
        # without a backend the exercises stay unmatched
        match_program_exercises(plan, await fetch_all_exercises(client))
    return GeneratedPlanResponse(model=settings.openrouter_program_model, data=plan)


@router.post("/meal", response_model=GeneratedPlanResponse, summary="Generate a meal plan")
async def create_meal_plan(request: MealPlanRequest):
    plan = await _run(generate_meal_plan(request.athlete_data))
    return GeneratedPlanResponse(model=settings.openrouter_meal_model, data=plan)
