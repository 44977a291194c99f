# -*- coding: utf-8 -*-
"""Exercise catalogue and library matching endpoints."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..deps import get_optional_backend, require_backend
from .catalog import ExerciseCatalog
from .matching import fetch_all_exercises, find_best_exercise_match
from .models import CatalogExercise, CatalogResponse, DbExercise, ExerciseMatchRequest

router = APIRouter(prefix="/api/exercises", tags=["Exercises"])

_catalog: Optional[ExerciseCatalog] = None


def get_exercise_catalog() -> ExerciseCatalog:
    """Process-wide catalogue; the first request pages it in."""
    global _catalog
    if _catalog is None:
        _catalog = ExerciseCatalog()
    return _catalog


@router.get("/catalog", response_model=CatalogResponse, summary="List or search the exercise catalogue")
async def list_catalog(
    q: Optional[str] = Query(None, min_length=1),
    limit: int = Query(20, ge=1, le=500),
    catalog: ExerciseCatalog = Depends(get_exercise_catalog),
):
    items = await catalog.search(q, limit) if q else (await catalog.get_all())[:limit]
    if not catalog.is_cached:
        raise HTTPException(status_code=502, detail="Exercise catalogue unavailable")
    return CatalogResponse(total=len(items), items=items)


@router.get("/catalog/{exercise_id}", response_model=CatalogExercise, summary="One catalogue exercise")
async def get_catalog_exercise(exercise_id: str, catalog: ExerciseCatalog = Depends(get_exercise_catalog)):
    found = await catalog.get_by_id(exercise_id)
    if found is None:
        raise HTTPException(status_code=404, detail="Exercise not found")
    return found


@router.post("/match", response_model=DbExercise, summary="Best library match for an exercise name")
async def match_exercise(request: ExerciseMatchRequest, client: Optional[Any] = Depends(get_optional_backend)):
    exercises = await fetch_all_exercises(require_backend(client))
    found = find_best_exercise_match(request.name, request.muscle_group, request.equipment, exercises)
    if found is None:
        raise HTTPException(status_code=404, detail="No matching exercise")
    return found
