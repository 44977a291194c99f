# -*- coding: utf-8 -*-
"""Nutrition: API endpoints."""

from __future__ import annotations

from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..deps import get_optional_backend, require_backend
from ..errors import ConfigurationError, FoodSourceError
from .calc import calculate_nutrition, quantity_in_grams, round_values
from .food_sources import search_open_food_facts, search_usda
from .models import CalculateRequest, CalculateResponse, FoodItem, FoodSearchResponse
from .service import get_food_item_by_barcode, search_food_items

router = APIRouter(prefix="/api/nutrition", tags=["Nutrition"])


@router.post("/calculate", response_model=CalculateResponse, summary="Nutrition for a quantity of a food item")
def calculate(request: CalculateRequest):
    values = calculate_nutrition(request.food_item, request.quantity, request.unit)
    return CalculateResponse(
        grams=quantity_in_grams(request.food_item, request.quantity, request.unit),
        values=values,
        rounded=round_values(values),
    )


@router.get("/foods/search", response_model=FoodSearchResponse, summary="Search foods")
async def search_foods(
    q: str = Query(..., min_length=2),
    source: Literal["local", "off", "usda"] = Query("local"),
    limit: int = Query(20, ge=1, le=100),
    client: Optional[Any] = Depends(get_optional_backend),
):
    try:
        if source == "off":
            items = await search_open_food_facts(q, limit)
        elif source == "usda":
            items = await search_usda(q, limit)
        else:
            found = await search_food_items(require_backend(client), q, limit)
            items = [FoodItem.model_validate(r) for r in found]
    except ConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except FoodSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return FoodSearchResponse(query=q, source=source, items=items)


@router.get("/foods/barcode/{barcode}", summary="Look up a food by barcode")
async def food_by_barcode(barcode: str, client: Optional[Any] = Depends(get_optional_backend)):
    try:
        item, source = await get_food_item_by_barcode(require_backend(client), barcode)
    except FoodSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    if not item:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"source": source, "item": item}
