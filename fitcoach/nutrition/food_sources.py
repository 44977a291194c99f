# -*- coding: utf-8 -*-
"""Third-party food databases: Open Food Facts and USDA FoodData Central.

Both are mapped into the local ``FoodItem`` shape (values per 100 g).
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from ..backend import first_row
from ..config import settings
from ..errors import ConfigurationError, FoodSourceError
from .calc import round_half_up
from .models import FoodItem

logger = logging.getLogger(__name__)

_SERVING_RE = re.compile(r"(\d+(?:\.\d+)?)\s*g", re.IGNORECASE)

USDA_NUTRIENTS = {
    "calories_per_100g": "Energy",
    "protein_per_100g": "Protein",
    "carbs_per_100g": "Carbohydrate, by difference",
    "fat_per_100g": "Total lipid (fat)",
    "fiber_per_100g": "Fiber, total dietary",
}


def _headers() -> Dict[str, str]:
    return {"User-Agent": settings.off_user_agent, "Accept": "application/json"}


def _num(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


# ---- Open Food Facts: single product by barcode ----


async def fetch_off_product(
    barcode: str,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[Dict[str, Any]]:
    """Raw OFF product for ``barcode``; None when OFF does not know it."""
    url = f"{settings.off_base_url.rstrip('/')}/api/v0/product/{barcode}.json"
    try:
        async with httpx.AsyncClient(timeout=30, follow_redirects=True, transport=transport) as client:
            resp = await client.get(url, headers=_headers())
            resp.raise_for_status()
            data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise FoodSourceError("Failed to fetch from Open Food Facts") from exc
    if data.get("status") != 1 or not data.get("product"):
        return None
    return data["product"]


def off_product_to_food_item(product: Dict[str, Any], barcode: str) -> FoodItem:
    nutriments = product.get("nutriments") or {}
    calories = nutriments.get("energy-kcal_100g") or nutriments.get("energy-kcal") or 0
    protein = nutriments.get("proteins_100g") or nutriments.get("proteins") or 0
    carbs = nutriments.get("carbohydrates_100g") or nutriments.get("carbohydrates") or 0
    fat = nutriments.get("fat_100g") or nutriments.get("fat") or 0
    fiber = nutriments.get("fiber_100g") or nutriments.get("fiber") or 0

    serving = 100.0
    match = _SERVING_RE.search(product.get("serving_size") or "")
    if match:
        serving = float(match.group(1))

    name = product.get("product_name") or "Unknown Product"
    if product.get("brands"):
        name = f"{product['brands']} - {name}"

    return FoodItem(
        food_name=name,
        calories_per_100g=round_half_up(_num(calories)),
        protein_per_100g=round_half_up(_num(protein), 1),
        carbs_per_100g=round_half_up(_num(carbs), 1),
        fat_per_100g=round_half_up(_num(fat), 1),
        fiber_per_100g=round_half_up(_num(fiber), 1),
        serving_size_g=serving,
        nutrient_basis="per 100g",
        barcode=barcode,
        source="open_food_facts",
        is_verified=False,
        brand=product.get("brands"),
    )


# ---- Open Food Facts: category search ----


def _off_search_item(product: Dict[str, Any]) -> Optional[FoodItem]:
    nutriments = product.get("nutriments") or {}
    energy_value = nutriments.get("energy_value")
    energy = nutriments.get("energy")
    if not (product.get("product_name") and nutriments and (energy_value or energy) and product.get("_id")):
        return None
    tags = product.get("categories_tags") or []
    return FoodItem(
        food_name=product["product_name"],
        food_group=tags[0] if tags else None,
        calories_per_100g=_num(energy_value) if energy_value else _num(energy) / 4.184,
        protein_per_100g=_num(nutriments.get("proteins")),
        carbs_per_100g=_num(nutriments.get("carbohydrates")),
        fat_per_100g=_num(nutriments.get("fat")),
        fiber_per_100g=_num(nutriments.get("fiber")),
        barcode=product.get("code"),
        source="open_food_facts",
        source_id=str(product["_id"]),
        brand=product.get("brands"),
        nutrient_basis="100g",
        is_verified=True,
    )


async def search_open_food_facts(
    query: str,
    limit: int = 20,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[FoodItem]:
    """Category search; a timeout or upstream failure yields an empty list."""
    url = f"{settings.off_base_url.rstrip('/')}/api/v2/search"
    params = {
        "categories_tags_en": query,
        "page_size": max(1, limit),
        "fields": "code,product_name,brands,categories_tags,nutriments,_id",
    }
    try:
        async with httpx.AsyncClient(
            timeout=settings.off_search_timeout, follow_redirects=True, transport=transport
        ) as client:
            resp = await client.get(url, params=params, headers=_headers())
            resp.raise_for_status()
            data = resp.json()
    except httpx.TimeoutException:
        logger.error("Open Food Facts search timed out after %.0f seconds", settings.off_search_timeout)
        return []
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("Error searching Open Food Facts: %s", exc)
        return []

    items = [item for item in map(_off_search_item, data.get("products") or []) if item is not None]
    logger.info("Open Food Facts returned %d usable products for %r", len(items), query)
    return items


# ---- USDA FoodData Central ----


def _usda_item(food: Dict[str, Any]) -> Optional[FoodItem]:
    if not food.get("fdcId"):
        return None
    by_name = {n.get("nutrientName"): n.get("value") for n in food.get("foodNutrients") or []}
    values = {field: _num(by_name.get(name)) for field, name in USDA_NUTRIENTS.items()}
    return FoodItem(
        food_name=food.get("description") or "Unknown food",
        food_group=food.get("foodCategory"),
        source="usda",
        source_id=str(food["fdcId"]),
        nutrient_basis="100g",
        is_verified=True,
        **values,
    )


async def search_usda(
    query: str,
    limit: int = 20,
    *,
    api_key: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[FoodItem]:
    api_key = api_key or settings.usda_api_key
    if not api_key:
        raise ConfigurationError("USDA API key is missing. Set USDA_API_KEY.")
    url = f"{settings.usda_base_url.rstrip('/')}/foods/search"
    params = {"api_key": api_key, "query": query, "pageSize": limit}
    try:
        async with httpx.AsyncClient(timeout=30, follow_redirects=True, transport=transport) as client:
            resp = await client.get(url, params=params)
            resp.raise_for_status()
            data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise FoodSourceError(f"USDA API error: {exc}") from exc
    return [item for item in map(_usda_item, data.get("foods") or []) if item is not None]


# ---- persistence ----


async def upsert_food_items(client: Any, items: List[FoodItem]) -> List[Dict[str, Any]]:
    """Save external items into ``food_items``; rows that fail are skipped and logged."""
    saved = []
    for item in items:
        record = item.model_dump(exclude={"id"}, exclude_none=True)
        try:
            response = await client.table("food_items").upsert(record, on_conflict="source,source_id").execute()
        except Exception as exc:
            logger.error("Error upserting %s item %s: %s", item.source, item.source_id, exc)
            continue
        row = first_row(response)
        if row:
            saved.append(row)
    return saved
