# -*- coding: utf-8 -*-
"""Nutrition backend queries (plans, meal logs, food items).

Backend errors propagate to the caller; offline resources catch them and fall
back to the cache.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from ..backend import first_row, rows
from ..dates import utc_now_iso
from ..errors import FitcoachError
from .calc import build_daily_log, calculate_nutrition, meal_totals
from .models import NutritionValues
from .food_sources import fetch_off_product, off_product_to_food_item

logger = logging.getLogger(__name__)


class MealAlreadyLogged(FitcoachError):
    def __init__(self) -> None:
        super().__init__("Meal already logged for this date")


async def _attach_food_items(client: Any, links: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Resolve ``food_item_id`` of link rows into an embedded ``food_item``."""
    ids = sorted({str(l["food_item_id"]) for l in links if l.get("food_item_id")})
    foods: Dict[str, Dict[str, Any]] = {}
    if ids:
        found = await client.table("food_items").select("*").in_("id", ids).execute()
        foods = {str(f["id"]): f for f in rows(found)}
    return [{**l, "food_item": foods.get(str(l.get("food_item_id")))} for l in links]


async def get_nutrition_plan_by_id(client: Any, plan_id: str) -> Optional[Dict[str, Any]]:
    plan = first_row(await client.table("nutrition_plans").select("*").eq("id", plan_id).limit(1).execute())
    if not plan:
        return None

    meals = rows(
        await client.table("meals").select("*").eq("nutrition_plan_id", plan_id).order("order_in_plan").execute()
    )
    meal_ids = [m["id"] for m in meals]
    links: List[Dict[str, Any]] = []
    if meal_ids:
        links = rows(await client.table("meal_food_items").select("*").in_("meal_id", meal_ids).execute())
        links = await _attach_food_items(client, links)

    built = []
    for meal in meals:
        items = []
        for link in (l for l in links if l.get("meal_id") == meal["id"]):
            if link.get("food_item"):
                values = calculate_nutrition(link["food_item"], float(link.get("quantity") or 0), link.get("unit") or "g")
                link = {
                    **link,
                    "calculated_calories": values.calories,
                    "calculated_protein": values.protein,
                    "calculated_carbs": values.carbs,
                    "calculated_fat": values.fat,
                }
            items.append(link)
        totals = meal_totals(items)
        built.append(
            {
                **meal,
                "food_items": items,
                "total_calories": totals.calories,
                "total_protein": totals.protein,
                "total_carbs": totals.carbs,
                "total_fat": totals.fat,
            }
        )

    day_types: List[str] = []
    for meal in built:
        label = meal.get("day_type")
        if label and label not in day_types:
            day_types.append(label)

    return {**plan, "meals": built, "day_types": day_types}


async def get_user_nutrition_plan(client: Any, profile_id: str) -> Optional[Dict[str, Any]]:
    """Newest nutrition-only assignment (no program template) for the athlete."""
    assignment = first_row(
        await client.table("assigned_plans")
        .select("nutrition_plan_id")
        .eq("athlete_id", profile_id)
        .is_("program_template_id", "null")
        .not_.is_("nutrition_plan_id", "null")
        .order("created_at", desc=True)
        .limit(1)
        .execute()
    )
    if not assignment or not assignment.get("nutrition_plan_id"):
        return None
    return await get_nutrition_plan_by_id(client, assignment["nutrition_plan_id"])


async def get_logged_meals_for_date(
    client: Any,
    user_id: str,
    day: str,
    plan: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    logs = rows(
        await client.table("meal_logs").select("*").eq("user_id", user_id).eq("date", day).order("time").execute()
    )
    plan_meals = {m["id"]: m for m in (plan or {}).get("meals") or []}

    logged = []
    for log in logs:
        totals = NutritionValues()
        if log.get("is_extra_meal"):
            links = rows(await client.table("extra_meal_food_items").select("*").eq("meal_log_id", log["id"]).execute())
            totals = meal_totals(await _attach_food_items(client, links))
        elif log.get("meal_id") in plan_meals:
            meal = plan_meals[log["meal_id"]]
            totals = NutritionValues(
                calories=float(meal.get("total_calories") or 0),
                protein=float(meal.get("total_protein") or 0),
                carbs=float(meal.get("total_carbs") or 0),
                fat=float(meal.get("total_fat") or 0),
            )
        logged.append(
            {
                **log,
                "total_calories": totals.calories,
                "total_protein": totals.protein,
                "total_carbs": totals.carbs,
                "total_fat": totals.fat,
            }
        )
    return build_daily_log(day, logged, plan)


async def is_meal_logged_for_date(client: Any, user_id: str, meal_id: str, day: str) -> bool:
    found = await (
        client.table("meal_logs").select("id").eq("user_id", user_id).eq("meal_id", meal_id).eq("date", day).limit(1).execute()
    )
    return first_row(found) is not None


async def log_planned_meal(
    client: Any,
    user_id: str,
    meal_id: str,
    day: str,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    meal = first_row(await client.table("meals").select("*").eq("id", meal_id).limit(1).execute())
    if not meal:
        raise FitcoachError("Meal not found")
    if await is_meal_logged_for_date(client, user_id, meal_id, day):
        raise MealAlreadyLogged()

    response = await client.table("meal_logs").insert(
        {
            "user_id": user_id,
            "meal_id": meal_id,
            "nutrition_plan_id": meal.get("nutrition_plan_id"),
            "name": meal.get("name"),
            "date": day,
            "time": (now or datetime.now()).strftime("%H:%M:%S"),
            "day_type": meal.get("day_type") or "Training Day",
            "notes": notes or None,
            "is_extra_meal": False,
        }
    ).execute()
    return first_row(response) or {}


async def log_extra_meal(
    client: Any,
    user_id: str,
    profile_id: str,
    nutrition_plan_id: str,
    meal: Dict[str, Any],
    day: str,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Log an off-plan meal. ``meal`` holds name, day_type, notes and food_items.

    Food items whose id starts with ``custom-`` are created first (owned by the
    profile); items that cannot be created still count towards the totals but
    are not linked.
    """
    processed = []
    for entry in meal.get("food_items") or []:
        food_id = str(entry.get("food_item_id") or "")
        food = entry.get("food_item")
        if food_id.startswith("custom-") and food:
            try:
                created = await create_custom_food_item(client, food, profile_id)
            except Exception as exc:
                logger.error("Error creating custom food item: %s", exc)
                created = None
            if created:
                food_id, food = str(created["id"]), created
        processed.append({"food_item_id": food_id, "food_item": food, "quantity": entry.get("quantity"), "unit": entry.get("unit")})

    log = first_row(
        await client.table("meal_logs").insert(
            {
                "user_id": user_id,
                "nutrition_plan_id": nutrition_plan_id,
                "name": meal.get("name"),
                "date": day,
                "time": (now or datetime.now()).strftime("%H:%M:%S"),
                "day_type": meal.get("day_type"),
                "notes": meal.get("notes") or None,
                "is_extra_meal": True,
            }
        ).execute()
    ) or {}

    linked = [p for p in processed if p["food_item_id"] and not p["food_item_id"].startswith("custom-")]
    if linked and log.get("id"):
        try:
            await client.table("extra_meal_food_items").insert(
                [
                    {"meal_log_id": log["id"], "food_item_id": p["food_item_id"], "quantity": p["quantity"], "unit": p["unit"]}
                    for p in linked
                ]
            ).execute()
        except Exception as exc:
            logger.error("Error inserting extra meal food items: %s", exc)

    totals = meal_totals(processed)
    return {
        **log,
        "total_calories": totals.calories,
        "total_protein": totals.protein,
        "total_carbs": totals.carbs,
        "total_fat": totals.fat,
    }


async def create_custom_food_item(client: Any, food: Dict[str, Any], profile_id: str) -> Optional[Dict[str, Any]]:
    response = await client.table("food_items").insert(
        {
            "food_name": food.get("food_name"),
            "calories_per_100g": food.get("calories_per_100g") or 0,
            "protein_per_100g": food.get("protein_per_100g") or 0,
            "carbs_per_100g": food.get("carbs_per_100g") or 0,
            "fat_per_100g": food.get("fat_per_100g") or 0,
            "fiber_per_100g": food.get("fiber_per_100g") or 0,
            "serving_size_g": food.get("serving_size_g") or 100,
            "nutrient_basis": food.get("nutrient_basis") or "per 100g",
            "source": "custom",
            "created_by": profile_id,
            "is_verified": False,
        }
    ).execute()
    return first_row(response)


async def delete_logged_meal(client: Any, meal_log_id: str) -> None:
    await client.table("meal_logs").delete().eq("id", meal_log_id).execute()


async def search_food_items(client: Any, query: str, limit: int = 20) -> List[Dict[str, Any]]:
    return rows(await client.table("food_items").select("*").ilike("food_name", f"%{query}%").limit(limit).execute())


async def get_food_item_by_barcode(
    client: Any,
    barcode: str,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> tuple[Optional[Dict[str, Any]], Optional[str]]:
    """Returns ``(item, source)`` where source is ``local`` or ``open_food_facts``.

    Raises FoodSourceError when Open Food Facts cannot be reached.
    """
    try:
        local = first_row(await client.table("food_items").select("*").eq("barcode", barcode).limit(1).execute())
    except Exception as exc:
        logger.error("Error fetching barcode %s from food_items: %s", barcode, exc)
        local = None
    if local:
        return local, "local"

    logger.info("Barcode %s not found locally, checking Open Food Facts", barcode)
    product = await fetch_off_product(barcode, transport=transport)
    if product is None:
        return None, None

    item = off_product_to_food_item(product, barcode)
    record = item.model_dump(exclude={"id"}, exclude_none=True)
    try:
        saved = first_row(await client.table("food_items").insert(record).execute())
    except Exception as exc:
        logger.warning("Failed to save Open Food Facts product %s: %s", barcode, exc)
        saved = None
    if saved:
        return saved, "open_food_facts"

    now = utc_now_iso()
    return {**record, "id": f"off-{barcode}", "created_at": now, "updated_at": now}, "open_food_facts"

