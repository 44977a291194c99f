# -*- coding: utf-8 -*-
"""Warm every offline resource for the signed-in user."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from ..cache.keys import CacheKeys
from ..cache.store import CacheStore
from ..dates import get_local_date_string, to_local
from ..session import AuthSession
from ..tracking import get_days_since_last_check_in
from .context import OfflineContext
from .models import (
    HomeStats,
    NutritionState,
    ResourceState,
    StepsState,
    SupplementsState,
    WaterState,
    WorkoutState,
)
from .nutrition import NutritionResource
from .steps import StepsResource
from .supplements import SupplementsResource
from .water import WaterResource
from .workout import WorkoutResource

logger = logging.getLogger(__name__)

RESOURCES = {
    "workout": WorkoutResource,
    "nutrition": NutritionResource,
    "supplements": SupplementsResource,
    "steps": StepsResource,
    "water": WaterResource,
}

CHECK_IN_INTERVAL_DAYS = 7


def check_in_status(days: Optional[int]) -> str:
    if days is None:
        return "todo"
    return "complete" if days <= CHECK_IN_INTERVAL_DAYS else "overdue"


def build_home_stats(
    day: str,
    states: Dict[str, ResourceState],
    days_since_check_in: Optional[int] = None,
) -> HomeStats:
    workout = states.get("workout") or WorkoutState()
    nutrition = states.get("nutrition") or NutritionState()
    supplements = states.get("supplements") or SupplementsState()
    steps = states.get("steps") or StepsState()
    water = states.get("water") or WaterState()
    return HomeStats(
        date=day,
        workouts_completed=1 if workout.is_completed else 0,
        has_workout_program=bool(workout.assignment),
        has_workout_today=not workout.is_rest_day,
        meals_logged=len((nutrition.daily_log or {}).get("logged_meals") or []),
        meals_planned=len(nutrition.meals_for_today),
        steps_count=steps.step_count,
        steps_goal=steps.step_goal or 0,
        water_intake=water.water_intake,
        water_goal=water.water_goal or 0,
        supplements_taken=supplements.logged_count,
        supplements_total=supplements.total_supplements,
        check_in_status=check_in_status(days_since_check_in),
        days_since_check_in=days_since_check_in,
    )


def get_cached_home_stats(cache: CacheStore, user_id: str) -> Optional[HomeStats]:
    cached = cache.get_cache(CacheKeys.home_stats(user_id))
    return HomeStats.model_validate(cached) if cached else None


async def precache_user_data(
    client: Any,
    context: OfflineContext,
    session: AuthSession,
    now: Optional[datetime] = None,
) -> Dict[str, ResourceState]:
    """Refresh each resource in turn; one resource failing does not stop the others.

    Also caches the profile, the previous sets of every program workout and
    the home stats built from the refreshed resources.
    """
    now = to_local(now)
    user_id = session.user_id
    states: Dict[str, ResourceState] = {}
    resources: Dict[str, Any] = {}
    for name, resource_cls in RESOURCES.items():
        resources[name] = resource = resource_cls(client, context, session)
        states[name] = await resource.refresh(now)
        if states[name].error:
            logger.warning("Precache %s: %s", name, states[name].error)

    if not user_id:
        return states
    if session.profile:
        context.cache.set_cache(CacheKeys.profile(user_id), session.profile)
    if not context.is_online or client is None:
        return states

    workout = resources["workout"]
    for item in workout.workouts:
        try:
            await workout.cache_previous_sets(item["id"])
        except Exception as exc:
            logger.warning("Precache previous sets for workout %s: %s", item.get("id"), exc)

    days = None
    try:
        days = await get_days_since_last_check_in(client, user_id, now)
    except Exception as exc:
        logger.warning("Precache check-in status: %s", exc)
    stats = build_home_stats(get_local_date_string(now), states, days)
    context.cache.set_cache(CacheKeys.home_stats(user_id), stats)
    return states
