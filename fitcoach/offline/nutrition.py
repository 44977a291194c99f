# -*- coding: utf-8 -*-
"""Assigned nutrition plan and today's meal log, usable offline."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from ..cache.keys import CacheKeys
from ..dates import get_local_date_string, utc_now_iso
from ..nutrition.calc import build_daily_log, get_meals_for_day_type
from ..nutrition.service import get_logged_meals_for_date, get_user_nutrition_plan
from ..sync.models import OperationAction, OperationType, QueuedOperation
from .base import OfflineResource
from .models import NutritionState

TODAYS_DAY_TYPE = "Training"


class NutritionResource(OfflineResource):
    cache_miss_error = "No cached nutrition data available"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.nutrition_plan: Optional[Dict[str, Any]] = None
        self.daily_log: Optional[Dict[str, Any]] = None
        self.meals_for_today: List[Dict[str, Any]] = []

    async def _fetch(self, user_id: str, now: datetime) -> None:
        today = get_local_date_string(now)
        self.nutrition_plan = await get_user_nutrition_plan(self.client, self.session.profile_id)
        if self.nutrition_plan:
            self.cache.set_cache(
                CacheKeys.nutrition_plan(user_id),
                {"nutrition_plan": self.nutrition_plan, "cached_at": utc_now_iso()},
            )
            self.meals_for_today = get_meals_for_day_type(self.nutrition_plan, TODAYS_DAY_TYPE)
        else:
            self.meals_for_today = []

        self.daily_log = await get_logged_meals_for_date(self.client, user_id, today, self.nutrition_plan)
        self.cache.set_cache(
            CacheKeys.todays_meals(user_id),
            {"daily_log": self.daily_log, "date": today, "cached_at": utc_now_iso()},
        )

    def _load_cached(self, user_id: str, now: datetime, online: bool) -> bool:
        today = get_local_date_string(now)
        cached_plan = self.cache.get_cache(CacheKeys.nutrition_plan(user_id))
        cached_daily = self.cache.get_cache(CacheKeys.todays_meals(user_id))

        plan = (cached_plan or {}).get("nutrition_plan")
        if plan:
            self.nutrition_plan = plan
            self.meals_for_today = get_meals_for_day_type(plan, TODAYS_DAY_TYPE)

        if cached_daily and cached_daily.get("date") == today and cached_daily.get("daily_log"):
            self.daily_log = cached_daily["daily_log"]
        else:
            self.daily_log = build_daily_log(today, [], plan)

        return bool(plan)

    def snapshot(self) -> NutritionState:
        return NutritionState(
            **self._state_fields(),
            nutrition_plan=self.nutrition_plan,
            daily_log=self.daily_log,
            meals_for_today=self.meals_for_today,
        )

    def queue_meal_log(
        self,
        meal_id: str,
        day: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Optional[QueuedOperation]:
        payload = {
            "user_id": self.session.user_id,
            "meal_id": meal_id,
            "date": day or get_local_date_string(),
            "notes": notes,
        }
        return self._enqueue(OperationType.meal_log, OperationAction.create, payload)

    def queue_meal_log_delete(self, meal_log_id: str) -> Optional[QueuedOperation]:
        return self._enqueue(OperationType.meal_log, OperationAction.delete, {"id": meal_log_id})
