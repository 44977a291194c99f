# -*- coding: utf-8 -*-
"""Daily water intake, usable offline."""

from __future__ import annotations

from typing import Optional

from ..cache.keys import CacheKeys
from ..sync.models import OperationType
from ..tracking import get_water_goal, get_water_intake
from .daily import DailyTotalResource
from .models import WaterState


class WaterResource(DailyTotalResource):
    op_type = OperationType.water_log
    total_field = "amount_ml"

    def _today_key(self, user_id: str) -> str:
        return CacheKeys.todays_water(user_id)

    def _goal_key(self, user_id: str) -> str:
        return CacheKeys.water_goal(user_id)

    async def _fetch_goal(self, user_id: str) -> Optional[int]:
        return await get_water_goal(self.client, user_id, self.session.profile_id)

    async def _fetch_total(self, user_id: str, day: str) -> int:
        return await get_water_intake(self.client, user_id, day)

    def snapshot(self) -> WaterState:
        return WaterState(
            **self._state_fields(),
            water_goal=self.goal,
            water_intake=self.total,
            progress_percentage=self.progress_percentage,
            remaining_ml=self.remaining,
            has_goal=self.has_goal,
        )

    queue_water_update = DailyTotalResource.queue_update
    add_water = DailyTotalResource.add
