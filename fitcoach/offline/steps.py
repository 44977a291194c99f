# -*- coding: utf-8 -*-
"""Daily step count, usable offline."""

from __future__ import annotations

from typing import Optional

from ..cache.keys import CacheKeys
from ..sync.models import OperationType
from ..tracking import format_step_goal, format_steps, get_step_count, get_step_goal
from .daily import DailyTotalResource
from .models import StepsState


class StepsResource(DailyTotalResource):
    op_type = OperationType.step_log
    total_field = "step_count"

    def _today_key(self, user_id: str) -> str:
        return CacheKeys.todays_steps(user_id)

    def _goal_key(self, user_id: str) -> str:
        return CacheKeys.step_goal(user_id)

    async def _fetch_goal(self, user_id: str) -> Optional[int]:
        return await get_step_goal(self.client, self.session.profile_id)

    async def _fetch_total(self, user_id: str, day: str) -> int:
        return await get_step_count(self.client, user_id, day)

    def snapshot(self) -> StepsState:
        return StepsState(
            **self._state_fields(),
            step_goal=self.goal,
            step_count=self.total,
            progress_percentage=self.progress_percentage,
            remaining_steps=self.remaining,
            formatted_steps=format_steps(self.total),
            formatted_goal=format_step_goal(self.goal),
            has_goal=self.has_goal,
        )

    queue_steps_update = DailyTotalResource.queue_update
    add_steps = DailyTotalResource.add
