# -*- coding: utf-8 -*-
"""Day-keyed running totals (steps, water) against a goal."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from ..dates import get_local_date_string, utc_now_iso
from ..sync.models import OperationAction, OperationType, QueuedOperation
from .base import OfflineResource, percent


class DailyTotalResource(OfflineResource):
    """Goal plus today's total; updates are queued as whole-day upserts.

    Subclasses set the queue type, the payload field for the total and the two
    cache keys, and implement ``_fetch_goal`` / ``_fetch_total``.
    """

    op_type: OperationType
    total_field: str

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.goal: Optional[int] = None
        self.total = 0

    def _today_key(self, user_id: str) -> str:
        raise NotImplementedError

    def _goal_key(self, user_id: str) -> str:
        raise NotImplementedError

    async def _fetch_goal(self, user_id: str) -> Optional[int]:
        raise NotImplementedError

    async def _fetch_total(self, user_id: str, day: str) -> int:
        raise NotImplementedError

    def _cache_value(self, day: str) -> Dict[str, Any]:
        return {"goal": self.goal, "total": self.total, "date": day, "cached_at": utc_now_iso()}

    async def _fetch(self, user_id: str, now: datetime) -> None:
        today = get_local_date_string(now)
        self.goal = await self._fetch_goal(user_id)
        self.total = await self._fetch_total(user_id, today)
        self.cache.set_cache(self._today_key(user_id), self._cache_value(today))
        self.cache.set_cache(self._goal_key(user_id), self.goal)

    def _load_cached(self, user_id: str, now: datetime, online: bool) -> bool:
        today = get_local_date_string(now)
        cached = self.cache.get_cache(self._today_key(user_id))
        if online:
            # a failed refresh only trusts today's numbers
            if cached and cached.get("date") == today:
                self.goal = cached.get("goal")
                self.total = int(cached.get("total") or 0)
                return True
            return False

        if cached:
            self.goal = cached.get("goal")
            self.total = int(cached.get("total") or 0) if cached.get("date") == today else 0
            return True
        goal = self.cache.get_cache(self._goal_key(user_id))
        if goal is not None:
            self.goal = goal
            self.total = 0
            return True
        return False

    @property
    def has_goal(self) -> bool:
        return bool(self.goal and self.goal > 0)

    @property
    def progress_percentage(self) -> int:
        return percent(self.total, self.goal)

    @property
    def remaining(self) -> int:
        return max(0, self.goal - self.total) if self.goal else 0

    def queue_update(self, new_total: int, now: Optional[datetime] = None) -> Optional[QueuedOperation]:
        """Set today's total. Pending updates for the same day collapse into one."""
        user_id = self.session.user_id
        if not user_id:
            return None
        today = get_local_date_string(now)
        self.total = max(0, int(new_total))
        return self._enqueue(
            self.op_type,
            OperationAction.update,
            {"user_id": user_id, "date": today, self.total_field: self.total},
            coalesce_on=("date",),
            cache_updates={self._today_key(user_id): self._cache_value(today)},
        )

    def add(self, amount: int, now: Optional[datetime] = None) -> Optional[QueuedOperation]:
        return self.queue_update(self.total + amount, now)
