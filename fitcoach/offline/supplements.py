# -*- coding: utf-8 -*-
"""Today's supplements with their log status, usable offline."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from ..cache.keys import CacheKeys
from ..dates import get_local_date_string, utc_now_iso
from ..sync.models import OperationAction, OperationType, QueuedOperation
from ..tracking import get_todays_supplements
from .base import OfflineResource, percent
from .models import SupplementsState

STALE_CACHE_WARNING = "Cached data may be outdated"


class SupplementsResource(OfflineResource):
    cache_miss_error = "No cached supplements data available"
    requires_profile = False

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.supplements: List[Dict[str, Any]] = []
        self._date: Optional[str] = None

    async def _fetch(self, user_id: str, now: datetime) -> None:
        self.supplements = await get_todays_supplements(self.client, user_id, now)
        self._date = get_local_date_string(now)
        self.cache.set_cache(CacheKeys.todays_supplements(user_id), self._cache_value())

    def _load_cached(self, user_id: str, now: datetime, online: bool) -> bool:
        cached = self.cache.get_cache(CacheKeys.todays_supplements(user_id))
        if not cached:
            return False
        today = get_local_date_string(now)
        fresh = cached.get("date") == today
        if online and not fresh:
            return False
        self.supplements = cached.get("supplements") or []
        self._date = cached.get("date")
        if not fresh:
            self.error = STALE_CACHE_WARNING
        return True

    def _cache_value(self) -> Dict[str, Any]:
        return {"supplements": self.supplements, "date": self._date, "cached_at": utc_now_iso()}

    @property
    def logged_count(self) -> int:
        return sum(1 for s in self.supplements if s.get("is_logged"))

    @property
    def adherence_percentage(self) -> int:
        return percent(self.logged_count, len(self.supplements))

    def snapshot(self) -> SupplementsState:
        return SupplementsState(
            **self._state_fields(),
            supplements=self.supplements,
            total_supplements=len(self.supplements),
            logged_count=self.logged_count,
            adherence_percentage=self.adherence_percentage,
        )

    # ---- optimistic logging ----

    def _flip(self, assignment_id: str, schedule: Optional[str], **changes: Any) -> None:
        self.supplements = [
            {**s, **changes} if str(s.get("id")) == str(assignment_id) and s.get("schedule") == schedule else s
            for s in self.supplements
        ]

    def _cache_updates(self) -> Dict[str, Any]:
        user_id = self.session.user_id
        if not user_id or self._date is None:
            return {}
        return {CacheKeys.todays_supplements(user_id): self._cache_value()}

    def queue_supplement_log(
        self,
        assignment_id: str,
        schedule: Optional[str] = None,
        logged_at: Optional[str] = None,
    ) -> Optional[QueuedOperation]:
        if not self.session.user_id:
            return None
        logged_at = logged_at or utc_now_iso()
        self._flip(assignment_id, schedule, is_logged=True, logged_at=logged_at)
        payload = {
            "user_id": self.session.user_id,
            "assignment_id": assignment_id,
            "schedule": schedule,
            "logged_at": logged_at,
            "date": self._date or get_local_date_string(),
        }
        return self._enqueue(
            OperationType.supplement_log,
            OperationAction.create,
            payload,
            cache_updates=self._cache_updates(),
        )

    def queue_supplement_log_delete(
        self,
        log_id: Optional[str],
        assignment_id: str,
        schedule: Optional[str] = None,
    ) -> Optional[QueuedOperation]:
        """Undo a log. A log that never reached the backend is dropped from the queue instead."""
        if not self.session.user_id:
            return None
        self._flip(assignment_id, schedule, is_logged=False, log_id=None, logged_at=None)
        if not log_id:
            pending = self.context.queue.find_existing_operation(
                OperationType.supplement_log,
                assignment_id,
                field="assignment_id",
                user_id=self.session.user_id,
                action=OperationAction.create,
                match={"schedule": schedule, "date": self._date or get_local_date_string()},
                newest=True,
            )
            if pending is not None:
                self.context.queue.remove_from_queue(pending.id)
            updates = self._cache_updates()
            for key, value in updates.items():
                self.cache.set_cache(key, value)
            self.context.refresh_pending_count()
            return None
        return self._enqueue(
            OperationType.supplement_log,
            OperationAction.delete,
            {"id": log_id},
            cache_updates=self._cache_updates(),
        )
