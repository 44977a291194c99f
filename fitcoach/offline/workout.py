# -*- coding: utf-8 -*-
"""Assigned program and today's workout, usable offline."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..cache.keys import CacheKeys
from ..dates import get_current_day_of_week, get_day_name, get_local_date_string, to_local, utc_now_iso
from ..exercises.models import PreviousSet
from ..exercises.schedule import get_todays_workout, is_effective_rest_day
from ..exercises.service import (
    check_workout_completion,
    get_assigned_program,
    get_last_workout_sets,
    get_program_workouts,
)
from ..sync.models import OperationAction, OperationType, QueuedOperation
from .base import OfflineResource
from .models import WorkoutState

logger = logging.getLogger(__name__)


class WorkoutResource(OfflineResource):
    cache_miss_error = "No cached workout data available"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.assignment: Optional[Dict[str, Any]] = None
        self.workouts: List[Dict[str, Any]] = []
        self.todays_workout: Optional[Dict[str, Any]] = None
        self.is_completed = False
        self.completion_time: Optional[str] = None
        self._now: Optional[datetime] = None

    async def refresh(self, now: Optional[datetime] = None) -> WorkoutState:
        self._now = to_local(now)
        return await super().refresh(self._now)

    async def _fetch(self, user_id: str, now: datetime) -> None:
        self.assignment = await get_assigned_program(self.client, self.session.profile_id)
        if not self.assignment or not self.assignment.get("program_template_id"):
            self.workouts = []
            self.todays_workout = None
            self.is_completed = False
            self.completion_time = None
            return

        self.workouts = await get_program_workouts(self.client, self.assignment["program_template_id"])
        self.todays_workout = get_todays_workout(self.workouts, now)

        completed, completed_at = False, None
        if self.todays_workout and not is_effective_rest_day(self.todays_workout):
            completed, completed_at = await check_workout_completion(
                self.client, self.todays_workout["id"], user_id, get_local_date_string(now)
            )
        self.is_completed = completed
        self.completion_time = completed_at

        data = {
            "assignment": self.assignment,
            "workouts": self.workouts,
            "todays_workout": self.todays_workout,
            "is_completed": completed,
            "completion_time": completed_at,
            "date": get_local_date_string(now),
            "cached_at": utc_now_iso(),
        }
        self.cache.set_cache(CacheKeys.workout_program(user_id), data)
        self.cache.set_cache(CacheKeys.todays_workout(user_id), data)

    def _load_cached(self, user_id: str, now: datetime, online: bool) -> bool:
        cached = self.cache.get_cache(CacheKeys.workout_program(user_id))
        if not cached:
            return False
        self.assignment = cached.get("assignment")
        self.workouts = cached.get("workouts") or []
        # the cached schedule is weekly; today's slot is picked again
        self.todays_workout = get_todays_workout(self.workouts, now)
        same_day = cached.get("date") == get_local_date_string(now)
        self.is_completed = bool(cached.get("is_completed")) and same_day
        self.completion_time = cached.get("completion_time") if same_day else None
        return True

    @property
    def is_rest_day(self) -> bool:
        return is_effective_rest_day(self.todays_workout)

    @property
    def current_day_name(self) -> str:
        return get_day_name(get_current_day_of_week(self._now))

    def snapshot(self) -> WorkoutState:
        return WorkoutState(
            **self._state_fields(),
            assignment=self.assignment,
            workouts=self.workouts,
            todays_workout=self.todays_workout,
            is_completed=self.is_completed,
            completion_time=self.completion_time,
            is_rest_day=self.is_rest_day,
            current_day_name=self.current_day_name,
        )

    # ---- previous sets ----

    def _cached_previous_sets(self, user_id: str, workout_id: str) -> Dict[str, List[PreviousSet]]:
        cached = self.cache.get_cache(CacheKeys.previous_workout_sets(user_id, workout_id)) or {}
        return {key: [PreviousSet.model_validate(s) for s in sets] for key, sets in cached.items()}

    async def cache_previous_sets(self, workout_id: str) -> Dict[str, List[PreviousSet]]:
        """Fetch the last session's sets for a workout and cache them when there are any."""
        user_id = self.session.user_id
        sets = await get_last_workout_sets(self.client, workout_id, user_id)
        if sets:
            self.cache.set_cache(
                CacheKeys.previous_workout_sets(user_id, workout_id),
                {key: [s.model_dump() for s in found] for key, found in sets.items()},
            )
        return sets

    async def previous_sets(self, workout_id: str) -> Dict[str, List[PreviousSet]]:
        """Sets to pre-fill weights and reps with, keyed by exercise instance id."""
        user_id = self.session.user_id
        if not user_id:
            return {}
        if self.is_online and self.client is not None:
            try:
                return await self.cache_previous_sets(workout_id)
            except Exception as exc:
                logger.warning("Error fetching previous sets for workout %s: %s", workout_id, exc)
        return self._cached_previous_sets(user_id, workout_id)

    # ---- offline logging ----

    def queue_workout_session(
        self,
        session: Dict[str, Any],
        action: OperationAction = OperationAction.create,
    ) -> Optional[QueuedOperation]:
        """Queue a session create (``workout_id``, times, ``local_session_id``) or update."""
        payload = dict(session)
        if action == OperationAction.create:
            payload.setdefault("user_id", self.session.user_id)
        return self._enqueue(OperationType.workout_session, action, payload)

    def queue_workout_set(self, set_data: Dict[str, Any]) -> Optional[QueuedOperation]:
        """Queue a completed set; ``session_id`` or ``local_session_id`` links it to its session."""
        return self._enqueue(OperationType.workout_set, OperationAction.create, dict(set_data))
