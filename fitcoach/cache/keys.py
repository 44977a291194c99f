# -*- coding: utf-8 -*-
"""Cache key builders."""

from __future__ import annotations

CACHE_PREFIX = "@cache/"
SYNC_PREFIX = "@sync/"


class CacheKeys:
    # Not user scoped: used for offline cold start.
    last_user_id = "@cache/last-user-id"
    last_user = "@cache/last-user"
    last_profile = "@cache/last-profile"

    last_sync_time = "@sync/last-sync-time"
    session_map = "@sync/session-map"

    @staticmethod
    def workout_program(user_id: str) -> str:
        return f"@cache/workout-program/{user_id}"

    @staticmethod
    def nutrition_plan(user_id: str) -> str:
        return f"@cache/nutrition-plan/{user_id}"

    @staticmethod
    def supplements(user_id: str) -> str:
        return f"@cache/supplements/{user_id}"

    @staticmethod
    def water_goal(user_id: str) -> str:
        return f"@cache/water-goal/{user_id}"

    @staticmethod
    def step_goal(user_id: str) -> str:
        return f"@cache/step-goal/{user_id}"

    @staticmethod
    def profile(user_id: str) -> str:
        return f"@cache/profile/{user_id}"

    @staticmethod
    def home_stats(user_id: str) -> str:
        return f"@cache/home-stats/{user_id}"

    @staticmethod
    def todays_workout(user_id: str) -> str:
        return f"@cache/todays-workout/{user_id}"

    @staticmethod
    def todays_meals(user_id: str) -> str:
        return f"@cache/todays-meals/{user_id}"

    @staticmethod
    def todays_supplements(user_id: str) -> str:
        return f"@cache/todays-supplements/{user_id}"

    @staticmethod
    def todays_water(user_id: str) -> str:
        return f"@cache/todays-water/{user_id}"

    @staticmethod
    def todays_steps(user_id: str) -> str:
        return f"@cache/todays-steps/{user_id}"

    @staticmethod
    def previous_workout_sets(user_id: str, workout_id: str) -> str:
        return f"@cache/prev-sets/{user_id}/{workout_id}"
