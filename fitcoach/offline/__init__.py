# -*- coding: utf-8 -*-
"""Offline-first domain resources and the connectivity context they share."""

from .context import OfflineContext
from .nutrition import NutritionResource
from .precache import get_cached_home_stats, precache_user_data
from .steps import StepsResource
from .supplements import SupplementsResource
from .water import WaterResource
from .workout import WorkoutResource

__all__ = [
    "OfflineContext",
    "NutritionResource",
    "StepsResource",
    "SupplementsResource",
    "WaterResource",
    "WorkoutResource",
    "get_cached_home_stats",
    "precache_user_data",
]
