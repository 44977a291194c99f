# -*- coding: utf-8 -*-
"""Daily tracking queries: supplements, water, steps and check-ins."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from .backend import first_row, rows
from .dates import days_between, get_local_date_string, parse_date, to_local

logger = logging.getLogger(__name__)

SCHEDULE_TIMING_ORDER = [
    "Morning",
    "With Meal",
    "Empty Stomach",
    "Before Workout",
    "During Workout",
    "After Workout",
    "Afternoon",
    "Evening",
    "Before Bed",
    "Daily",
    "Every Other Day",
    "Weekly",
    "Monthly",
    "Quarterly",
    "Yearly",
    "Custom",
]


# ---- supplements ----


async def get_athlete_supplements(client: Any, user_id: str) -> List[Dict[str, Any]]:
    assignments = rows(
        await client.table("athlete_supplements")
        .select("*")
        .eq("user_id", user_id)
        .order("start_date", desc=True)
        .execute()
    )
    ids = sorted({str(a["supplement_id"]) for a in assignments if a.get("supplement_id")})
    catalogue: Dict[str, Dict[str, Any]] = {}
    if ids:
        found = await client.table("supplements").select("*").in_("id", ids).execute()
        catalogue = {str(s["id"]): s for s in rows(found)}

    result = []
    for a in assignments:
        supplement = catalogue.get(str(a.get("supplement_id")))
        result.append(
            {
                **a,
                "supplement": supplement,
                "supplement_name": (supplement or {}).get("name") or "Unknown Supplement",
                "supplement_category": (supplement or {}).get("category") or "Other",
            }
        )
    return result


def is_supplement_active(supplement: Dict[str, Any], today: Optional[date] = None) -> bool:
    today = today or to_local().date()
    start = supplement.get("start_date")
    if start and parse_date(start) > today:
        return False
    end = supplement.get("end_date")
    if end and parse_date(end) < today:
        return False
    return True


async def get_todays_supplements(
    client: Any,
    user_id: str,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Active assignments with today's log status (``is_logged``, ``log_id``, ``logged_at``)."""
    today = get_local_date_string(now)
    active = [s for s in await get_athlete_supplements(client, user_id) if is_supplement_active(s, parse_date(today))]
    logs = rows(await client.table("supplement_logs").select("*").eq("user_id", user_id).eq("date", today).execute())
    by_assignment = {str(l.get("athlete_supplement_id")): l for l in logs}

    todays = []
    for s in active:
        log = by_assignment.get(str(s["id"]))
        todays.append(
            {
                **s,
                "is_logged": log is not None,
                "log_id": log.get("id") if log else None,
                "logged_at": log.get("taken_at") if log else None,
            }
        )
    return todays


def _schedule_rank(schedule: Optional[str]) -> int:
    try:
        return SCHEDULE_TIMING_ORDER.index(schedule or "")
    except ValueError:
        return len(SCHEDULE_TIMING_ORDER)


def group_supplements_by_schedule(supplements: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    groups: Dict[str, List[Dict[str, Any]]] = {}
    for s in supplements:
        groups.setdefault(s.get("schedule") or "Daily", []).append(s)
    return [
        {
            "schedule": schedule,
            "supplements": items,
            "taken": sum(1 for i in items if i.get("is_logged")),
            "total": len(items),
        }
        for schedule, items in sorted(groups.items(), key=lambda kv: _schedule_rank(kv[0]))
    ]


# ---- water / steps ----


async def get_water_goal(client: Any, user_id: str, profile_id: Optional[str] = None) -> Optional[int]:
    goal = first_row(await client.table("water_goals").select("water_goal_ml").eq("user_id", user_id).limit(1).execute())
    if not goal and profile_id:
        goal = first_row(
            await client.table("water_goals").select("water_goal_ml").eq("user_id", profile_id).limit(1).execute()
        )
    return (goal or {}).get("water_goal_ml") or None


async def get_water_intake(client: Any, user_id: str, day: str) -> int:
    entry = first_row(
        await client.table("water_tracking").select("amount_ml").eq("user_id", user_id).eq("date", day).limit(1).execute()
    )
    return int((entry or {}).get("amount_ml") or 0)


async def get_step_goal(client: Any, profile_id: str) -> Optional[int]:
    goal = first_row(
        await client.table("step_goals")
        .select("daily_steps")
        .eq("user_id", profile_id)
        .eq("is_active", True)
        .order("assigned_at", desc=True)
        .limit(1)
        .execute()
    )
    return (goal or {}).get("daily_steps") or None


async def get_step_count(client: Any, user_id: str, day: str) -> int:
    entry = first_row(
        await client.table("step_entries").select("step_count").eq("user_id", user_id).eq("date", day).limit(1).execute()
    )
    return int((entry or {}).get("step_count") or 0)


# ---- check-ins ----


async def get_days_since_last_check_in(
    client: Any,
    user_id: str,
    now: Optional[datetime] = None,
) -> Optional[int]:
    """Whole local days since the latest check-in; None if there has never been one."""
    latest = first_row(
        await client.table("check_ins")
        .select("check_in_date")
        .eq("user_id", user_id)
        .order("check_in_date", desc=True)
        .limit(1)
        .execute()
    )
    if not latest or not latest.get("check_in_date"):
        return None
    return days_between(latest["check_in_date"], now)


def format_steps(count: int) -> str:
    return f"{count / 1000:.1f}k" if count >= 1000 else str(count)


def format_step_goal(goal: Optional[int]) -> str:
    if not goal:
        return "0"
    return f"{goal / 1000:.0f}k" if goal >= 1000 else str(goal)
