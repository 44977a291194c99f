# -*- coding: utf-8 -*-
"""Local reminder generation.

State is gathered from the backend into a ``ReminderSnapshot`` and then run
through ``RULES``: independent (snapshot, now) -> reminder checks. Evaluating
the rules is pure, which keeps them testable without a backend.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from ..backend import first_row, rows
from ..dates import get_current_day_of_week, get_current_time_string, get_local_date_range_in_utc, get_local_date_string, to_local
from ..tracking import (
    format_step_goal,
    format_steps,
    get_days_since_last_check_in,
    get_step_count,
    get_step_goal,
    get_todays_supplements,
    get_water_goal,
    get_water_intake,
)
from .models import PRIORITY_ORDER, Reminder, ReminderPriority, ReminderSnapshot
from .timing import supplement_status, training_time, workout_status

logger = logging.getLogger(__name__)

TRAINING_DAY_LABELS = ("training", "heavy")
REST_DAY_LABELS = ("rest", "light")


class Rule(NamedTuple):
    name: str
    evaluate: Callable[[ReminderSnapshot, datetime], Optional[Reminder]]


def _reminder(now: datetime, rid: str, kind: str, title: str, message: str, priority: ReminderPriority, href: str) -> Reminder:
    return Reminder(
        id=f"reminder-{rid}",
        type=kind,
        title=title,
        message=message,
        priority=priority,
        href=href,
        created_at=now.isoformat(),
    )


# ---- rules ----


def workout_rule(snap: ReminderSnapshot, now: datetime) -> Optional[Reminder]:
    status = workout_status(snap.has_workout_today, snap.workout_completed, snap.profile, now)
    train = training_time(snap.profile)
    if status == "overdue":
        return _reminder(
            now, "workout-overdue", "workout_overdue", "Workout overdue",
            f"Your workout was scheduled for {train}", ReminderPriority.high, "/workout",
        )
    if status == "due":
        return _reminder(
            now, "workout-due", "workout_due", "Workout time",
            f"Your workout is scheduled for {train}", ReminderPriority.medium, "/workout",
        )
    return None


def _unlogged_with_status(snap: ReminderSnapshot, now: datetime, wanted: str) -> List[Dict[str, Any]]:
    return [
        s for s in snap.supplements
        if not s.get("is_logged") and supplement_status(s.get("schedule"), False, snap.profile, now) == wanted
    ]


def _schedules(items: List[Dict[str, Any]]) -> str:
    seen: List[str] = []
    for s in items:
        label = s.get("schedule") or "Daily"
        if label not in seen:
            seen.append(label)
    return ", ".join(seen)


def supplements_overdue_rule(snap: ReminderSnapshot, now: datetime) -> Optional[Reminder]:
    overdue = _unlogged_with_status(snap, now, "overdue")
    if not overdue:
        return None
    noun = "supplements" if len(overdue) > 1 else "supplement"
    return _reminder(
        now, "supplements-overdue", "supplements_overdue", f"{len(overdue)} {noun} overdue",
        f"Missed: {_schedules(overdue)}", ReminderPriority.high, "/supplements",
    )


def supplements_due_rule(snap: ReminderSnapshot, now: datetime) -> Optional[Reminder]:
    if _unlogged_with_status(snap, now, "overdue"):
        return None
    due = _unlogged_with_status(snap, now, "due")
    if not due:
        return None
    noun = "supplements" if len(due) > 1 else "supplement"
    return _reminder(
        now, "supplements-due", "supplements_due", f"{len(due)} {noun} due",
        f"Time for your {_schedules(due).lower()} supplements", ReminderPriority.medium, "/supplements",
    )


def meal_applies(meal: Dict[str, Any], has_workout_today: bool) -> bool:
    label = (meal.get("day_type") or "").lower()
    if not label:
        return True
    wanted = TRAINING_DAY_LABELS if has_workout_today else REST_DAY_LABELS
    return label == "all" or any(w in label for w in wanted)


def meals_overdue_rule(snap: ReminderSnapshot, now: datetime) -> Optional[Reminder]:
    current = get_current_time_string(now)
    logged = set(snap.logged_meal_ids)
    missed = sorted(
        (
            m for m in snap.plan_meals
            if meal_applies(m, snap.has_workout_today)
            and m.get("id") not in logged
            and m.get("time_suggestion")
            and str(m["time_suggestion"])[:5] < current
        ),
        key=lambda m: str(m.get("time_suggestion") or ""),
    )
    if not missed:
        return None
    first = missed[0]
    if len(missed) == 1:
        title = "Meal overdue"
        message = f"{first.get('name')} was planned for {first.get('time_suggestion')}"
    else:
        title = f"{len(missed)} meals overdue"
        message = f"{first.get('name')} and {len(missed) - 1} more are not logged yet"
    return _reminder(now, "meals-overdue", "meals_overdue", title, message, ReminderPriority.high, "/nutrition")


def _hour(value: str, default: int) -> int:
    try:
        return int(value.split(":")[0])
    except (ValueError, AttributeError):
        return default


def water_rule(snap: ReminderSnapshot, now: datetime) -> Optional[Reminder]:
    if not snap.water_goal:
        return None
    hour = now.hour
    wake = _hour(snap.profile.get("nutrition_wakeup_time_of_day") or "6", 6)
    bed = _hour(snap.profile.get("nutrition_bed_time_of_day") or "22", 22)
    awake = bed - wake
    if awake <= 0:
        return None
    expected = math.floor(max(0, hour - wake) / awake * snap.water_goal)
    if hour >= 12 and snap.water_intake < expected - 500:
        return _reminder(
            now, "water-behind", "water_behind", "Stay hydrated",
            f"{snap.water_intake} ml of {snap.water_goal} ml so far", ReminderPriority.low, "/water",
        )
    return None


def steps_rule(snap: ReminderSnapshot, now: datetime) -> Optional[Reminder]:
    if snap.step_goal <= 0:
        return None
    hour = now.hour
    awake = 16
    since_wake = max(0, min(hour - 6, awake))
    expected = math.floor(since_wake / awake * snap.step_goal)
    if hour >= 14 and snap.step_count < expected - 2000:
        return _reminder(
            now, "steps-behind", "steps_behind", "Stay active",
            f"{format_steps(snap.step_count)} of {format_step_goal(snap.step_goal)} steps",
            ReminderPriority.low, "/steps",
        )
    return None


def check_in_rule(snap: ReminderSnapshot, now: datetime) -> Optional[Reminder]:
    days = snap.days_since_check_in
    if days is not None and days <= 7:
        return None
    message = "Submit your first check-in" if days is None else f"Last check-in was {days} days ago"
    return _reminder(now, "checkin-overdue", "checkin_overdue", "Check-in overdue", message, ReminderPriority.high, "/checkin")


RULES: List[Rule] = [
    Rule("workout", workout_rule),
    Rule("supplements_overdue", supplements_overdue_rule),
    Rule("supplements_due", supplements_due_rule),
    Rule("meals_overdue", meals_overdue_rule),
    Rule("water_behind", water_rule),
    Rule("steps_behind", steps_rule),
    Rule("check_in_overdue", check_in_rule),
]


def evaluate_rules(snap: ReminderSnapshot, now: Optional[datetime] = None, rules: Optional[List[Rule]] = None) -> List[Reminder]:
    now = to_local(now)
    found = []
    for rule in rules or RULES:
        reminder = rule.evaluate(snap, now)
        if reminder is not None:
            found.append(reminder)
    # stable: rule order is kept within a priority
    return sorted(found, key=lambda r: PRIORITY_ORDER[r.priority])


# ---- snapshot ----


async def gather_snapshot(
    client: Any,
    user_id: str,
    profile: Dict[str, Any],
    now: Optional[datetime] = None,
) -> ReminderSnapshot:
    profile_id = str(profile["id"])
    today = get_local_date_string(now)

    has_workout = False
    assignment = first_row(
        await client.table("assigned_plans")
        .select("program_template_id")
        .eq("athlete_id", profile_id)
        .not_.is_("program_template_id", "null")
        .order("assigned_at", desc=True)
        .limit(1)
        .execute()
    )
    if assignment and assignment.get("program_template_id"):
        workout = first_row(
            await client.table("workouts")
            .select("id")
            .eq("program_template_id", assignment["program_template_id"])
            .eq("day_of_week", get_current_day_of_week(now))
            .limit(1)
            .execute()
        )
        has_workout = workout is not None

    completed = False
    if has_workout:
        start_utc, end_utc = get_local_date_range_in_utc(now)
        sessions = rows(
            await client.table("workout_sessions")
            .select("id")
            .eq("user_id", user_id)
            .not_.is_("end_time", "null")
            .gte("start_time", start_utc)
            .lte("start_time", end_utc)
            .execute()
        )
        completed = len(sessions) > 0

    plan_meals: List[Dict[str, Any]] = []
    logged_ids: List[str] = []
    nutrition = first_row(
        await client.table("assigned_plans")
        .select("nutrition_plan_id")
        .eq("athlete_id", profile_id)
        .is_("program_template_id", "null")
        .not_.is_("nutrition_plan_id", "null")
        .order("created_at", desc=True)
        .limit(1)
        .execute()
    )
    if nutrition and nutrition.get("nutrition_plan_id"):
        plan_meals = rows(
            await client.table("meals")
            .select("id, name, day_type, time_suggestion")
            .eq("nutrition_plan_id", nutrition["nutrition_plan_id"])
            .execute()
        )
        logs = rows(await client.table("meal_logs").select("meal_id").eq("user_id", user_id).eq("date", today).execute())
        logged_ids = [l["meal_id"] for l in logs if l.get("meal_id")]

    water_goal = await get_water_goal(client, user_id)
    step_goal = await get_step_goal(client, profile_id) or 0

    return ReminderSnapshot(
        profile=profile,
        has_workout_today=has_workout,
        workout_completed=completed,
        supplements=await get_todays_supplements(client, user_id, now),
        plan_meals=plan_meals,
        logged_meal_ids=logged_ids,
        water_goal=water_goal,
        water_intake=await get_water_intake(client, user_id, today) if water_goal else 0,
        step_goal=step_goal,
        step_count=await get_step_count(client, user_id, today) if step_goal else 0,
        days_since_check_in=await get_days_since_last_check_in(client, user_id, now),
    )


async def generate_reminders(
    client: Any,
    user_id: Optional[str],
    profile: Optional[Dict[str, Any]],
    now: Optional[datetime] = None,
) -> List[Reminder]:
    """All reminders that apply right now; empty when signed out or on any backend failure."""
    if not user_id or not profile or not profile.get("id"):
        return []
    now = to_local(now)
    try:
        snap = await gather_snapshot(client, user_id, profile, now)
    except Exception:
        logger.exception("Error generating reminders")
        return []
    return evaluate_rules(snap, now)
