# -*- coding: utf-8 -*-
"""Workout backend queries: assignment, program workouts, sessions and sets."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional

from ..backend import first_row, rows
from ..dates import day_bounds, get_local_date_string
from .models import PreviousSet

logger = logging.getLogger(__name__)


async def get_assigned_program(client: Any, profile_id: str) -> Optional[Dict[str, Any]]:
    """Newest assignment that carries a program template, with the template embedded."""
    assignment = first_row(
        await client.table("assigned_plans")
        .select("id, program_template_id, start_date, assigned_at")
        .eq("athlete_id", profile_id)
        .not_.is_("program_template_id", "null")
        .order("assigned_at", desc=True)
        .limit(1)
        .execute()
    )
    if not assignment:
        return None
    template = first_row(
        await client.table("program_templates")
        .select("id, name, description, version")
        .eq("id", assignment["program_template_id"])
        .limit(1)
        .execute()
    )
    return {**assignment, "program_templates": template}


async def get_program_workouts(client: Any, program_template_id: str) -> List[Dict[str, Any]]:
    workouts = rows(
        await client.table("workouts")
        .select("id, name, day_of_week, week_number, order_in_program, description")
        .eq("program_template_id", program_template_id)
        .order("order_in_program")
        .execute()
    )
    if not workouts:
        return []
    instances = rows(
        await client.table("exercise_instances")
        .select("*")
        .in_("workout_id", [w["id"] for w in workouts])
        .order("order_in_workout")
        .execute()
    )
    by_workout: Dict[Any, List[Dict[str, Any]]] = defaultdict(list)
    for inst in instances:
        by_workout[inst.get("workout_id")].append(inst)
    return [{**w, "exercise_instances": by_workout.get(w["id"], [])} for w in workouts]


async def check_workout_completion(
    client: Any,
    workout_id: str,
    user_id: str,
    day: Optional[str] = None,
) -> tuple[bool, Optional[str]]:
    """``(is_completed, completion_time)`` for a workout on a local calendar day."""
    start, end = day_bounds(day or get_local_date_string())
    done = first_row(
        await client.table("workout_sessions")
        .select("id, end_time")
        .eq("workout_id", workout_id)
        .eq("user_id", user_id)
        .not_.is_("end_time", "null")
        .gte("start_time", start)
        .lte("start_time", end)
        .order("end_time", desc=True)
        .execute()
    )
    if done:
        return True, done.get("end_time")
    return False, None


async def get_last_workout_sets(client: Any, workout_id: str, user_id: str) -> Dict[str, List[PreviousSet]]:
    """Sets of the most recent completed session of a workout, keyed by exercise instance."""
    session = first_row(
        await client.table("workout_sessions")
        .select("id")
        .eq("workout_id", workout_id)
        .eq("user_id", user_id)
        .not_.is_("end_time", "null")
        .order("end_time", desc=True)
        .limit(1)
        .execute()
    )
    if not session:
        return {}
    found = rows(
        await client.table("completed_exercise_sets")
        .select("exercise_instance_id, set_order, weight, reps")
        .eq("workout_session_id", session["id"])
        .eq("is_completed", True)
        .order("set_order")
        .execute()
    )
    grouped: Dict[str, List[PreviousSet]] = defaultdict(list)
    for r in found:
        key = str(r["exercise_instance_id"])
        weight = r.get("weight")
        grouped[key].append(
            PreviousSet(
                exercise_instance_id=key,
                set_order=r.get("set_order"),
                weight=str(weight) if weight is not None else None,
                reps=r.get("reps"),
            )
        )
    return dict(grouped)
