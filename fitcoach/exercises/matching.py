# -*- coding: utf-8 -*-
"""Match free-text exercise names (e.g. from generated programs) to the exercise table."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from ..backend import rows
from .models import DbExercise

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000
MIN_MATCH_SCORE = 5.0

EQUIPMENT_ALIASES = {
    "Leverage Machine": "Lever",
    "Olympic Barbell": "Barbell",
    "Olympic Bar": "Barbell",
    "Dumbbell": "Dumbbell",
    "Cable": "Cable",
    "Body weight": "Bodyweight",
    "Medicine Ball": "Medicine Ball",
    "Kettlebell": "Kettlebell",
    "EZ Barbell": "EZ Bar",
}


def levenshtein(a: str, b: str) -> int:
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def calculate_string_similarity(a: str, b: str) -> float:
    """1.0 for identical strings, 0.0 if either is empty, else 1 - distance / longest."""
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    return 1 - levenshtein(a, b) / max(len(a), len(b))


def standardize_equipment(equipment: Optional[str]) -> str:
    if not equipment:
        return ""
    return EQUIPMENT_ALIASES.get(equipment, equipment)


def _contains(haystack: Optional[str], needle: Optional[str]) -> bool:
    return bool(haystack and needle and needle.lower() in haystack.lower())


async def fetch_all_exercises(client: Any) -> List[DbExercise]:
    """Page through ``exercises``; a failing page stops paging and keeps what was read."""
    found: List[DbExercise] = []
    page = 0
    while True:
        try:
            response = await (
                client.table("exercises")
                .select("id, name, primary_muscle_group, equipment, target, body_part, description")
                .range(page * PAGE_SIZE, (page + 1) * PAGE_SIZE - 1)
                .execute()
            )
        except Exception as exc:
            logger.error("Error fetching exercises on page %d: %s", page + 1, exc)
            break
        batch = rows(response)
        found.extend(DbExercise.model_validate({**r, "id": str(r["id"])}) for r in batch)
        if len(batch) < PAGE_SIZE:
            break
        page += 1
    logger.info("Fetched %d exercises", len(found))
    return found


def find_best_exercise_match(
    name: str,
    muscle_group: Optional[str],
    equipment: Optional[str],
    exercises: Sequence[DbExercise],
) -> Optional[DbExercise]:
    if not name or not exercises:
        return None
    standard = standardize_equipment(equipment)

    exact = [ex for ex in exercises if ex.name.lower() == name.lower()]
    if exact:
        for ex in exact:
            muscle_ok = not muscle_group or _contains(ex.primary_muscle_group, muscle_group)
            equipment_ok = (
                (not equipment and not standard)
                or _contains(ex.equipment, equipment)
                or _contains(ex.equipment, standard)
            )
            if muscle_ok and equipment_ok:
                return ex
        return exact[0]

    best: Optional[DbExercise] = None
    best_score = 0.0
    for ex in exercises:
        score = calculate_string_similarity(name.lower(), ex.name.lower()) * 10
        if _contains(ex.equipment, equipment):
            score += 3
        elif _contains(ex.equipment, standard):
            score += 2.5
        if _contains(ex.primary_muscle_group, muscle_group):
            score += 5
        elif _contains(ex.target, muscle_group):
            score += 4
        if score > best_score:
            best_score = score
            best = ex
    return best if best_score >= MIN_MATCH_SCORE else None
