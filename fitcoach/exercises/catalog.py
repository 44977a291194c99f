# -*- coding: utf-8 -*-
"""HeyGainz public exercise catalogue.

The full list is paged in once and kept on the catalogue object for the rest
of the session; there is no expiry.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from .models import CatalogExercise

logger = logging.getLogger(__name__)

PER_PAGE = 100


def _description_field(description: Optional[str], field: str) -> Optional[str]:
    try:
        parsed = json.loads(description or "")
    except ValueError:
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed.get(field) or None


def format_heygainz_exercise(raw: Dict[str, Any]) -> CatalogExercise:
    muscles = raw.get("muscles") or []
    primary = [m.get("name") for m in muscles if (m.get("pivot") or {}).get("type") == "primary"]
    if muscles:
        category = muscles[0].get("body_part") or "Uncategorized"
    else:
        category = _description_field(raw.get("description"), "body_part") or "Uncategorized"
    equipment = _description_field(raw.get("description"), "equipment")
    return CatalogExercise(
        id=str(raw.get("id")),
        name=raw.get("name") or "Unknown Exercise",
        description=raw.get("seo_description") or "",
        category=category,
        muscles=[m for m in primary if m],
        equipment=[equipment] if equipment else [],
        image=raw.get("gif_url"),
        instructions=raw.get("instructions") or [],
        tips=raw.get("tips") or [],
        type=raw.get("type"),
    )


class ExerciseCatalog:
    def __init__(
        self,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.heygainz_base_url).rstrip("/")
        self.transport = transport
        self._exercises: Optional[List[CatalogExercise]] = None

    @property
    def is_cached(self) -> bool:
        return self._exercises is not None

    async def get_all(self) -> List[CatalogExercise]:
        if self._exercises is not None:
            return self._exercises

        found: List[CatalogExercise] = []
        page = 1
        try:
            async with httpx.AsyncClient(timeout=30, follow_redirects=True, transport=self.transport) as client:
                while True:
                    resp = await client.get(f"{self.base_url}/exercises", params={"page": page, "per_page": PER_PAGE})
                    resp.raise_for_status()
                    body = resp.json()
                    found.extend(format_heygainz_exercise(r) for r in body.get("data") or [])
                    logger.debug("Fetched %d / %s exercises", len(found), body.get("total"))
                    if body.get("next_page_url") is None:
                        break
                    page += 1
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Failed to fetch exercise catalogue: %s", exc)
            return []

        self._exercises = found
        logger.info("Cached %d catalogue exercises", len(found))
        return found

    async def get_by_id(self, exercise_id: str) -> Optional[CatalogExercise]:
        for ex in await self.get_all():
            if ex.id == str(exercise_id):
                return ex
        return None

    async def search(self, query: str, limit: int = 20) -> List[CatalogExercise]:
        needle = query.strip().lower()
        matches = [ex for ex in await self.get_all() if needle in ex.name.lower()]
        return matches[:limit]

    def clear(self) -> None:
        self._exercises = None
