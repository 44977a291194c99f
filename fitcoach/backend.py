# -*- coding: utf-8 -*-
"""Hosted backend (Supabase) client construction and response helpers.

Services receive the client explicitly so tests can pass an in-memory fake that
implements the same table/query-builder surface.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from supabase import AsyncClient, acreate_client

from .config import settings
from .errors import BackendNotConfigured

logger = logging.getLogger(__name__)


async def create_backend_client(
    url: Optional[str] = None,
    key: Optional[str] = None,
) -> AsyncClient:
    url = url or settings.supabase_url
    key = key or settings.supabase_key
    if not url or not key:
        raise BackendNotConfigured("SUPABASE_URL and SUPABASE_KEY must be set")
    logger.debug("Creating Supabase client for %s", url)
    return await acreate_client(url, key)


def rows(response: Any) -> List[Dict[str, Any]]:
    if response is None:
        return []
    data = getattr(response, "data", None)
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    return list(data)


def first_row(response: Any) -> Optional[Dict[str, Any]]:
    found = rows(response)
    return found[0] if found else None
