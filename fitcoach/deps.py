# -*- coding: utf-8 -*-
"""FastAPI dependencies."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import HTTPException

from .backend import create_backend_client
from .errors import BackendNotConfigured

logger = logging.getLogger(__name__)

_client: Optional[Any] = None


async def get_optional_backend() -> Optional[Any]:
    """Shared backend client, or None when the backend is not configured."""
    global _client
    if _client is None:
        try:
            _client = await create_backend_client()
        except BackendNotConfigured:
            logger.debug("Backend not configured; local lookups disabled")
            return None
    return _client


def require_backend(client: Optional[Any]) -> Any:
    if client is None:
        raise HTTPException(status_code=503, detail="Backend not configured")
    return client
