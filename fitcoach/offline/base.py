# -*- coding: utf-8 -*-
"""Common fetch-or-cache contract shared by the offline resources."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from ..dates import to_local
from ..nutrition.calc import round_half_up
from ..session import AuthSession
from ..sync.models import OperationAction, OperationType, QueuedOperation
from .context import OfflineContext

logger = logging.getLogger(__name__)


def percent(part: float, whole: Optional[float]) -> int:
    """Whole percentage, halves rounded up, capped at 100. 0 without a positive whole."""
    if not whole or whole <= 0:
        return 0
    return min(100, round_half_up(part / whole * 100))


class OfflineResource:
    """One domain's data for the signed-in user, fresh when online, cached otherwise.

    Subclasses implement ``_fetch`` (backend read plus cache write) and
    ``_load_cached`` (returns False when nothing usable is cached), and expose
    their state through ``snapshot()``.
    """

    cache_miss_error: Optional[str] = None
    requires_profile = True

    def __init__(self, client: Any, context: OfflineContext, session: AuthSession) -> None:
        self.client = client
        self.context = context
        self.session = session
        self.cache = context.cache
        self.is_loading = False
        self.is_from_cache = False
        self.error: Optional[str] = None

    @property
    def is_online(self) -> bool:
        return self.context.is_online

    def _ready(self) -> bool:
        if not self.session.user_id:
            return False
        return bool(self.session.profile_id) or not self.requires_profile

    async def refresh(self, now: Optional[datetime] = None):
        if not self._ready():
            return self.snapshot()

        now = to_local(now)
        user_id = self.session.user_id
        self.is_loading = True
        self.error = None
        try:
            if self.is_online and self.client is not None:
                try:
                    await self._fetch(user_id, now)
                    self.is_from_cache = False
                except Exception as exc:
                    logger.error("%s: error fetching data: %s", type(self).__name__, exc)
                    self.error = str(exc) or type(exc).__name__
                    if self._load_cached(user_id, now, online=True):
                        self.is_from_cache = True
            elif self._load_cached(user_id, now, online=False):
                self.is_from_cache = True
            elif self.cache_miss_error:
                self.error = self.cache_miss_error
        finally:
            self.is_loading = False
        return self.snapshot()

    async def _fetch(self, user_id: str, now: datetime) -> None:
        raise NotImplementedError

    def _load_cached(self, user_id: str, now: datetime, online: bool) -> bool:
        raise NotImplementedError

    def snapshot(self):
        raise NotImplementedError

    def _state_fields(self) -> Dict[str, Any]:
        return {"is_loading": self.is_loading, "is_from_cache": self.is_from_cache, "error": self.error}

    def _enqueue(
        self,
        op_type: OperationType,
        action: OperationAction,
        payload: Dict[str, Any],
        **kwargs: Any,
    ) -> Optional[QueuedOperation]:
        if not self.session.user_id:
            return None
        op = self.context.queue.add_to_queue(op_type, action, self.session.user_id, payload, **kwargs)
        self.context.refresh_pending_count()
        return op
