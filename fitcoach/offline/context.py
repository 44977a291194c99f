# -*- coding: utf-8 -*-
"""Connectivity context.

Tracks whether the device is online, how many mutations are pending and when
the queue was last replayed. Coming back online from a known offline state
triggers a replay.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..sync.manager import SyncManager
from ..sync.models import SyncResult
from ..sync.queue import SyncQueue

logger = logging.getLogger(__name__)


class OfflineContext:
    def __init__(self, queue: SyncQueue, manager: SyncManager) -> None:
        self.queue = queue
        self.manager = manager
        self.cache = queue.cache
        # None means connectivity is not known yet
        self._online: Optional[bool] = None
        self.is_initialized = False
        self.is_syncing = False
        self.pending_operations = 0
        self.last_sync_time: Optional[datetime] = None
        self.last_sync_result: Optional[SyncResult] = None

    @property
    def is_online(self) -> bool:
        return self._online is True

    def initialize(self) -> None:
        stored = self.manager.get_last_sync_time()
        if stored:
            try:
                self.last_sync_time = datetime.fromisoformat(stored.replace("Z", "+00:00"))
            except ValueError:
                logger.warning("Ignoring unparseable last sync time %r", stored)
        self.refresh_pending_count()

    def refresh_pending_count(self) -> int:
        self.pending_operations = self.queue.get_queue_length()
        return self.pending_operations

    async def set_network_state(
        self,
        connected: bool,
        internet_reachable: Optional[bool] = None,
    ) -> Optional[SyncResult]:
        """Apply a connectivity change; returns the replay result if one was triggered."""
        online = bool(connected) and internet_reachable is not False
        previous = self._online
        self._online = online
        self.is_initialized = True
        logger.info("Network state changed: %s (was: %s)", "online" if online else "offline", previous)
        if online and previous is False and not self.is_syncing:
            logger.info("Back online, triggering sync")
            return await self.sync_now()
        return None

    async def sync_now(self) -> Optional[SyncResult]:
        if self.is_syncing or not self.is_online:
            logger.debug("Sync skipped: already syncing or offline")
            return None

        self.is_syncing = True
        try:
            result = await self.manager.process_queue()
        except Exception:
            logger.exception("Error during sync")
            return None
        finally:
            self.is_syncing = False

        self.last_sync_time = datetime.now().astimezone()
        self.last_sync_result = result
        self.refresh_pending_count()
        return result
