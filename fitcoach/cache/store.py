# -*- coding: utf-8 -*-
"""Cache store backed by the local SQLite database, mirrored in memory.

Reads never raise: a missing or unreadable entry is simply ``None``. Writes are
fire-and-forget; failures are logged and the caller carries on with its
in-memory state.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel

from ..app_db import db_conn, init_app_db
from ..config import settings
from .keys import CACHE_PREFIX, SYNC_PREFIX, CacheKeys

logger = logging.getLogger(__name__)


class CacheEntry(BaseModel):
    key: str
    value: Any = None
    cached_at: str


def _json_default(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, datetime):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=_json_default)


class CacheStore:
    def __init__(self, db_path: Optional[Path] = None) -> None:
        self.db_path = db_path or settings.db_path
        init_app_db(self.db_path)
        self._memory: Dict[str, Any] = {}

    # ---- reads ----

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        try:
            with db_conn(self.db_path) as conn:
                row = conn.execute(
                    "SELECT key, value_json, cached_at FROM cache_entries WHERE key=?",
                    (key,),
                ).fetchone()
            if not row:
                return None
            return CacheEntry(key=row["key"], value=json.loads(row["value_json"]), cached_at=row["cached_at"])
        except (sqlite3.Error, ValueError) as exc:
            logger.warning("Error reading cache for key %s: %s", key, exc)
            return None

    def get_cache(self, key: str) -> Any:
        entry = self.get_entry(key)
        if entry is None:
            return None
        self._memory[key] = entry.value
        return entry.value

    def get_cache_sync(self, key: str) -> Any:
        """Memory-only read; returns None until the key was read or written once."""
        return self._memory.get(key)

    def has_cache(self, key: str) -> bool:
        try:
            with db_conn(self.db_path) as conn:
                row = conn.execute("SELECT 1 FROM cache_entries WHERE key=?", (key,)).fetchone()
            return row is not None
        except sqlite3.Error as exc:
            logger.warning("Error checking cache for key %s: %s", key, exc)
            return False

    def get_all_cache_keys(self) -> List[str]:
        try:
            with db_conn(self.db_path) as conn:
                found = conn.execute("SELECT key FROM cache_entries ORDER BY key").fetchall()
            return [r["key"] for r in found]
        except sqlite3.Error as exc:
            logger.warning("Error listing cache keys: %s", exc)
            return []

    def get_last_user_id(self) -> Optional[str]:
        value = self.get_cache(CacheKeys.last_user_id)
        return str(value) if value else None

    def preload_cache(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.get_cache(key)

    # ---- writes ----

    def write_entry(self, conn: sqlite3.Connection, key: str, value: Any) -> Any:
        """Write inside a caller-owned transaction (see SyncQueue.add_to_queue).

        Returns the stored value; the caller mirrors it with ``remember`` once
        the transaction has committed.
        """
        payload = dumps(value)
        conn.execute(
            """
            INSERT INTO cache_entries (key, value_json, cached_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value_json=excluded.value_json, cached_at=excluded.cached_at
            """,
            (key, payload, datetime.now(timezone.utc).isoformat()),
        )
        return json.loads(payload)

    def remember(self, key: str, value: Any) -> None:
        self._memory[key] = value

    def set_cache(self, key: str, value: Any) -> None:
        try:
            with db_conn(self.db_path) as conn:
                stored = self.write_entry(conn, key, value)
        except (sqlite3.Error, TypeError, ValueError) as exc:
            logger.warning("Error writing cache for key %s: %s", key, exc)
            return
        self.remember(key, stored)

    def delete_cache(self, key: str) -> None:
        self._memory.pop(key, None)
        try:
            with db_conn(self.db_path) as conn:
                conn.execute("DELETE FROM cache_entries WHERE key=?", (key,))
        except sqlite3.Error as exc:
            logger.warning("Error deleting cache for key %s: %s", key, exc)

    def _delete_matching(self, predicate) -> int:
        keys = [k for k in self.get_all_cache_keys() if predicate(k)]
        if not keys:
            return 0
        try:
            with db_conn(self.db_path) as conn:
                conn.executemany("DELETE FROM cache_entries WHERE key=?", [(k,) for k in keys])
        except sqlite3.Error as exc:
            logger.warning("Error clearing cache: %s", exc)
            return 0
        for k in keys:
            self._memory.pop(k, None)
        return len(keys)

    def clear_all_cache(self) -> int:
        return self._delete_matching(lambda k: k.startswith(CACHE_PREFIX) or k.startswith(SYNC_PREFIX))

    def clear_user_cache(self, user_id: str) -> int:
        if not user_id:
            return 0
        return self._delete_matching(lambda k: user_id in k)
