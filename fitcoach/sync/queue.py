# -*- coding: utf-8 -*-
"""Persistent sync queue.

The queue is an ordered log (``seq``) in the local SQLite database. Every
operation carries a client-generated id that doubles as an idempotency key:
enqueueing an id that is already present is a no-op. Cache writes that belong
to the same user action can be committed in the same transaction as the
enqueue.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence
from uuid import uuid4

from ..app_db import db_conn
from ..cache.store import CacheStore, dumps
from .models import FailedOperation, OperationAction, OperationType, QueuedOperation

logger = logging.getLogger(__name__)

_COLUMNS = "seq, id, type, action, user_id, payload_json, created_at, retry_count, last_error"


def new_operation_id() -> str:
    return f"{int(time.time() * 1000)}-{uuid4().hex[:12]}"


def _row_to_op(row: sqlite3.Row) -> QueuedOperation:
    return QueuedOperation(
        seq=row["seq"],
        id=row["id"],
        type=OperationType(row["type"]),
        action=OperationAction(row["action"]),
        user_id=row["user_id"],
        payload=json.loads(row["payload_json"]),
        created_at=row["created_at"],
        retry_count=row["retry_count"],
        last_error=row["last_error"],
    )


class SyncQueue:
    def __init__(self, cache: CacheStore) -> None:
        self.cache = cache
        self.db_path = cache.db_path

    # ---- writes ----

    def add_to_queue(
        self,
        op_type: OperationType | str,
        action: OperationAction | str,
        user_id: str,
        payload: Dict[str, Any],
        *,
        op_id: Optional[str] = None,
        coalesce_on: Optional[Sequence[str]] = None,
        cache_updates: Optional[Mapping[str, Any]] = None,
    ) -> QueuedOperation:
        """Append an operation; optionally coalesce with a pending twin.

        ``coalesce_on`` names payload fields identifying the entity (e.g.
        ``("date",)`` for day-keyed water/step totals). A pending operation of the
        same type, action and user with equal values for those fields gets its
        payload merged instead of a new entry being appended.
        """
        op = QueuedOperation(
            id=op_id or new_operation_id(),
            type=OperationType(op_type),
            action=OperationAction(action),
            user_id=user_id,
            payload=dict(payload),
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        written: Dict[str, Any] = {}
        with db_conn(self.db_path) as conn:
            twin = self._find_twin(conn, op, coalesce_on) if coalesce_on else None
            if twin is not None:
                merged = {**twin.payload, **op.payload}
                conn.execute(
                    "UPDATE sync_queue SET payload_json=? WHERE id=?",
                    (dumps(merged), twin.id),
                )
                result = twin.model_copy(update={"payload": merged})
            else:
                conn.execute(
                    """
                    INSERT OR IGNORE INTO sync_queue (id, type, action, user_id, payload_json, created_at, retry_count)
                    VALUES (?, ?, ?, ?, ?, ?, 0)
                    """,
                    (op.id, op.type.value, op.action.value, op.user_id, dumps(op.payload), op.created_at),
                )
                row = conn.execute(f"SELECT {_COLUMNS} FROM sync_queue WHERE id=?", (op.id,)).fetchone()
                result = _row_to_op(row)
            for key, value in (cache_updates or {}).items():
                written[key] = self.cache.write_entry(conn, key, value)
        for key, value in written.items():
            self.cache.remember(key, value)
        logger.debug("Queued %s/%s operation %s", result.type.value, result.action.value, result.id)
        return result

    def _find_twin(
        self,
        conn: sqlite3.Connection,
        op: QueuedOperation,
        fields: Sequence[str],
    ) -> Optional[QueuedOperation]:
        found = conn.execute(
            f"SELECT {_COLUMNS} FROM sync_queue WHERE type=? AND action=? AND user_id=? ORDER BY seq",
            (op.type.value, op.action.value, op.user_id),
        ).fetchall()
        for row in found:
            candidate = _row_to_op(row)
            if all(candidate.payload.get(f) == op.payload.get(f) for f in fields):
                return candidate
        return None

    def remove_from_queue(self, op_id: str) -> bool:
        with db_conn(self.db_path) as conn:
            cur = conn.execute("DELETE FROM sync_queue WHERE id=?", (op_id,))
            return cur.rowcount > 0

    def increment_retry(self, op_id: str, error: Optional[str] = None) -> None:
        with db_conn(self.db_path) as conn:
            conn.execute(
                "UPDATE sync_queue SET retry_count = retry_count + 1, last_error=? WHERE id=?",
                (error, op_id),
            )

    def clear_queue(self) -> None:
        with db_conn(self.db_path) as conn:
            conn.execute("DELETE FROM sync_queue")

    def update_operation_payload(self, op_id: str, payload: Dict[str, Any]) -> Optional[QueuedOperation]:
        """Shallow-merge ``payload`` into a queued operation's payload."""
        with db_conn(self.db_path) as conn:
            row = conn.execute(f"SELECT {_COLUMNS} FROM sync_queue WHERE id=?", (op_id,)).fetchone()
            if not row:
                return None
            op = _row_to_op(row)
            merged = {**op.payload, **payload}
            conn.execute("UPDATE sync_queue SET payload_json=? WHERE id=?", (dumps(merged), op_id))
        return op.model_copy(update={"payload": merged})

    # ---- reads ----

    def get_queue(self) -> List[QueuedOperation]:
        with db_conn(self.db_path) as conn:
            found = conn.execute(f"SELECT {_COLUMNS} FROM sync_queue ORDER BY seq").fetchall()
        return [_row_to_op(r) for r in found]

    def get_operation(self, op_id: str) -> Optional[QueuedOperation]:
        with db_conn(self.db_path) as conn:
            row = conn.execute(f"SELECT {_COLUMNS} FROM sync_queue WHERE id=?", (op_id,)).fetchone()
        return _row_to_op(row) if row else None

    def get_queue_length(self) -> int:
        with db_conn(self.db_path) as conn:
            row = conn.execute("SELECT COUNT(*) AS n FROM sync_queue").fetchone()
        return int(row["n"])

    def has_pending_operations(self) -> bool:
        return self.get_queue_length() > 0

    def get_operations_by_type(self, op_type: OperationType | str) -> List[QueuedOperation]:
        kind = OperationType(op_type)
        return [op for op in self.get_queue() if op.type == kind]

    def get_operations_by_user(self, user_id: str) -> List[QueuedOperation]:
        return [op for op in self.get_queue() if op.user_id == user_id]

    def find_existing_operation(
        self,
        op_type: OperationType | str,
        entity_id: Any,
        *,
        field: str = "id",
        user_id: Optional[str] = None,
        action: Optional[OperationAction | str] = None,
        match: Optional[Mapping[str, Any]] = None,
        newest: bool = False,
    ) -> Optional[QueuedOperation]:
        """First pending operation whose payload ``field`` equals ``entity_id``.

        ``match`` adds further payload fields that must be equal. With
        ``newest`` the queue is searched from the most recent entry.
        """
        kind = OperationType(op_type)
        wanted = OperationAction(action) if action is not None else None
        queue = self.get_queue()
        for op in reversed(queue) if newest else queue:
            if op.type != kind:
                continue
            if wanted is not None and op.action != wanted:
                continue
            if user_id is not None and op.user_id != user_id:
                continue
            if op.payload.get(field) != entity_id:
                continue
            if all(op.payload.get(k) == v for k, v in (match or {}).items()):
                return op
        return None

    # ---- failed operations ----

    def add_failed_operation(self, op: QueuedOperation, error: str) -> FailedOperation:
        failed = FailedOperation(
            **op.model_dump(exclude={"seq"}),
            error=error,
            failed_at=datetime.now(timezone.utc).isoformat(),
        )
        with db_conn(self.db_path) as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO sync_failed
                    (id, type, action, user_id, payload_json, created_at, retry_count, error, failed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    failed.id,
                    failed.type.value,
                    failed.action.value,
                    failed.user_id,
                    dumps(failed.payload),
                    failed.created_at,
                    failed.retry_count,
                    failed.error,
                    failed.failed_at,
                ),
            )
        return failed

    def get_failed_operations(self) -> List[FailedOperation]:
        with db_conn(self.db_path) as conn:
            found = conn.execute("SELECT * FROM sync_failed ORDER BY failed_at").fetchall()
        return [
            FailedOperation(
                id=r["id"],
                type=OperationType(r["type"]),
                action=OperationAction(r["action"]),
                user_id=r["user_id"],
                payload=json.loads(r["payload_json"]),
                created_at=r["created_at"],
                retry_count=r["retry_count"],
                error=r["error"],
                failed_at=r["failed_at"],
            )
            for r in found
        ]

    def clear_failed_operations(self) -> None:
        with db_conn(self.db_path) as conn:
            conn.execute("DELETE FROM sync_failed")
