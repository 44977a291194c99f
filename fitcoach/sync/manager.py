# -*- coding: utf-8 -*-
"""Replays the sync queue against the hosted backend.

Operations are replayed in priority order (session creates, then set creates,
then session updates, then everything else). A successful replay removes the
operation from the queue; a failure either bumps its retry count or, on the
last attempt, moves it to the failed list.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..backend import first_row
from ..cache.keys import CacheKeys
from ..cache.store import CacheStore
from .models import OperationAction, OperationType, QueuedOperation, SyncError, SyncResult
from .queue import SyncQueue

logger = logging.getLogger(__name__)

MAX_RETRIES = 3

Processor = Callable[[OperationAction, Dict[str, Any]], Awaitable[None]]


class SyncReplayError(RuntimeError):
    """A queued payload could not be mapped onto a backend write."""


def operation_priority(op: QueuedOperation) -> int:
    if op.type == OperationType.workout_session and op.action == OperationAction.create:
        return 0
    if op.type == OperationType.workout_set and op.action == OperationAction.create:
        return 1
    if op.type == OperationType.workout_session and op.action == OperationAction.update:
        return 2
    return 3


def _sort_key(op: QueuedOperation):
    try:
        created = datetime.fromisoformat(op.created_at.replace("Z", "+00:00")).timestamp()
    except ValueError:
        created = 0.0
    return (operation_priority(op), created, op.seq or 0)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SyncManager:
    def __init__(self, client: Any, queue: SyncQueue, cache: Optional[CacheStore] = None) -> None:
        self.client = client
        self.queue = queue
        self.cache = cache or queue.cache
        self._processors: Dict[OperationType, Processor] = {
            OperationType.meal_log: self._process_meal_log,
            OperationType.water_log: self._process_water_log,
            OperationType.step_log: self._process_step_log,
            OperationType.supplement_log: self._process_supplement_log,
            OperationType.workout_session: self._process_workout_session,
            OperationType.workout_set: self._process_workout_set,
        }

    # ---- session id mapping ----

    def _session_map(self) -> Dict[str, str]:
        return dict(self.cache.get_cache(CacheKeys.session_map) or {})

    def _remember_session(self, local_id: str, server_id: str) -> None:
        mapping = self._session_map()
        mapping[local_id] = server_id
        self.cache.set_cache(CacheKeys.session_map, mapping)
        logger.info("Mapped local session %s to server id %s", local_id, server_id)

    def _resolve_session(self, local_id: str) -> str:
        server_id = self._session_map().get(local_id)
        if not server_id:
            raise SyncReplayError(f"No server session ID found for local session {local_id}")
        return server_id

    # ---- replay ----

    async def process_queue(self) -> SyncResult:
        ops = sorted(self.queue.get_queue(), key=_sort_key)
        result = SyncResult()
        logger.info("Processing %d queued operations", len(ops))

        for op in ops:
            if op.retry_count >= MAX_RETRIES:
                message = f"Exceeded max retries ({MAX_RETRIES})"
                logger.warning("Operation %s exceeded max retries, moving to failed list", op.id)
                self.queue.add_failed_operation(op, message)
                self.queue.remove_from_queue(op.id)
                result.failed += 1
                result.errors.append(SyncError(operation_id=op.id, error=message))
                continue

            try:
                await self.process_operation(op)
            except Exception as exc:
                message = str(exc) or type(exc).__name__
                logger.error("Failed to process operation %s: %s", op.id, message)
                if op.retry_count >= MAX_RETRIES - 1:
                    self.queue.add_failed_operation(op, message)
                    self.queue.remove_from_queue(op.id)
                else:
                    self.queue.increment_retry(op.id, message)
                result.failed += 1
                result.errors.append(SyncError(operation_id=op.id, error=message))
                continue

            self.queue.remove_from_queue(op.id)
            result.processed += 1
            logger.debug("Processed operation %s", op.id)

        self.cache.set_cache(CacheKeys.last_sync_time, _now_iso())
        logger.info("Sync complete: %d processed, %d failed", result.processed, result.failed)
        return result

    async def process_operation(self, op: QueuedOperation) -> None:
        processor = self._processors.get(op.type)
        if processor is None:
            raise SyncReplayError(f"Unknown operation type: {op.type}")
        await processor(op.action, op.payload)

    async def needs_sync(self) -> bool:
        return self.queue.has_pending_operations()

    def get_last_sync_time(self) -> Optional[str]:
        return self.cache.get_cache(CacheKeys.last_sync_time)

    # ---- per-type processors ----

    async def _process_meal_log(self, action: OperationAction, payload: Dict[str, Any]) -> None:
        if action == OperationAction.create:
            day = payload.get("date") or payload.get("log_date")
            if not day:
                raise SyncReplayError("Missing date field in meal_log payload")
            await self.client.table("meal_logs").insert(
                {
                    "user_id": payload.get("user_id"),
                    "meal_id": payload.get("meal_id"),
                    "date": day,
                    "is_extra_meal": payload.get("is_extra_meal") or False,
                    "notes": payload.get("notes"),
                }
            ).execute()
        elif action == OperationAction.delete:
            await self.client.table("meal_logs").delete().eq("id", payload.get("id")).execute()

    async def _process_water_log(self, action: OperationAction, payload: Dict[str, Any]) -> None:
        if action in (OperationAction.create, OperationAction.update):
            await self.client.table("water_tracking").upsert(
                {
                    "user_id": payload.get("user_id"),
                    "date": payload.get("date"),
                    "amount_ml": payload.get("amount_ml"),
                },
                on_conflict="user_id,date",
            ).execute()

    async def _process_step_log(self, action: OperationAction, payload: Dict[str, Any]) -> None:
        if action in (OperationAction.create, OperationAction.update):
            await self.client.table("step_entries").upsert(
                {
                    "user_id": payload.get("user_id"),
                    "date": payload.get("date"),
                    "step_count": payload.get("step_count"),
                },
                on_conflict="user_id,date",
            ).execute()

    async def _process_supplement_log(self, action: OperationAction, payload: Dict[str, Any]) -> None:
        if action == OperationAction.create:
            assignment_id = payload.get("assignment_id") or payload.get("athlete_supplement_id")
            if not assignment_id:
                raise SyncReplayError("Missing athlete_supplement_id in supplement_log payload")
            taken_at = payload.get("logged_at") or payload.get("taken_at") or _now_iso()
            await self.client.table("supplement_logs").upsert(
                {
                    "user_id": payload.get("user_id"),
                    "athlete_supplement_id": assignment_id,
                    "taken_at": taken_at,
                    "date": payload.get("date") or taken_at.split("T")[0],
                    "notes": payload.get("notes") or None,
                },
                on_conflict="athlete_supplement_id,date",
            ).execute()
        elif action == OperationAction.delete:
            await self.client.table("supplement_logs").delete().eq("id", payload.get("id")).execute()

    async def _process_workout_session(self, action: OperationAction, payload: Dict[str, Any]) -> None:
        if action == OperationAction.create:
            response = await self.client.table("workout_sessions").insert(
                {
                    "user_id": payload.get("user_id"),
                    "workout_id": payload.get("workout_id"),
                    "start_time": payload.get("start_time") or payload.get("started_at") or _now_iso(),
                    "end_time": payload.get("end_time"),
                    "notes": payload.get("notes"),
                }
            ).execute()
            created = first_row(response)
            if payload.get("local_session_id") and created and created.get("id"):
                self._remember_session(payload["local_session_id"], str(created["id"]))
        elif action == OperationAction.update:
            session_id = payload.get("id")
            if not session_id and payload.get("local_session_id"):
                session_id = self._resolve_session(payload["local_session_id"])
            if not session_id:
                raise SyncReplayError("No session ID available for update")

            update: Dict[str, Any] = {}
            if payload.get("status") == "completed":
                update["end_time"] = payload.get("completed_at") or _now_iso()
            for field in ("duration_seconds", "notes", "end_time"):
                if field in payload:
                    update[field] = payload[field]
            await self.client.table("workout_sessions").update(update).eq("id", session_id).execute()

    async def _process_workout_set(self, action: OperationAction, payload: Dict[str, Any]) -> None:
        if action == OperationAction.create:
            session_id = payload.get("session_id") or payload.get("workout_session_id")
            if not session_id and payload.get("local_session_id"):
                session_id = self._resolve_session(payload["local_session_id"])
            if not session_id:
                raise SyncReplayError("No session ID available for workout set")

            weight = payload.get("weight")
            if "weight_kg" in payload:
                weight = str(payload["weight_kg"]) if payload["weight_kg"] is not None else None

            await self.client.table("completed_exercise_sets").insert(
                {
                    "workout_session_id": session_id,
                    "exercise_instance_id": payload.get("exercise_instance_id"),
                    "set_order": payload.get("set_order") or payload.get("set_number"),
                    "reps": payload.get("reps"),
                    "weight": weight,
                    "is_completed": True,
                    "set_type": payload.get("set_type"),
                    "notes": payload.get("notes"),
                }
            ).execute()
        elif action == OperationAction.update:
            update = {k: v for k, v in payload.items() if k != "id"}
            await self.client.table("completed_exercise_sets").update(update).eq("id", payload.get("id")).execute()


def pending_summary(queue: SyncQueue) -> List[Dict[str, Any]]:
    """Compact per-type counts of pending work, used by the CLI status command."""
    counts: Dict[str, int] = {}
    for op in queue.get_queue():
        label = f"{op.type.value}/{op.action.value}"
        counts[label] = counts.get(label, 0) + 1
    return [{"operation": k, "count": v} for k, v in sorted(counts.items())]
