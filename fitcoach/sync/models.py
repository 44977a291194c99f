# -*- coding: utf-8 -*-
"""Sync: Pydantic models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class OperationType(str, Enum):
    meal_log = "meal_log"
    water_log = "water_log"
    step_log = "step_log"
    supplement_log = "supplement_log"
    workout_session = "workout_session"
    workout_set = "workout_set"


class OperationAction(str, Enum):
    create = "create"
    update = "update"
    delete = "delete"


class QueuedOperation(BaseModel):
    id: str = Field(..., min_length=1, description="Client-generated idempotency key")
    type: OperationType
    action: OperationAction
    user_id: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    created_at: str = Field(..., description="ISO8601 timestamp")
    retry_count: int = Field(0, ge=0)
    last_error: Optional[str] = None
    seq: Optional[int] = Field(None, description="Position in the local log")


class FailedOperation(QueuedOperation):
    error: str
    failed_at: str


class SyncError(BaseModel):
    operation_id: str
    error: str


class SyncResult(BaseModel):
    processed: int = 0
    failed: int = 0
    errors: List[SyncError] = []
