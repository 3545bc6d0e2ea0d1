"""Pydantic models for append-only log records."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class LearningRecord(BaseModel):
    model_config = {"frozen": True}

    user_id: int
    action_type: str
    context: str = ""
    success: bool
    execution_time_ms: int = 0
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class NotificationRecord(BaseModel):
    title: str
    message: str
    priority: str = "normal"
    context_type: str = ""
    context_id: str = ""
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
