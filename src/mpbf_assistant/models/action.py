"""Action models — pending actions, database operations and pipeline responses."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

Language = Literal["ar", "en"]


class ResponseStatus(str, enum.Enum):
    CONFIRM = "confirm"
    INFO = "info"
    CLARIFICATION = "clarification"
    SUCCESS = "success"
    ERROR = "error"


class PendingAction(BaseModel):
    """A mutating action awaiting an explicit confirmation round trip."""

    model_config = {"frozen": True}

    action: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    table: str | None = None
    language: Language = "ar"
    token: str = ""


class DatabaseOperation(BaseModel):
    operation: str
    table: str
    data: dict[str, Any] | None = None
    conditions: dict[str, Any] | None = None
    success: bool
    message: str
    result: dict[str, Any] | None = None
    executed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class CommandResponse(BaseModel):
    needs_confirmation: bool = False
    status: ResponseStatus = ResponseStatus.INFO
    message: str = ""
    summary: str | None = None
    pending_action: PendingAction | None = None
    missing_fields: list[str] = Field(default_factory=list)
    language: Language = "ar"


class ExecutionResponse(BaseModel):
    status: ResponseStatus
    message: str
    operation: DatabaseOperation | None = None
