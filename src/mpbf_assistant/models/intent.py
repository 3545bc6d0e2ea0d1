"""Intent models — output of the natural-language classifier."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class IntentType(str, enum.Enum):
    QUERY = "query"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    REPORT = "report"
    HELP = "help"
    UNKNOWN = "unknown"


class UserCommand(BaseModel):
    model_config = {"frozen": True}

    user_id: int
    message: str


class IntentResult(BaseModel):
    model_config = {"frozen": True}

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    raw_message: str = ""
    intent: IntentType = IntentType.UNKNOWN
    action: str = ""
    requires_database: bool = False
    requests_report: bool = False
    report_type: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    missing_info: list[str] = Field(default_factory=list)
    reasoning: str = ""
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @classmethod
    def unknown(cls, message: str = "", reasoning: str = "") -> IntentResult:
        return cls(
            raw_message=message,
            intent=IntentType.UNKNOWN,
            confidence=0.0,
            reasoning=reasoning,
        )
