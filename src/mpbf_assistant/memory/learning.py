"""Append-only learning log of orchestrated command outcomes."""

from __future__ import annotations

import logging

from mpbf_assistant.memory.models import LearningRecord
from mpbf_assistant.storage.database import FactoryDatabase

logger = logging.getLogger(__name__)


class LearningLogger:
    def __init__(self, db: FactoryDatabase) -> None:
        self._db = db

    async def record(
        self,
        user_id: int,
        action_type: str,
        context: str,
        success: bool,
        execution_time_ms: int,
    ) -> None:
        """Insert one record. Never raises; failures only reach the log."""
        try:
            entry = LearningRecord(
                user_id=user_id,
                action_type=action_type,
                context=context,
                success=success,
                execution_time_ms=max(int(execution_time_ms), 0),
            )
            await self.log(entry)
        except Exception:
            logger.exception("Could not write learning record for %s", action_type)

    async def log(self, entry: LearningRecord) -> None:
        await self._db.execute(
            "INSERT INTO learning_records (user_id, action_type, context, success, "
            "execution_time_ms, created_at) VALUES (?, ?, ?, ?, ?, ?)",
            (
                entry.user_id,
                entry.action_type,
                entry.context,
                int(entry.success),
                entry.execution_time_ms,
                entry.created_at.isoformat(),
            ),
        )
