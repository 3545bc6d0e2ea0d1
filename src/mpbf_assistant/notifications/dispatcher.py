"""Fire-and-forget notifications after successful mutating actions."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from mpbf_assistant.engine.action_registry import ActionName, ActionRegistry, render_template
from mpbf_assistant.memory.models import NotificationRecord
from mpbf_assistant.models.action import Language
from mpbf_assistant.parser.language import localize
from mpbf_assistant.storage.database import FactoryDatabase

logger = logging.getLogger(__name__)

# action -> (Arabic title, English title, Arabic body, English body, priority)
_TEMPLATES: dict[ActionName, tuple[str, str, str, str, str]] = {
    ActionName.CREATE_ORDER: (
        "طلب جديد",
        "New order",
        "تم إنشاء الطلب {order_number}",
        "Order {order_number} was created",
        "normal",
    ),
    ActionName.UPDATE_ORDER: (
        "تحديث طلب",
        "Order updated",
        "تم تحديث حالة الطلب {order_number} إلى {status}",
        "Order {order_number} is now {status}",
        "normal",
    ),
    ActionName.DELETE_ORDER: (
        "حذف طلب",
        "Order deleted",
        "تم حذف الطلب {order_number}",
        "Order {order_number} was deleted",
        "high",
    ),
    ActionName.CREATE_PRODUCTION_ORDER: (
        "أمر إنتاج جديد",
        "New production order",
        "تم إنشاء أمر الإنتاج {production_order_number}",
        "Production order {production_order_number} was created",
        "normal",
    ),
    ActionName.CREATE_MAINTENANCE: (
        "بلاغ صيانة",
        "Maintenance request",
        "بلاغ صيانة جديد للمكينة {machine_id}",
        "New maintenance request for machine {machine_id}",
        "high",
    ),
}

_CONTEXT_ID_KEYS = ("order_number", "production_order_number", "id")


class NotificationDispatcher:
    def __init__(
        self,
        db: FactoryDatabase,
        registry: ActionRegistry | None = None,
        enabled: bool = True,
    ) -> None:
        self._db = db
        self._registry = registry or ActionRegistry()
        self._enabled = enabled
        self._tasks: set[asyncio.Task[None]] = set()

    def should_notify(self, action: str) -> bool:
        spec = self._registry.resolve(action)
        return self._enabled and spec is not None and spec.notify

    def build(
        self, action: str, result_data: dict[str, Any], language: Language = "ar"
    ) -> NotificationRecord | None:
        spec = self._registry.resolve(action)
        if spec is None or spec.name not in _TEMPLATES:
            return None
        title_ar, title_en, body_ar, body_en, priority = _TEMPLATES[spec.name]
        context_id = next(
            (str(result_data[k]) for k in _CONTEXT_ID_KEYS if result_data.get(k) is not None),
            "",
        )
        return NotificationRecord(
            title=localize(language, title_ar, title_en),
            message=render_template(localize(language, body_ar, body_en), result_data),
            priority=priority,
            context_type=spec.table,
            context_id=context_id,
        )

    def maybe_notify(
        self, action: str, result_data: dict[str, Any] | None, language: Language = "ar"
    ) -> None:
        """Schedule a notification for allow-listed actions and return immediately."""
        if not self.should_notify(action):
            return
        task = asyncio.get_running_loop().create_task(
            self._dispatch(action, dict(result_data or {}), language)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _dispatch(self, action: str, result_data: dict[str, Any], language: Language) -> None:
        try:
            record = self.build(action, result_data, language)
            if record is None:
                return
            await self._db.execute(
                "INSERT INTO notifications (title, message, priority, context_type, "
                "context_id, created_at) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    record.title,
                    record.message,
                    record.priority,
                    record.context_type,
                    record.context_id,
                    record.created_at.isoformat(),
                ),
            )
            logger.debug("Notification queued for %s", action)
        except Exception:
            logger.exception("Notification for %s failed", action)

    async def drain(self) -> None:
        """Wait for every scheduled notification to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
