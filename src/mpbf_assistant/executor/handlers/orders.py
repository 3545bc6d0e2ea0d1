"""Order handler — create, update and delete customer orders."""

from __future__ import annotations

from typing import Any

from mpbf_assistant.engine.action_registry import ActionName, ActionSpec
from mpbf_assistant.exceptions import UnknownActionError
from mpbf_assistant.executor.handlers.base import BaseHandler, now_iso, optional
from mpbf_assistant.models.action import DatabaseOperation, Language
from mpbf_assistant.parser.language import localize

ORDER_STATUSES = ("waiting", "in_production", "paused", "cancelled", "completed")

_STATUS_ALIASES = {
    "pending": "waiting",
    "قيد الانتظار": "waiting",
    "انتظار": "waiting",
    "in production": "in_production",
    "قيد الإنتاج": "in_production",
    "paused": "paused",
    "متوقف": "paused",
    "canceled": "cancelled",
    "ملغي": "cancelled",
    "ملغى": "cancelled",
    "done": "completed",
    "مكتمل": "completed",
}


def normalize_status(value: Any) -> str | None:
    text = str(value).strip().lower()
    if text in ORDER_STATUSES:
        return text
    return _STATUS_ALIASES.get(text)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def order_condition(parameters: dict[str, Any]) -> tuple[str, Any]:
    """Column and value identifying one order (numeric id or order number)."""
    order_id = optional(parameters, "id")
    if order_id is not None and str(order_id).strip().isdigit():
        return "id", int(str(order_id).strip())
    order_number = optional(parameters, "order_number", order_id)
    return "order_number", str(order_number).strip()


class OrderHandler(BaseHandler):
    async def run(
        self, spec: ActionSpec, parameters: dict[str, Any], language: Language
    ) -> DatabaseOperation:
        if spec.name == ActionName.CREATE_ORDER:
            return await self._create(spec, parameters, language)
        if spec.name == ActionName.UPDATE_ORDER:
            return await self._update(spec, parameters, language)
        if spec.name == ActionName.DELETE_ORDER:
            return await self._delete(spec, parameters, language)
        raise UnknownActionError(f"OrderHandler cannot run {spec.name.value}")

    async def _resolve_customer(self, parameters: dict[str, Any]) -> str | None:
        customer_id = optional(parameters, "customer_id")
        if customer_id is not None:
            return str(customer_id).strip()
        name = str(optional(parameters, "customer_name", "")).strip()
        pattern = f"%{_escape_like(name)}%"
        row = await self._db.fetch_one(
            "SELECT id FROM customers WHERE name = ? OR name_ar = ? "
            "OR name LIKE ? ESCAPE '\\' OR name_ar LIKE ? ESCAPE '\\' "
            "ORDER BY created_at LIMIT 1",
            (name, name, pattern, pattern),
        )
        return row["id"] if row else None

    async def _create(
        self, spec: ActionSpec, parameters: dict[str, Any], language: Language
    ) -> DatabaseOperation:
        customer_id = await self._resolve_customer(parameters)
        if customer_id is None:
            name = parameters.get("customer_name")
            return self.failed(
                spec,
                localize(
                    language,
                    f"لم أجد عميلاً باسم {name}.",
                    f"No customer found named {name}.",
                ),
                data=dict(parameters),
            )

        order_number = self.identifier(spec, parameters)
        data = {
            "order_number": order_number,
            "customer_id": customer_id,
            "status": "waiting",
            "delivery_date": str(parameters["delivery_date"]).strip(),
            "notes": optional(parameters, "notes", ""),
            "created_by": optional(parameters, "created_by"),
        }
        result = await self._db.execute(
            "INSERT INTO orders (order_number, customer_id, status, delivery_date, notes, created_by, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                data["order_number"],
                data["customer_id"],
                data["status"],
                data["delivery_date"],
                data["notes"],
                data["created_by"],
                now_iso(),
            ),
        )
        return self.ok(
            spec,
            localize(
                language,
                f"تم إنشاء الطلب بنجاح (رقم {order_number})",
                f"Order created successfully (No. {order_number})",
            ),
            data=data,
            result={"id": result.lastrowid, "order_number": order_number, "customer_id": customer_id},
        )

    async def _update(
        self, spec: ActionSpec, parameters: dict[str, Any], language: Language
    ) -> DatabaseOperation:
        column, value = order_condition(parameters)
        status = normalize_status(parameters["status"])
        if status is None:
            return self.failed(
                spec,
                localize(
                    language,
                    f"حالة غير صالحة: {parameters['status']}. الحالات المسموحة: {'، '.join(ORDER_STATUSES)}",
                    f"Invalid status: {parameters['status']}. Allowed: {', '.join(ORDER_STATUSES)}",
                ),
                conditions={column: value},
            )

        # column comes from order_condition, never from user input
        result = await self._db.execute(
            f"UPDATE orders SET status = ? WHERE {column} = ?",
            (status, value),
        )
        if result.rowcount == 0:
            return self._not_found(spec, column, value, language)
        return self.ok(
            spec,
            localize(
                language,
                f"تم تحديث حالة الطلب رقم {value} إلى {status}",
                f"Order {value} updated to {status}.",
            ),
            data={"status": status},
            conditions={column: value},
            result={"order_number": value, "status": status},
        )

    async def _delete(
        self, spec: ActionSpec, parameters: dict[str, Any], language: Language
    ) -> DatabaseOperation:
        column, value = order_condition(parameters)
        result = await self._db.execute(f"DELETE FROM orders WHERE {column} = ?", (value,))
        if result.rowcount == 0:
            return self._not_found(spec, column, value, language)
        return self.ok(
            spec,
            localize(language, f"تم حذف الطلب رقم {value}.", f"Order {value} deleted."),
            conditions={column: value},
            result={"order_number": value},
        )

    def _not_found(
        self, spec: ActionSpec, column: str, value: Any, language: Language
    ) -> DatabaseOperation:
        return self.failed(
            spec,
            localize(language, f"لم أجد الطلب رقم {value}.", f"Order {value} not found."),
            conditions={column: value},
        )
