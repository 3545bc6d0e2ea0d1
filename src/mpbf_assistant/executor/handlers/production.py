"""Production handler — production (job) orders and film rolls."""

from __future__ import annotations

from typing import Any

from mpbf_assistant.engine.action_registry import ActionName, ActionSpec
from mpbf_assistant.exceptions import UnknownActionError
from mpbf_assistant.executor.handlers.base import (
    BaseHandler,
    now_iso,
    optional,
    to_float,
    to_int,
)
from mpbf_assistant.models.action import DatabaseOperation, Language
from mpbf_assistant.parser.language import localize

DEFAULT_OVERRUN_PERCENTAGE = 5.0


class ProductionHandler(BaseHandler):
    async def run(
        self, spec: ActionSpec, parameters: dict[str, Any], language: Language
    ) -> DatabaseOperation:
        if spec.name == ActionName.CREATE_PRODUCTION_ORDER:
            return await self._create_production_order(spec, parameters, language)
        if spec.name == ActionName.CREATE_ROLL:
            return await self._create_roll(spec, parameters, language)
        raise UnknownActionError(f"ProductionHandler cannot run {spec.name.value}")

    async def _create_production_order(
        self, spec: ActionSpec, parameters: dict[str, Any], language: Language
    ) -> DatabaseOperation:
        quantity = to_float(parameters["quantity_kg"], "quantity_kg")
        overrun = to_float(
            optional(parameters, "overrun_percentage", DEFAULT_OVERRUN_PERCENTAGE),
            "overrun_percentage",
        )
        number = self.identifier(spec, parameters)
        data = {
            "production_order_number": number,
            "order_id": to_int(parameters["order_id"], "order_id"),
            "customer_product_id": to_int(parameters["customer_product_id"], "customer_product_id"),
            "quantity_kg": quantity,
            "overrun_percentage": overrun,
            "final_quantity_kg": round(quantity * (1 + overrun / 100), 2),
        }
        result = await self._db.execute(
            "INSERT INTO production_orders (production_order_number, order_id, customer_product_id, "
            "quantity_kg, overrun_percentage, final_quantity_kg, status, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, 'pending', ?)",
            (
                data["production_order_number"],
                data["order_id"],
                data["customer_product_id"],
                data["quantity_kg"],
                data["overrun_percentage"],
                data["final_quantity_kg"],
                now_iso(),
            ),
        )
        return self.ok(
            spec,
            localize(
                language,
                f"تم إنشاء أمر الإنتاج ({number}) بكمية نهائية {data['final_quantity_kg']} كغ",
                f"Production order {number} created ({data['final_quantity_kg']} kg final quantity)",
            ),
            data=data,
            result={"id": result.lastrowid, "production_order_number": number},
        )

    async def _create_roll(
        self, spec: ActionSpec, parameters: dict[str, Any], language: Language
    ) -> DatabaseOperation:
        number = self.identifier(spec, parameters)
        data = {
            "roll_number": number,
            "production_order_id": to_int(parameters["production_order_id"], "production_order_id"),
            "weight_kg": to_float(parameters["weight_kg"], "weight_kg"),
            "machine_id": str(parameters["machine_id"]).strip(),
            "created_by": optional(parameters, "employee_id"),
        }
        result = await self._db.execute(
            "INSERT INTO rolls (roll_number, production_order_id, weight_kg, stage, status, "
            "machine_id, created_by, created_at) VALUES (?, ?, ?, 'film', 'for_printing', ?, ?, ?)",
            (
                data["roll_number"],
                data["production_order_id"],
                data["weight_kg"],
                data["machine_id"],
                data["created_by"],
                now_iso(),
            ),
        )
        return self.ok(
            spec,
            localize(
                language,
                f"تم تسجيل رول جديد ({number})",
                f"New roll created ({number})",
            ),
            data=data,
            result={"id": result.lastrowid, "roll_number": number, "machine_id": data["machine_id"]},
        )
