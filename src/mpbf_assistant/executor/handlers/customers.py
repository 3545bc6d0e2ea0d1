"""Customer handler — customers and their product definitions."""

from __future__ import annotations

from typing import Any

from mpbf_assistant.engine.action_registry import ActionName, ActionSpec
from mpbf_assistant.exceptions import UnknownActionError
from mpbf_assistant.executor.handlers.base import BaseHandler, now_iso, optional, to_float
from mpbf_assistant.models.action import DatabaseOperation, Language
from mpbf_assistant.parser.language import localize

_TRUTHY = {"true", "yes", "1", "y", "نعم", "مطبوع"}


class CustomerHandler(BaseHandler):
    async def run(
        self, spec: ActionSpec, parameters: dict[str, Any], language: Language
    ) -> DatabaseOperation:
        if spec.name == ActionName.CREATE_CUSTOMER:
            return await self._create_customer(spec, parameters, language)
        if spec.name == ActionName.ADD_CUSTOMER_PRODUCT:
            return await self._add_product(spec, parameters, language)
        raise UnknownActionError(f"CustomerHandler cannot run {spec.name.value}")

    async def _create_customer(
        self, spec: ActionSpec, parameters: dict[str, Any], language: Language
    ) -> DatabaseOperation:
        customer_id = self.identifier(spec, parameters)
        data = {
            "id": customer_id,
            "name": str(parameters["name"]).strip(),
            "name_ar": optional(parameters, "name_ar"),
            "phone": str(parameters["phone"]).strip(),
            "city": optional(parameters, "city"),
            "address": optional(parameters, "address"),
        }
        await self._db.execute(
            "INSERT INTO customers (id, name, name_ar, phone, city, address, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                data["id"],
                data["name"],
                data["name_ar"],
                data["phone"],
                data["city"],
                data["address"],
                now_iso(),
            ),
        )
        return self.ok(
            spec,
            localize(
                language,
                f"تم تسجيل عميل جديد ({data['name']}) برقم {customer_id}.",
                f"New customer created ({data['name']}) with ID {customer_id}.",
            ),
            data=data,
            result={"id": customer_id, "name": data["name"]},
        )

    async def _add_product(
        self, spec: ActionSpec, parameters: dict[str, Any], language: Language
    ) -> DatabaseOperation:
        width = optional(parameters, "width")
        thickness = optional(parameters, "thickness")
        data = {
            "customer_id": str(parameters["customer_id"]).strip(),
            "size_caption": str(parameters["size_caption"]).strip(),
            "width": to_float(width, "width") if width is not None else None,
            "thickness": to_float(thickness, "thickness") if thickness is not None else None,
            "raw_material": optional(parameters, "raw_material"),
            "cutting_unit": optional(parameters, "cutting_unit"),
            "is_printed": str(optional(parameters, "is_printed", "")).strip().lower() in _TRUTHY,
            "notes": optional(parameters, "notes", ""),
        }
        result = await self._db.execute(
            "INSERT INTO customer_products (customer_id, size_caption, width, thickness, raw_material, "
            "cutting_unit, is_printed, notes, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                data["customer_id"],
                data["size_caption"],
                data["width"],
                data["thickness"],
                data["raw_material"],
                data["cutting_unit"],
                int(data["is_printed"]),
                data["notes"],
                now_iso(),
            ),
        )
        return self.ok(
            spec,
            localize(
                language,
                f"تمت إضافة منتج ({data['size_caption']}) للعميل {data['customer_id']} برقم {result.lastrowid}.",
                f"Product {data['size_caption']} added for customer {data['customer_id']} (ID {result.lastrowid}).",
            ),
            data=data,
            result={"id": result.lastrowid, "customer_id": data["customer_id"]},
        )
