"""Machine handler — machine registration and maintenance requests."""

from __future__ import annotations

from typing import Any

from mpbf_assistant.engine.action_registry import ActionName, ActionSpec
from mpbf_assistant.exceptions import UnknownActionError
from mpbf_assistant.executor.handlers.base import BaseHandler, now_iso, optional
from mpbf_assistant.models.action import DatabaseOperation, Language
from mpbf_assistant.parser.language import localize

MACHINE_TYPES = ("extruder", "printer", "cutter", "quality_check")

_TYPE_ALIASES = {
    "film": "extruder",
    "فيلم": "extruder",
    "بثق": "extruder",
    "نفخ": "extruder",
    "printing": "printer",
    "طباعة": "printer",
    "cutting": "cutter",
    "قص": "cutter",
    "quality": "quality_check",
    "جودة": "quality_check",
}


def normalize_machine_type(value: Any) -> str | None:
    text = str(value).strip().lower()
    if text in MACHINE_TYPES:
        return text
    return _TYPE_ALIASES.get(text)


class MachineHandler(BaseHandler):
    async def run(
        self, spec: ActionSpec, parameters: dict[str, Any], language: Language
    ) -> DatabaseOperation:
        if spec.name == ActionName.ADD_MACHINE:
            return await self._add_machine(spec, parameters, language)
        if spec.name == ActionName.CREATE_MAINTENANCE:
            return await self._create_maintenance(spec, parameters, language)
        raise UnknownActionError(f"MachineHandler cannot run {spec.name.value}")

    async def _add_machine(
        self, spec: ActionSpec, parameters: dict[str, Any], language: Language
    ) -> DatabaseOperation:
        machine_type = normalize_machine_type(parameters["type"])
        if machine_type is None:
            return self.failed(
                spec,
                localize(
                    language,
                    f"نوع مكينة غير صالح: {parameters['type']}. الأنواع المسموحة: {'، '.join(MACHINE_TYPES)}",
                    f"Invalid machine type: {parameters['type']}. Allowed: {', '.join(MACHINE_TYPES)}",
                ),
                data=dict(parameters),
            )

        machine_id = self.identifier(spec, parameters)
        data = {
            "id": machine_id,
            "name": str(parameters["name"]).strip(),
            "name_ar": optional(parameters, "name_ar"),
            "type": machine_type,
            "section_id": optional(parameters, "section_id"),
        }
        await self._db.execute(
            "INSERT INTO machines (id, name, name_ar, type, section_id, status) "
            "VALUES (?, ?, ?, ?, ?, 'active')",
            (data["id"], data["name"], data["name_ar"], data["type"], data["section_id"]),
        )
        return self.ok(
            spec,
            localize(
                language,
                f"تمت إضافة المكينة {data['name']} برمز {machine_id}.",
                f"Machine {data['name']} added with code {machine_id}.",
            ),
            data=data,
            result={"id": machine_id, "name": data["name"]},
        )

    async def _create_maintenance(
        self, spec: ActionSpec, parameters: dict[str, Any], language: Language
    ) -> DatabaseOperation:
        data = {
            "machine_id": str(parameters["machine_id"]).strip(),
            "request_type": optional(parameters, "request_type", "general"),
            "description": str(parameters["description"]).strip(),
            "priority": optional(parameters, "priority", "medium"),
            "requested_by": optional(parameters, "requested_by"),
        }
        result = await self._db.execute(
            "INSERT INTO maintenance_requests (machine_id, request_type, description, priority, "
            "status, requested_by, created_at) VALUES (?, ?, ?, ?, 'pending', ?, ?)",
            (
                data["machine_id"],
                data["request_type"],
                data["description"],
                data["priority"],
                data["requested_by"],
                now_iso(),
            ),
        )
        return self.ok(
            spec,
            localize(
                language,
                f"تم تسجيل بلاغ صيانة ({result.lastrowid}) للمكينة {data['machine_id']}.",
                f"Maintenance request created (ID {result.lastrowid}) for machine {data['machine_id']}.",
            ),
            data=data,
            result={
                "id": result.lastrowid,
                "machine_id": data["machine_id"],
                "priority": data["priority"],
            },
        )
