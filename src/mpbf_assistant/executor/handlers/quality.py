"""Quality handler — quality check records."""

from __future__ import annotations

from typing import Any

from mpbf_assistant.engine.action_registry import ActionName, ActionSpec
from mpbf_assistant.exceptions import UnknownActionError
from mpbf_assistant.executor.handlers.base import BaseHandler, now_iso, optional, to_int
from mpbf_assistant.models.action import DatabaseOperation, Language
from mpbf_assistant.parser.language import localize

_RESULTS = {"pass": "pass", "fail": "fail", "ناجح": "pass", "نجح": "pass", "راسب": "fail", "فشل": "fail"}


class QualityHandler(BaseHandler):
    async def run(
        self, spec: ActionSpec, parameters: dict[str, Any], language: Language
    ) -> DatabaseOperation:
        if spec.name != ActionName.CREATE_QUALITY_CHECK:
            raise UnknownActionError(f"QualityHandler cannot run {spec.name.value}")

        raw_result = str(optional(parameters, "result", "pass")).strip().lower()
        result_value = _RESULTS.get(raw_result)
        if result_value is None:
            return self.failed(
                spec,
                localize(
                    language,
                    f"نتيجة فحص غير صالحة: {raw_result}",
                    f"Invalid check result: {raw_result}",
                ),
                data=dict(parameters),
            )

        data = {
            "target_type": str(parameters["target_type"]).strip(),
            "target_id": to_int(parameters["target_id"], "target_id"),
            "result": result_value,
            "score": to_int(optional(parameters, "score", 100), "score"),
            "notes": optional(parameters, "notes", ""),
            "checked_by": optional(parameters, "checked_by"),
        }
        result = await self._db.execute(
            "INSERT INTO quality_checks (target_type, target_id, result, score, notes, checked_by, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                data["target_type"],
                data["target_id"],
                data["result"],
                data["score"],
                data["notes"],
                data["checked_by"],
                now_iso(),
            ),
        )
        return self.ok(
            spec,
            localize(
                language,
                f"تم تسجيل فحص جودة ({result.lastrowid}).",
                f"Quality check recorded (ID {result.lastrowid}).",
            ),
            data=data,
            result={"id": result.lastrowid, "result": result_value},
        )
