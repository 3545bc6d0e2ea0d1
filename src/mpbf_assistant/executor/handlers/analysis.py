"""Analysis handler — read-only KPI summaries, counts and text reports."""

from __future__ import annotations

from typing import Any

from mpbf_assistant.engine.action_registry import ActionName, ActionSpec
from mpbf_assistant.exceptions import UnknownActionError
from mpbf_assistant.executor.handlers.base import BaseHandler, optional
from mpbf_assistant.models.action import DatabaseOperation, Language
from mpbf_assistant.parser.language import localize
from mpbf_assistant.storage.context import KpiContext

REPORT_TYPES = ("production", "quality", "maintenance", "sales")

_REPORT_ALIASES = {
    "إنتاج": "production",
    "الإنتاج": "production",
    "جودة": "quality",
    "الجودة": "quality",
    "صيانة": "maintenance",
    "الصيانة": "maintenance",
    "مبيعات": "sales",
    "المبيعات": "sales",
    "orders": "sales",
}


def normalize_report_type(value: Any) -> str:
    text = str(value or "").strip().lower()
    if text in REPORT_TYPES:
        return text
    return _REPORT_ALIASES.get(text, "production")


class AnalysisHandler(BaseHandler):
    async def run(
        self, spec: ActionSpec, parameters: dict[str, Any], language: Language
    ) -> DatabaseOperation:
        if spec.name == ActionName.ANALYZE_PERFORMANCE:
            return await self._analyze(spec, language)
        if spec.name == ActionName.COUNT_CUSTOMERS:
            return await self._count_customers(spec, parameters, language)
        if spec.name == ActionName.GENERATE_REPORT:
            return await self._report(spec, parameters, language)
        raise UnknownActionError(f"AnalysisHandler cannot run {spec.name.value}")

    async def _analyze(self, spec: ActionSpec, language: Language) -> DatabaseOperation:
        stats = await KpiContext(self._db).snapshot()
        message = localize(
            language,
            "تحليل الأداء الحالي:\n"
            f"- الطلبات النشطة: {stats.active_orders}\n"
            f"- معدل الإنتاج: {stats.production_rate}%\n"
            f"- نسبة الجودة: {stats.quality_score}%\n"
            f"- نسبة الهدر: {stats.waste_percentage}%\n"
            f"- المكائن العاملة: {stats.active_machines}\n"
            f"- المكائن في الصيانة: {stats.maintenance_machines}",
            "Current performance:\n"
            f"- Active orders: {stats.active_orders}\n"
            f"- Production rate: {stats.production_rate}%\n"
            f"- Quality score: {stats.quality_score}%\n"
            f"- Waste percentage: {stats.waste_percentage}%\n"
            f"- Active machines: {stats.active_machines}\n"
            f"- Machines in maintenance: {stats.maintenance_machines}",
        )
        return self.ok(spec, message, result=stats.model_dump())

    async def _count_customers(
        self, spec: ActionSpec, parameters: dict[str, Any], language: Language
    ) -> DatabaseOperation:
        city = optional(parameters, "city")
        if city is None:
            count = await self._db.scalar("SELECT COUNT(*) FROM customers")
            message = localize(
                language,
                f"عدد العملاء المسجلين: {count}",
                f"Registered customers: {count}",
            )
            conditions = None
        else:
            city = str(city).strip()
            count = await self._db.scalar(
                "SELECT COUNT(*) FROM customers WHERE city = ?", (city,)
            )
            message = localize(
                language,
                f"عدد العملاء في {city}: {count}",
                f"Customers in {city}: {count}",
            )
            conditions = {"city": city}
        return self.ok(spec, message, conditions=conditions, result={"count": count or 0})

    async def _report(
        self, spec: ActionSpec, parameters: dict[str, Any], language: Language
    ) -> DatabaseOperation:
        report_type = normalize_report_type(
            optional(parameters, "report_type", parameters.get("type"))
        )
        if report_type == "production":
            rows = await self._db.fetch_all(
                "SELECT status, COUNT(*) AS total, SUM(quantity_kg) AS quantity "
                "FROM production_orders GROUP BY status ORDER BY status"
            )
            title = localize(language, "تقرير الإنتاج", "Production report")
            lines = [
                localize(
                    language,
                    f"- {r['status']}: {r['total']} أمر ({r['quantity'] or 0} كغ)",
                    f"- {r['status']}: {r['total']} orders ({r['quantity'] or 0} kg)",
                )
                for r in rows
            ]
        elif report_type == "quality":
            rows = await self._db.fetch_all(
                "SELECT result, COUNT(*) AS total, AVG(score) AS score "
                "FROM quality_checks GROUP BY result ORDER BY result"
            )
            title = localize(language, "تقرير الجودة", "Quality report")
            lines = [
                localize(
                    language,
                    f"- {r['result']}: {r['total']} فحص (متوسط الدرجة {round(r['score'] or 0, 1)})",
                    f"- {r['result']}: {r['total']} checks (average score {round(r['score'] or 0, 1)})",
                )
                for r in rows
            ]
        elif report_type == "maintenance":
            rows = await self._db.fetch_all(
                "SELECT status, priority, COUNT(*) AS total FROM maintenance_requests "
                "GROUP BY status, priority ORDER BY status, priority"
            )
            title = localize(language, "تقرير الصيانة", "Maintenance report")
            lines = [
                localize(
                    language,
                    f"- {r['status']} / {r['priority']}: {r['total']} بلاغ",
                    f"- {r['status']} / {r['priority']}: {r['total']} requests",
                )
                for r in rows
            ]
        else:
            rows = await self._db.fetch_all(
                "SELECT status, COUNT(*) AS total FROM orders GROUP BY status ORDER BY status"
            )
            title = localize(language, "تقرير المبيعات", "Sales report")
            lines = [
                localize(
                    language,
                    f"- {r['status']}: {r['total']} طلب",
                    f"- {r['status']}: {r['total']} orders",
                )
                for r in rows
            ]

        if not lines:
            lines = [localize(language, "- لا توجد بيانات بعد.", "- No data yet.")]
        return self.ok(
            spec,
            "\n".join([title + ":"] + lines),
            conditions={"report_type": report_type},
            result={"report_type": report_type, "rows": rows},
        )
