"""Free-text answers for commands that map to no registered action."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import aiosqlite
from openai import AsyncOpenAI

from mpbf_assistant.config.settings import Settings
from mpbf_assistant.models.action import Language
from mpbf_assistant.parser.language import localize
from mpbf_assistant.parser.prompt_templates import (
    GENERAL_SYSTEM_PROMPT,
    GENERAL_USER_PROMPT_TEMPLATE,
)
from mpbf_assistant.storage.context import KpiContext
from mpbf_assistant.storage.database import FactoryDatabase

logger = logging.getLogger(__name__)

SNAPSHOT_ROWS = 10

# topic -> (keywords, read-only snapshot query)
TOPICS: dict[str, tuple[tuple[str, ...], str]] = {
    "orders": (
        ("طلب", "طلبات", "order"),
        "SELECT order_number, customer_id, status, delivery_date FROM orders "
        "ORDER BY created_at DESC LIMIT ?",
    ),
    "production": (
        ("إنتاج", "انتاج", "أمر إنتاج", "production"),
        "SELECT production_order_number, quantity_kg, final_quantity_kg, "
        "produced_quantity_kg, status FROM production_orders ORDER BY created_at DESC LIMIT ?",
    ),
    "rolls": (
        ("رول", "رولات", "roll"),
        "SELECT roll_number, weight_kg, stage, status, machine_id FROM rolls "
        "ORDER BY created_at DESC LIMIT ?",
    ),
    "machines": (
        ("مكينة", "مكائن", "ماكينة", "machine"),
        "SELECT id, name, type, status FROM machines ORDER BY id LIMIT ?",
    ),
    "maintenance": (
        ("صيانة", "عطل", "maintenance", "repair"),
        "SELECT machine_id, description, priority, status FROM maintenance_requests "
        "ORDER BY created_at DESC LIMIT ?",
    ),
    "quality": (
        ("جودة", "فحص", "quality", "inspection"),
        "SELECT target_type, target_id, result, score FROM quality_checks "
        "ORDER BY created_at DESC LIMIT ?",
    ),
    "customers": (
        ("عميل", "عملاء", "زبون", "customer", "client"),
        "SELECT id, name, name_ar, city FROM customers ORDER BY created_at DESC LIMIT ?",
    ),
}
STATS_KEYWORDS = ("إحصائيات", "احصائيات", "أداء", "مؤشرات", "stats", "statistics", "performance", "kpi")


def _keyword_matches(keyword: str, text: str) -> bool:
    # Arabic keywords take attached prefixes such as ال, so they match as substrings.
    if not keyword.isascii():
        return keyword in text
    return re.search(rf"\b{re.escape(keyword)}(?:s|es)?\b", text) is not None


def match_topics(message: str) -> list[str]:
    text = message.lower()
    topics = [
        name
        for name, (keywords, _) in TOPICS.items()
        if any(_keyword_matches(k, text) for k in keywords)
    ]
    if any(_keyword_matches(k, text) for k in STATS_KEYWORDS):
        topics.append("stats")
    return topics


class GeneralResponder:
    def __init__(
        self,
        settings: Settings,
        db: FactoryDatabase,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._settings = settings
        self._db = db
        self._client = client or AsyncOpenAI(api_key=settings.openai_api_key)

    async def gather(self, message: str) -> dict[str, Any]:
        """Read-only snapshot of the topics the message mentions (empty if none)."""
        snapshot: dict[str, Any] = {}
        for topic in match_topics(message):
            try:
                if topic == "stats":
                    snapshot[topic] = (await KpiContext(self._db).snapshot()).model_dump()
                else:
                    _, sql = TOPICS[topic]
                    snapshot[topic] = await self._db.fetch_all(sql, (SNAPSHOT_ROWS,))
            except (aiosqlite.Error, RuntimeError) as exc:
                logger.warning("Snapshot of %s unavailable: %s", topic, exc)
        return snapshot

    async def respond(self, message: str, language: Language) -> str:
        snapshot = await self.gather(message)
        data = json.dumps(snapshot, ensure_ascii=False, default=str) if snapshot else "(none)"
        try:
            response = await self._client.chat.completions.create(
                model=self._settings.openai_model,
                messages=[
                    {
                        "role": "system",
                        "content": GENERAL_SYSTEM_PROMPT.format(
                            language_name=localize(language, "Arabic", "English")
                        ),
                    },
                    {
                        "role": "user",
                        "content": GENERAL_USER_PROMPT_TEMPLATE.format(
                            data=data, message=message
                        ),
                    },
                ],
                max_tokens=500,
                temperature=0.7,
            )
            answer = response.choices[0].message.content
        except Exception as exc:
            logger.warning("General answer failed: %s", exc)
            answer = None

        if answer and answer.strip():
            return answer.strip()
        return self.fallback(snapshot, language)

    @staticmethod
    def fallback(snapshot: dict[str, Any], language: Language) -> str:
        if "stats" in snapshot:
            stats = snapshot["stats"]
            return localize(
                language,
                f"بناءً على البيانات الحالية، معدل الإنتاج {stats['production_rate']}% "
                f"ونسبة الجودة {stats['quality_score']}%.",
                f"Based on current data, the production rate is {stats['production_rate']}% "
                f"and the quality score is {stats['quality_score']}%.",
            )
        if snapshot:
            counts = ", ".join(f"{topic}: {len(rows)}" for topic, rows in snapshot.items())
            return localize(
                language,
                f"هذه آخر السجلات المتوفرة ({counts}). يمكنك طلب تفاصيل أكثر.",
                f"Here are the latest available records ({counts}). Ask for more details.",
            )
        return localize(
            language,
            "شكراً لك على استفسارك. يمكنني مساعدتك في الطلبات والإنتاج والرولات "
            "والمكائن والصيانة والجودة والعملاء. ما الذي تريد معرفته؟",
            "Thanks for your question. I can help with orders, production, rolls, "
            "machines, maintenance, quality and customers. What would you like to know?",
        )
