"""OpenAI-based intent classification."""

from __future__ import annotations

import logging

from openai import AsyncOpenAI
from pydantic import ValidationError

from mpbf_assistant.config.settings import Settings
from mpbf_assistant.engine.action_registry import ActionRegistry
from mpbf_assistant.exceptions import ClassificationError
from mpbf_assistant.models.intent import IntentResult
from mpbf_assistant.parser.prompt_templates import SYSTEM_PROMPT, USER_PROMPT_TEMPLATE
from mpbf_assistant.parser.schemas import INTENT_JSON_SCHEMA, IntentPayload

logger = logging.getLogger(__name__)


class IntentClassifier:
    def __init__(
        self,
        settings: Settings,
        client: AsyncOpenAI | None = None,
        registry: ActionRegistry | None = None,
    ) -> None:
        self._settings = settings
        self._client = client or AsyncOpenAI(api_key=settings.openai_api_key)
        self._registry = registry or ActionRegistry()

    async def classify(self, message: str, context: str = "") -> IntentResult:
        """Best-effort classification; failures degrade to an unknown intent."""
        try:
            return await self._classify(message, context)
        except ClassificationError as exc:
            logger.warning("Classification failed: %s", exc)
            return IntentResult.unknown(message, reasoning=str(exc))

    async def _classify(self, message: str, context: str) -> IntentResult:
        if not message.strip():
            raise ClassificationError("Empty message")

        user_prompt = USER_PROMPT_TEMPLATE.format(
            context=context or "No KPI snapshot available.",
            message=message,
        )

        try:
            response = await self._client.chat.completions.create(
                model=self._settings.openai_model,
                messages=[
                    {
                        "role": "system",
                        "content": SYSTEM_PROMPT.format(catalogue=self._registry.catalogue()),
                    },
                    {"role": "user", "content": user_prompt},
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": INTENT_JSON_SCHEMA,
                },
                temperature=0.0,
            )
        except Exception as exc:
            raise ClassificationError(f"OpenAI API error: {exc}") from exc

        try:
            raw = response.choices[0].message.content
        except (AttributeError, IndexError) as exc:
            raise ClassificationError(f"Unexpected OpenAI response shape: {exc}") from exc
        if not raw:
            raise ClassificationError("OpenAI returned empty content")

        try:
            payload = IntentPayload.model_validate_json(raw)
        except ValidationError as exc:
            raise ClassificationError(f"Malformed intent payload: {exc}") from exc

        parameters = {
            p.name.strip(): p.value.strip()
            for p in payload.parameters
            if p.name.strip() and p.value.strip()
        }

        return IntentResult(
            raw_message=message,
            intent=payload.intent,
            action=payload.action.strip(),
            requires_database=payload.requires_database,
            requests_report=payload.requests_report,
            report_type=payload.report_type or None,
            parameters=parameters,
            confidence=min(max(payload.confidence, 0.0), 1.0),
            missing_info=[m for m in payload.missing_info if m.strip()],
            reasoning=payload.reasoning,
        )
