"""Brutal tests for intent_classifier, schemas, and prompt_templates."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from mpbf_assistant.models.intent import IntentType
from mpbf_assistant.parser.intent_classifier import IntentClassifier
from mpbf_assistant.parser.prompt_templates import (
    EXTRACTION_SYSTEM_PROMPT,
    GENERAL_SYSTEM_PROMPT,
    SYSTEM_PROMPT,
    USER_PROMPT_TEMPLATE,
)
from mpbf_assistant.parser.schemas import INTENT_JSON_SCHEMA, IntentPayload, extraction_schema


class TestPromptTemplates:
    def test_system_prompt_lists_intents(self):
        for intent in ("query", "create", "update", "delete", "report", "help", "unknown"):
            assert intent in SYSTEM_PROMPT
        assert "{catalogue}" in SYSTEM_PROMPT

    def test_user_prompt_template_renders(self):
        rendered = USER_PROMPT_TEMPLATE.format(context="KPIs here", message="اعمل طلب جديد")
        assert "KPIs here" in rendered
        assert "اعمل طلب جديد" in rendered

    def test_extraction_prompt_placeholders(self):
        rendered = EXTRACTION_SYSTEM_PROMPT.format(entity="customer", fields="- name: x")
        assert "customer" in rendered
        assert "- name: x" in rendered

    def test_general_prompt_language(self):
        assert "Arabic" in GENERAL_SYSTEM_PROMPT.format(language_name="Arabic")


class TestSchemas:
    def test_schema_structure(self):
        assert INTENT_JSON_SCHEMA["name"] == "intent_result"
        assert INTENT_JSON_SCHEMA["strict"] is True
        schema = INTENT_JSON_SCHEMA["schema"]
        assert set(schema["required"]) == set(schema["properties"])
        assert schema["additionalProperties"] is False

    def test_schema_intent_enum(self):
        enum_vals = INTENT_JSON_SCHEMA["schema"]["properties"]["intent"]["enum"]
        assert set(enum_vals) == {t.value for t in IntentType}

    def test_parameters_are_name_value_pairs(self):
        items = INTENT_JSON_SCHEMA["schema"]["properties"]["parameters"]["items"]
        assert items["required"] == ["name", "value"]

    def test_payload_rejects_unknown_intent(self):
        with pytest.raises(Exception):
            IntentPayload.model_validate({"intent": "dance", "confidence": 0.9})

    def test_extraction_schema_all_nullable(self):
        schema = extraction_schema("customer_fields", {"name": "n", "phone": "p"})
        assert schema["strict"] is True
        props = schema["schema"]["properties"]
        assert props["name"]["type"] == ["string", "null"]
        assert schema["schema"]["required"] == ["name", "phone"]


class TestIntentClassifier:
    @pytest.fixture
    def classifier(self, mock_settings, mock_client):
        return IntentClassifier(mock_settings, client=mock_client)

    @pytest.mark.asyncio
    async def test_classify_create_customer(self, classifier, mock_openai_response, intent_payload):
        classifier._client.chat.completions.create = AsyncMock(
            return_value=mock_openai_response(
                intent_payload(
                    action="create_customer",
                    parameters={"name": "شركة النور", "phone": "0501234567"},
                    confidence=0.95,
                )
            )
        )
        result = await classifier.classify("سجل عميل اسمه شركة النور رقم 0501234567")
        assert result.intent == IntentType.CREATE
        assert result.action == "create_customer"
        assert result.parameters == {"name": "شركة النور", "phone": "0501234567"}
        assert result.confidence == 0.95

    @pytest.mark.asyncio
    async def test_request_shape(self, classifier, mock_openai_response, intent_payload):
        classifier._client.chat.completions.create = AsyncMock(
            return_value=mock_openai_response(intent_payload(intent="help", confidence=0.8))
        )
        await classifier.classify("help", context="Active orders: 3")
        kwargs = classifier._client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["temperature"] == 0.0
        assert kwargs["response_format"]["type"] == "json_schema"
        assert "create_customer" in kwargs["messages"][0]["content"]
        assert "Active orders: 3" in kwargs["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_blank_parameters_dropped(self, classifier, mock_openai_response, intent_payload):
        classifier._client.chat.completions.create = AsyncMock(
            return_value=mock_openai_response(
                intent_payload(action="create_order", parameters={"customer_name": "  ", "notes": " urgent "})
            )
        )
        result = await classifier.classify("new order")
        assert result.parameters == {"notes": "urgent"}

    @pytest.mark.asyncio
    async def test_confidence_clamped(self, classifier, mock_openai_response, intent_payload):
        classifier._client.chat.completions.create = AsyncMock(
            return_value=mock_openai_response(intent_payload(action="count_customers", confidence=3.0))
        )
        result = await classifier.classify("how many customers")
        assert result.confidence == 1.0

    @pytest.mark.asyncio
    async def test_empty_message_skips_api(self, classifier):
        result = await classifier.classify("   ")
        assert result.intent == IntentType.UNKNOWN
        classifier._client.chat.completions.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_api_error_degrades(self, classifier):
        classifier._client.chat.completions.create = AsyncMock(side_effect=Exception("timeout"))
        result = await classifier.classify("اعمل طلب")
        assert result.intent == IntentType.UNKNOWN
        assert result.confidence == 0.0
        assert "timeout" in result.reasoning

    @pytest.mark.asyncio
    async def test_non_json_degrades(self, classifier, mock_openai_response):
        classifier._client.chat.completions.create = AsyncMock(
            return_value=mock_openai_response("Sure! I think you want an order.")
        )
        result = await classifier.classify("order")
        assert result.intent == IntentType.UNKNOWN
        assert result.confidence == 0.0

    @pytest.mark.asyncio
    async def test_schema_invalid_degrades(self, classifier, mock_openai_response):
        classifier._client.chat.completions.create = AsyncMock(
            return_value=mock_openai_response({"intent": "create", "confidence": "very"})
        )
        result = await classifier.classify("order")
        assert result.intent == IntentType.UNKNOWN

    @pytest.mark.asyncio
    async def test_empty_content_degrades(self, classifier, mock_openai_response):
        classifier._client.chat.completions.create = AsyncMock(
            return_value=mock_openai_response("")
        )
        result = await classifier.classify("order")
        assert result.intent == IntentType.UNKNOWN

    @pytest.mark.asyncio
    async def test_no_choices_degrades(self, classifier):
        response = MagicMock()
        response.choices = []
        classifier._client.chat.completions.create = AsyncMock(return_value=response)
        result = await classifier.classify("order")
        assert result.intent == IntentType.UNKNOWN
