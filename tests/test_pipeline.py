"""End-to-end tests for the orchestrator: intent → confirmation → execution → log."""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from mpbf_assistant.main import build_orchestrator
from mpbf_assistant.models.action import ResponseStatus
from mpbf_assistant.models.intent import UserCommand
from mpbf_assistant.parser.language import detect_language

ROUND_TRIP_MESSAGE = "سجل عميل اسمه شركة النور رقم 0501234567"
NOOR = {"name": "شركة النور", "phone": "0501234567"}
NOOR_EXTRACTED = {"name": "شركة النور", "name_ar": None, "phone": "0501234567", "city": None, "address": None}


@pytest_asyncio.fixture
async def orchestrator(mock_settings, mock_client, seeded_db):
    orch = build_orchestrator(settings=mock_settings, client=mock_client, db=seeded_db)
    yield orch
    await orch._notifier.drain()


def llm_replies(client, mock_openai_response, *payloads):
    client.chat.completions.create = AsyncMock(
        side_effect=[mock_openai_response(p) for p in payloads]
    )


async def learning_rows(db):
    return await db.fetch_all("SELECT * FROM learning_records ORDER BY id")


@contextmanager
def spy_database(db):
    """Record (method, sql) for every read and write while still running it."""
    calls: list[tuple[str, str]] = []
    patchers = []
    for name in ("execute", "fetch_all", "fetch_one", "scalar"):
        original = getattr(db, name)

        async def _spy(sql, params=(), _name=name, _original=original):
            calls.append((_name, sql))
            return await _original(sql, params)

        patchers.append(patch.object(db, name, new=_spy))
    for p in patchers:
        p.start()
    try:
        yield calls
    finally:
        for p in patchers:
            p.stop()


class TestRoundTrip:
    @pytest.mark.asyncio
    async def test_create_customer_round_trip(
        self, orchestrator, mock_client, mock_openai_response, intent_payload, seeded_db
    ):
        llm_replies(
            mock_client,
            mock_openai_response,
            intent_payload(action="create_customer", parameters=NOOR, confidence=0.95),
            NOOR_EXTRACTED,
        )
        response = await orchestrator.handle_user_command(
            UserCommand(user_id=1, message=ROUND_TRIP_MESSAGE)
        )
        assert response.needs_confirmation is True
        assert response.status == ResponseStatus.CONFIRM
        pending = response.pending_action
        assert "create_customer" in pending.action
        assert pending.parameters["name"] == "شركة النور"
        assert pending.parameters["phone"] == "0501234567"
        assert await seeded_db.scalar("SELECT COUNT(*) FROM customers") == 2

        result = await orchestrator.confirm_and_execute(1, pending)
        assert result.status == ResponseStatus.SUCCESS
        assert "شركة النور" in result.message
        row = await seeded_db.fetch_one(
            "SELECT * FROM customers WHERE name = ?", ("شركة النور",)
        )
        assert row["phone"] == "0501234567"

    @pytest.mark.asyncio
    async def test_extractor_wins_classifier_fills_gaps(
        self, orchestrator, mock_client, mock_openai_response, intent_payload
    ):
        llm_replies(
            mock_client,
            mock_openai_response,
            intent_payload(action="create_customer", parameters={"name": "النور", "city": "الرياض"}),
            {"name": "شركة النور", "phone": "0501234567"},
        )
        response = await orchestrator.handle_user_command(
            UserCommand(user_id=1, message=ROUND_TRIP_MESSAGE)
        )
        assert response.pending_action.parameters == {
            "name": "شركة النور",
            "city": "الرياض",
            "phone": "0501234567",
        }

    @pytest.mark.asyncio
    async def test_free_text_cannot_confirm(
        self, orchestrator, mock_client, mock_openai_response, intent_payload, seeded_db
    ):
        llm_replies(
            mock_client,
            mock_openai_response,
            intent_payload(intent="help", confidence=0.9),
            "نعم",
        )
        response = await orchestrator.handle_user_command(UserCommand(user_id=1, message="نعم"))
        assert response.needs_confirmation is False
        assert response.pending_action is None
        assert await seeded_db.scalar("SELECT COUNT(*) FROM customers") == 2


class TestMissingFields:
    @pytest.mark.asyncio
    async def test_new_order_without_details(
        self, orchestrator, mock_client, mock_openai_response, intent_payload
    ):
        llm_replies(
            mock_client,
            mock_openai_response,
            intent_payload(action="create_order"),
            {"order_number": None, "customer_id": None, "customer_name": None, "delivery_date": None},
        )
        response = await orchestrator.handle_user_command(
            UserCommand(user_id=1, message="اعمل طلب جديد")
        )
        assert response.needs_confirmation is False
        assert response.pending_action is None
        assert response.status == ResponseStatus.CLARIFICATION
        assert "معرف العميل أو اسمه" in response.message
        assert "تاريخ التسليم" in response.message
        assert response.missing_fields == ["معرف العميل أو اسمه", "تاريخ التسليم"]
        assert "CID001" in response.message

    @pytest.mark.asyncio
    async def test_classifier_missing_info_used_when_registry_satisfied(
        self, orchestrator, mock_client, mock_openai_response, intent_payload
    ):
        llm_replies(
            mock_client,
            mock_openai_response,
            intent_payload(action="create_customer", parameters=NOOR, missing_info=["المدينة"]),
            {},
        )
        response = await orchestrator.handle_user_command(
            UserCommand(user_id=1, message=ROUND_TRIP_MESSAGE)
        )
        assert response.status == ResponseStatus.CLARIFICATION
        assert response.missing_fields == ["المدينة"]


class TestUnknownCommands:
    @pytest.mark.asyncio
    async def test_weather_question(
        self, orchestrator, mock_client, mock_openai_response, intent_payload, seeded_db
    ):
        with spy_database(seeded_db) as kpi_calls:
            await orchestrator._context.format_context()
        kpi_queries = {sql for _, sql in kpi_calls}

        llm_replies(
            mock_client,
            mock_openai_response,
            intent_payload(intent="unknown", confidence=0.9),
            "I can't check the weather, but I can help with factory orders.",
        )
        with spy_database(seeded_db) as calls:
            response = await orchestrator.handle_user_command(
                UserCommand(user_id=1, message="What's the weather today?")
            )
        assert response.needs_confirmation is False
        assert response.status == ResponseStatus.INFO
        assert response.message == "I can't check the weather, but I can help with factory orders."
        # Only the KPI snapshot fed to the classifier reads the database.
        assert calls
        assert {method for method, _ in calls} <= {"scalar", "fetch_one"}
        assert {sql for _, sql in calls} <= kpi_queries

    @pytest.mark.asyncio
    async def test_weather_question_without_kpi_context(
        self, orchestrator, mock_client, mock_openai_response, intent_payload, seeded_db
    ):
        llm_replies(
            mock_client,
            mock_openai_response,
            intent_payload(intent="unknown", confidence=0.9),
            "I can't check the weather.",
        )
        with patch.object(orchestrator._context, "format_context", new=AsyncMock(return_value="")), \
                spy_database(seeded_db) as calls:
            await orchestrator.handle_user_command(
                UserCommand(user_id=1, message="What's the weather today?")
            )
        assert calls == []

    @pytest.mark.asyncio
    async def test_low_confidence_not_understood(
        self, orchestrator, mock_client, mock_openai_response, intent_payload
    ):
        llm_replies(
            mock_client,
            mock_openai_response,
            intent_payload(action="delete_order", parameters={"order_number": "ORD-001"}, confidence=0.3),
        )
        response = await orchestrator.handle_user_command(UserCommand(user_id=1, message="delete it?"))
        assert response.pending_action is None
        assert response.message == "Sorry, I didn't understand your request. Could you rephrase it?"

    @pytest.mark.asyncio
    async def test_classifier_outage_not_understood_arabic(self, orchestrator, mock_client):
        mock_client.chat.completions.create = AsyncMock(side_effect=Exception("timeout"))
        response = await orchestrator.handle_user_command(UserCommand(user_id=1, message="اعمل طلب"))
        assert response.status == ResponseStatus.INFO
        assert response.message == "عذراً، لم أفهم طلبك. هل يمكنك إعادة صياغته؟"

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_generic_error(
        self, orchestrator, mock_client, mock_openai_response, intent_payload
    ):
        llm_replies(
            mock_client,
            mock_openai_response,
            intent_payload(action="create_customer", parameters=NOOR),
            NOOR_EXTRACTED,
        )
        with patch.object(orchestrator._gate, "clarification", new=AsyncMock(side_effect=KeyError("x"))):
            response = await orchestrator.handle_user_command(UserCommand(user_id=1, message="add customer"))
        assert response.status == ResponseStatus.ERROR
        assert response.message.startswith("Sorry, something went wrong")


class TestReadOnly:
    @pytest.mark.asyncio
    async def test_count_customers_runs_immediately(
        self, orchestrator, mock_client, mock_openai_response, intent_payload, seeded_db
    ):
        llm_replies(
            mock_client, mock_openai_response, intent_payload(intent="query", action="count_customers")
        )
        response = await orchestrator.handle_user_command(
            UserCommand(user_id=4, message="How many customers do we have?")
        )
        assert response.needs_confirmation is False
        assert response.message == "Registered customers: 2"
        rows = await learning_rows(seeded_db)
        assert len(rows) == 1
        assert rows[0]["action_type"] == "count_customers"
        assert rows[0]["user_id"] == 4

    @pytest.mark.asyncio
    async def test_report_request_without_action(
        self, orchestrator, mock_client, mock_openai_response, intent_payload
    ):
        llm_replies(
            mock_client,
            mock_openai_response,
            intent_payload(intent="report", requests_report=True, report_type="sales"),
        )
        response = await orchestrator.handle_user_command(
            UserCommand(user_id=1, message="أعطني تقرير المبيعات")
        )
        assert response.message.startswith("تقرير المبيعات:")


class TestLanguageFidelity:
    @pytest.mark.asyncio
    async def test_english_round_trip(
        self, orchestrator, mock_client, mock_openai_response, intent_payload
    ):
        params = {"name": "Acme", "phone": "0551112222"}
        llm_replies(
            mock_client,
            mock_openai_response,
            intent_payload(action="create_customer", parameters=params),
            params,
        )
        response = await orchestrator.handle_user_command(
            UserCommand(user_id=1, message="Add customer Acme phone 0551112222")
        )
        assert detect_language(response.summary) == "en"
        result = await orchestrator.confirm_and_execute(1, response.pending_action)
        assert result.status == ResponseStatus.SUCCESS
        assert detect_language(result.message) == "en"

    @pytest.mark.asyncio
    async def test_english_clarification(
        self, orchestrator, mock_client, mock_openai_response, intent_payload
    ):
        llm_replies(mock_client, mock_openai_response, intent_payload(action="create_order"), {})
        response = await orchestrator.handle_user_command(
            UserCommand(user_id=1, message="create a new order")
        )
        assert detect_language(response.message) == "en"
        assert "customer ID or name" in response.message

    @pytest.mark.asyncio
    async def test_arabic_round_trip(
        self, orchestrator, mock_client, mock_openai_response, intent_payload
    ):
        llm_replies(
            mock_client,
            mock_openai_response,
            intent_payload(action="create_customer", parameters=NOOR),
            NOOR_EXTRACTED,
        )
        response = await orchestrator.handle_user_command(
            UserCommand(user_id=1, message=ROUND_TRIP_MESSAGE)
        )
        assert response.summary.startswith("إضافة عميل جديد")
        result = await orchestrator.confirm_and_execute(1, response.pending_action)
        assert result.message.startswith("تم تسجيل عميل جديد")


class TestConfirmAndExecute:
    async def _pending(self, orchestrator, mock_client, mock_openai_response, intent_payload, action, params):
        llm_replies(
            mock_client,
            mock_openai_response,
            intent_payload(action=action, parameters=params),
            params,
        )
        response = await orchestrator.handle_user_command(UserCommand(user_id=1, message="سجل"))
        assert response.needs_confirmation is True
        return response.pending_action

    @pytest.mark.asyncio
    async def test_tampered_pending_rejected(
        self, orchestrator, mock_client, mock_openai_response, intent_payload, seeded_db
    ):
        pending = await self._pending(
            orchestrator, mock_client, mock_openai_response, intent_payload, "create_customer", NOOR
        )
        forged = pending.model_copy(update={"parameters": {**NOOR, "name": "شركة أخرى"}})
        result = await orchestrator.confirm_and_execute(1, forged)
        assert result.status == ResponseStatus.ERROR
        assert await seeded_db.scalar("SELECT COUNT(*) FROM customers") == 2
        rows = await learning_rows(seeded_db)
        assert [r["success"] for r in rows] == [0]

    @pytest.mark.asyncio
    async def test_other_user_rejected(
        self, orchestrator, mock_client, mock_openai_response, intent_payload
    ):
        pending = await self._pending(
            orchestrator, mock_client, mock_openai_response, intent_payload, "create_customer", NOOR
        )
        result = await orchestrator.confirm_and_execute(2, pending)
        assert result.status == ResponseStatus.ERROR

    @pytest.mark.asyncio
    async def test_learning_record_per_confirmation(
        self, orchestrator, mock_client, mock_openai_response, intent_payload, seeded_db
    ):
        pending = await self._pending(
            orchestrator, mock_client, mock_openai_response, intent_payload,
            "create_order", {"customer_id": "CID404", "delivery_date": "2025-03-01"},
        )
        failed = await orchestrator.confirm_and_execute(1, pending)
        assert failed.status == ResponseStatus.ERROR
        assert failed.message.startswith("فشل تنفيذ العملية:")

        pending = await self._pending(
            orchestrator, mock_client, mock_openai_response, intent_payload,
            "create_order", {"customer_id": "CID001", "delivery_date": "2025-03-01"},
        )
        succeeded = await orchestrator.confirm_and_execute(1, pending)
        assert succeeded.status == ResponseStatus.SUCCESS

        rows = await learning_rows(seeded_db)
        assert [(r["action_type"], r["success"]) for r in rows] == [
            ("create_order", 0),
            ("create_order", 1),
        ]

    @pytest.mark.asyncio
    async def test_learning_failure_does_not_change_outcome(
        self, orchestrator, mock_client, mock_openai_response, intent_payload
    ):
        pending = await self._pending(
            orchestrator, mock_client, mock_openai_response, intent_payload, "create_customer", NOOR
        )
        with patch.object(orchestrator._learning, "log", new=AsyncMock(side_effect=RuntimeError("gone"))):
            result = await orchestrator.confirm_and_execute(1, pending)
        assert result.status == ResponseStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_failed_confirm_keeps_concurrent_success(
        self, orchestrator, mock_client, mock_openai_response, intent_payload, seeded_db
    ):
        bad = await self._pending(
            orchestrator, mock_client, mock_openai_response, intent_payload,
            "create_order", {"customer_id": "CID404", "delivery_date": "2025-03-01"},
        )
        good = await self._pending(
            orchestrator, mock_client, mock_openai_response, intent_payload,
            "create_maintenance", {"machine_id": "M001", "description": "belt slipping"},
        )
        before = await seeded_db.scalar("SELECT COUNT(*) FROM maintenance_requests")
        failed, succeeded = await asyncio.gather(
            orchestrator.confirm_and_execute(1, bad),
            orchestrator.confirm_and_execute(1, good),
        )
        await orchestrator._notifier.drain()
        assert failed.status == ResponseStatus.ERROR
        assert succeeded.status == ResponseStatus.SUCCESS
        assert await seeded_db.scalar("SELECT COUNT(*) FROM maintenance_requests") == before + 1
        assert await seeded_db.scalar("SELECT COUNT(*) FROM orders") == 1
        assert await seeded_db.scalar("SELECT COUNT(*) FROM notifications") == 1
        rows = await learning_rows(seeded_db)
        assert sorted(r["success"] for r in rows) == [0, 1]

    @pytest.mark.asyncio
    async def test_creates_are_not_idempotent(
        self, orchestrator, mock_client, mock_openai_response, intent_payload, seeded_db
    ):
        pending = await self._pending(
            orchestrator, mock_client, mock_openai_response, intent_payload,
            "create_maintenance", {"machine_id": "M001", "description": "belt slipping"},
        )
        first = await orchestrator.confirm_and_execute(1, pending)
        second = await orchestrator.confirm_and_execute(1, pending)
        assert first.status == second.status == ResponseStatus.SUCCESS
        assert first.operation.result["id"] != second.operation.result["id"]
        assert await seeded_db.scalar("SELECT COUNT(*) FROM maintenance_requests") == 2

        await orchestrator._notifier.drain()
        assert await seeded_db.scalar("SELECT COUNT(*) FROM notifications") == 2

    @pytest.mark.asyncio
    async def test_no_notification_for_unlisted_action(
        self, orchestrator, mock_client, mock_openai_response, intent_payload, seeded_db
    ):
        pending = await self._pending(
            orchestrator, mock_client, mock_openai_response, intent_payload, "create_customer", NOOR
        )
        await orchestrator.confirm_and_execute(1, pending)
        await orchestrator._notifier.drain()
        assert await seeded_db.scalar("SELECT COUNT(*) FROM notifications") == 0

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_change_outcome(
        self, orchestrator, mock_client, mock_openai_response, intent_payload
    ):
        pending = await self._pending(
            orchestrator, mock_client, mock_openai_response, intent_payload,
            "create_maintenance", {"machine_id": "M001", "description": "belt slipping"},
        )
        with patch.object(orchestrator._notifier, "build", side_effect=RuntimeError("smtp")):
            result = await orchestrator.confirm_and_execute(1, pending)
            await orchestrator._notifier.drain()
        assert result.status == ResponseStatus.SUCCESS
