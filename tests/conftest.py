"""Shared fixtures and mocks for all tests."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from mpbf_assistant.config.settings import Settings
from mpbf_assistant.storage.database import FactoryDatabase

NOW = "2025-01-01T00:00:00+00:00"


@pytest.fixture
def mock_settings(monkeypatch):
    monkeypatch.setenv("MPBF_OPENAI_API_KEY", "sk-test-key-fake")
    monkeypatch.setenv("MPBF_OPENAI_MODEL", "gpt-4o")
    monkeypatch.setenv("MPBF_DB_PATH", ":memory:")
    monkeypatch.setenv("MPBF_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("MPBF_CONFIRMATION_SECRET", "test-secret")
    return Settings()  # type: ignore[call-arg]


@pytest_asyncio.fixture
async def temp_db():
    db = FactoryDatabase(db_path=":memory:")
    await db.initialize()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def seeded_db(temp_db):
    """In-memory database with one customer, product, machine, order and job order."""
    await temp_db.execute(
        "INSERT INTO customers (id, name, name_ar, phone, city, created_at) VALUES (?, ?, ?, ?, ?, ?)",
        ("CID001", "Al Noor Trading", "النور للتجارة", "0500000001", "Riyadh", NOW),
    )
    await temp_db.execute(
        "INSERT INTO customers (id, name, name_ar, phone, city, created_at) VALUES (?, ?, ?, ?, ?, ?)",
        ("CID002", "Gulf Packaging", "الخليج للتغليف", "0500000002", "Jeddah", NOW),
    )
    await temp_db.execute(
        "INSERT INTO customer_products (customer_id, size_caption, created_at) VALUES (?, ?, ?)",
        ("CID001", "30x40", NOW),
    )
    await temp_db.execute(
        "INSERT INTO machines (id, name, name_ar, type, status) VALUES (?, ?, ?, ?, ?)",
        ("M001", "Extruder 1", "بثق 1", "extruder", "active"),
    )
    await temp_db.execute(
        "INSERT INTO machines (id, name, name_ar, type, status) VALUES (?, ?, ?, ?, ?)",
        ("M002", "Printer 1", "طباعة 1", "printer", "maintenance"),
    )
    await temp_db.execute(
        "INSERT INTO orders (order_number, customer_id, status, delivery_date, created_at) "
        "VALUES (?, ?, ?, ?, ?)",
        ("ORD-001", "CID001", "waiting", "2025-02-01", NOW),
    )
    await temp_db.execute(
        "INSERT INTO production_orders (production_order_number, order_id, customer_product_id, "
        "quantity_kg, final_quantity_kg, produced_quantity_kg, status, created_at) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
        ("PO-001", 1, 1, 100.0, 105.0, 40.0, "active", NOW),
    )
    return temp_db


@pytest.fixture
def mock_openai_response():
    """Create a mock OpenAI chat completion response."""
    def _make(data):
        message = MagicMock()
        message.content = data if isinstance(data, str) else json.dumps(data)
        choice = MagicMock()
        choice.message = message
        response = MagicMock()
        response.choices = [choice]
        return response
    return _make


@pytest.fixture
def intent_payload():
    """Build a classifier payload matching the intent_result schema."""
    def _make(
        action: str = "",
        intent: str = "create",
        parameters: dict | None = None,
        confidence: float = 0.9,
        missing_info: list | None = None,
        requests_report: bool = False,
        report_type: str | None = None,
    ) -> dict:
        return {
            "intent": intent,
            "action": action,
            "requires_database": bool(action),
            "requests_report": requests_report,
            "report_type": report_type,
            "parameters": [
                {"name": k, "value": v} for k, v in (parameters or {}).items()
            ],
            "confidence": confidence,
            "missing_info": missing_info or [],
            "reasoning": "test",
        }
    return _make


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    return client
