"""Per-entity field extractors that re-prompt the LLM with a fixed schema."""

from __future__ import annotations

import logging
from typing import Union

from openai import AsyncOpenAI
from pydantic import TypeAdapter, ValidationError

from mpbf_assistant.config.settings import Settings
from mpbf_assistant.exceptions import ClassificationError
from mpbf_assistant.parser.prompt_templates import EXTRACTION_SYSTEM_PROMPT
from mpbf_assistant.parser.schemas import extraction_schema

logger = logging.getLogger(__name__)

_PAYLOAD = TypeAdapter(dict[str, Union[str, int, float, bool, None]])


class FieldExtractor:
    entity: str = ""
    fields: dict[str, str] = {}

    def __init__(self, settings: Settings, client: AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._client = client or AsyncOpenAI(api_key=settings.openai_api_key)

    async def extract(self, text: str) -> dict[str, str]:
        """Fields stated in ``text``; absent fields are omitted, never guessed."""
        try:
            return await self._extract(text)
        except ClassificationError as exc:
            logger.warning("%s extraction failed: %s", self.entity, exc)
            return {}

    async def _extract(self, text: str) -> dict[str, str]:
        if not text.strip():
            return {}

        field_lines = "\n".join(f"- {name}: {desc}" for name, desc in self.fields.items())
        try:
            response = await self._client.chat.completions.create(
                model=self._settings.openai_model,
                messages=[
                    {
                        "role": "system",
                        "content": EXTRACTION_SYSTEM_PROMPT.format(
                            entity=self.entity, fields=field_lines
                        ),
                    },
                    {"role": "user", "content": text},
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": extraction_schema(
                        f"{self.entity.replace(' ', '_')}_fields", self.fields
                    ),
                },
                temperature=0.0,
            )
            raw = response.choices[0].message.content
        except (AttributeError, IndexError) as exc:
            raise ClassificationError(f"Unexpected OpenAI response shape: {exc}") from exc
        except Exception as exc:
            raise ClassificationError(f"OpenAI API error: {exc}") from exc

        if not raw:
            raise ClassificationError("OpenAI returned empty content")

        try:
            data = _PAYLOAD.validate_json(raw)
        except ValidationError as exc:
            raise ClassificationError(f"Malformed extraction payload: {exc}") from exc

        extracted: dict[str, str] = {}
        for name in self.fields:
            value = data.get(name)
            if value is None:
                continue
            text_value = str(value).lower() if isinstance(value, bool) else str(value).strip()
            if text_value and text_value.lower() != "null":
                extracted[name] = text_value
        return extracted


class CustomerExtractor(FieldExtractor):
    entity = "customer"
    fields = {
        "name": "Customer or company name as written",
        "name_ar": "Arabic name if a separate one is given",
        "phone": "Phone number digits",
        "city": "City",
        "address": "Street address",
    }


class OrderExtractor(FieldExtractor):
    entity = "order"
    fields = {
        "id": "Numeric order ID",
        "order_number": "Order number such as ORD-123",
        "customer_id": "Customer ID such as CID001",
        "customer_name": "Customer name when no ID is given",
        "delivery_date": "Delivery date as YYYY-MM-DD",
        "status": "Order status (waiting, in_production, paused, cancelled, completed)",
        "notes": "Free-text notes",
    }


class ProductionOrderExtractor(FieldExtractor):
    entity = "production order"
    fields = {
        "production_order_number": "Production order number such as PO-123",
        "order_id": "Numeric ID of the parent order",
        "customer_product_id": "Numeric customer product ID",
        "quantity_kg": "Required quantity in kilograms",
        "overrun_percentage": "Overrun percentage",
    }


class MachineExtractor(FieldExtractor):
    entity = "machine"
    fields = {
        "id": "Machine code such as M001",
        "name": "Machine name in English",
        "name_ar": "Machine name in Arabic",
        "type": "One of extruder, printer, cutter, quality_check",
        "section_id": "Factory section ID",
        "status": "One of active, maintenance, down",
    }


class CustomerProductExtractor(FieldExtractor):
    entity = "customer product"
    fields = {
        "customer_id": "Customer ID such as CID001",
        "size_caption": "Bag size caption such as 30x40",
        "width": "Width in cm",
        "thickness": "Thickness in microns",
        "raw_material": "HDPE, LDPE or Regrind",
        "cutting_unit": "KG, ROLL or PKT",
        "is_printed": "true if the product is printed",
        "notes": "Free-text notes",
    }


EXTRACTORS: dict[str, type[FieldExtractor]] = {
    "customers": CustomerExtractor,
    "orders": OrderExtractor,
    "production_orders": ProductionOrderExtractor,
    "machines": MachineExtractor,
    "customer_products": CustomerProductExtractor,
}


def build_extractors(
    settings: Settings, client: AsyncOpenAI | None = None
) -> dict[str, FieldExtractor]:
    return {table: cls(settings, client=client) for table, cls in EXTRACTORS.items()}
