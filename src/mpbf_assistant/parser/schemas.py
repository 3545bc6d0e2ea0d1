"""JSON schemas for OpenAI structured output and their pydantic validators."""

from __future__ import annotations

from pydantic import BaseModel, Field

from mpbf_assistant.models.intent import IntentType

INTENT_JSON_SCHEMA: dict = {
    "name": "intent_result",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "intent": {
                "type": "string",
                "enum": [t.value for t in IntentType],
                "description": "The classified intent.",
            },
            "action": {
                "type": "string",
                "description": "Catalogue action name, or empty string.",
            },
            "requires_database": {"type": "boolean"},
            "requests_report": {"type": "boolean"},
            "report_type": {
                "type": ["string", "null"],
                "description": "production, quality, maintenance or sales.",
            },
            "parameters": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "name": {
                            "type": "string",
                            "description": "Field name (e.g. 'customer_id', 'phone').",
                        },
                        "value": {
                            "type": "string",
                            "description": "The value as written in the message.",
                        },
                    },
                    "required": ["name", "value"],
                    "additionalProperties": False,
                },
            },
            "confidence": {
                "type": "number",
                "description": "Confidence score between 0.0 and 1.0.",
            },
            "missing_info": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Required fields absent from the message.",
            },
            "reasoning": {"type": "string"},
        },
        "required": [
            "intent",
            "action",
            "requires_database",
            "requests_report",
            "report_type",
            "parameters",
            "confidence",
            "missing_info",
            "reasoning",
        ],
        "additionalProperties": False,
    },
}


class ParameterPair(BaseModel):
    name: str
    value: str


class IntentPayload(BaseModel):
    intent: IntentType
    action: str = ""
    requires_database: bool = False
    requests_report: bool = False
    report_type: str | None = None
    parameters: list[ParameterPair] = Field(default_factory=list)
    confidence: float
    missing_info: list[str] = Field(default_factory=list)
    reasoning: str = ""


def extraction_schema(name: str, fields: dict[str, str]) -> dict:
    """Strict schema where every field is a nullable string."""
    return {
        "name": name,
        "strict": True,
        "schema": {
            "type": "object",
            "properties": {
                field: {"type": ["string", "null"], "description": description}
                for field, description in fields.items()
            },
            "required": list(fields),
            "additionalProperties": False,
        },
    }
