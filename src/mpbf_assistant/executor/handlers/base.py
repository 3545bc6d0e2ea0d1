"""Abstract base for action handlers and shared value coercion."""

from __future__ import annotations

import abc
import time
from datetime import datetime, timezone
from typing import Any

from mpbf_assistant.engine.action_registry import ActionKind, ActionSpec, has_value
from mpbf_assistant.exceptions import ExecutionError
from mpbf_assistant.models.action import DatabaseOperation, Language
from mpbf_assistant.storage.database import FactoryDatabase

OPERATIONS: dict[ActionKind, str] = {
    ActionKind.CREATE: "insert",
    ActionKind.UPDATE: "update",
    ActionKind.DELETE: "delete",
    ActionKind.READ: "select",
}


def synthetic_identifier(prefix: str) -> str:
    # Millisecond timestamps collide under concurrent creates; see DESIGN.md.
    return f"{prefix}-{int(time.time() * 1000)}"


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_float(value: Any, field: str) -> float:
    try:
        return float(str(value).replace(",", "").strip())
    except ValueError as exc:
        raise ExecutionError(f"Invalid number for {field}: {value!r}") from exc


def to_int(value: Any, field: str) -> int:
    number = to_float(value, field)
    if not number.is_integer():
        raise ExecutionError(f"Invalid integer for {field}: {value!r}")
    return int(number)


def optional(parameters: dict[str, Any], key: str, default: Any = None) -> Any:
    value = parameters.get(key)
    return value if has_value(value) else default


class BaseHandler(abc.ABC):
    def __init__(self, db: FactoryDatabase, allow_synthetic_identifiers: bool = True) -> None:
        self._db = db
        self._allow_synthetic = allow_synthetic_identifiers

    @abc.abstractmethod
    async def run(
        self, spec: ActionSpec, parameters: dict[str, Any], language: Language
    ) -> DatabaseOperation:
        ...  # pragma: no cover

    def identifier(self, spec: ActionSpec, parameters: dict[str, Any]) -> str:
        if spec.identifier is not None:
            value = spec.identifier.value(parameters)
            if value is not None:
                return str(value).strip()
        if not self._allow_synthetic:
            raise ExecutionError(f"{spec.name.value} requires an explicit identifier")
        return synthetic_identifier(spec.identifier_prefix)

    def ok(
        self,
        spec: ActionSpec,
        message: str,
        data: dict[str, Any] | None = None,
        conditions: dict[str, Any] | None = None,
        result: dict[str, Any] | None = None,
    ) -> DatabaseOperation:
        return DatabaseOperation(
            operation=OPERATIONS[spec.kind],
            table=spec.table,
            data=data,
            conditions=conditions,
            success=True,
            message=message,
            result=result,
        )

    def failed(
        self,
        spec: ActionSpec,
        message: str,
        data: dict[str, Any] | None = None,
        conditions: dict[str, Any] | None = None,
    ) -> DatabaseOperation:
        return DatabaseOperation(
            operation=OPERATIONS[spec.kind],
            table=spec.table,
            data=data,
            conditions=conditions,
            success=False,
            message=message,
        )
