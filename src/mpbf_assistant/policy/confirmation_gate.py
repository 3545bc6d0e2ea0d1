"""Confirmation gate — mutating actions wait for an explicit confirmation round trip.

The gate keeps no server-side state. ``issue`` signs the pending action for one
user; ``verify`` accepts only that exact payload back from that same user.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from typing import Any

import aiosqlite

from mpbf_assistant.engine.action_registry import ActionKind, ActionSpec, FieldSpec, render_template
from mpbf_assistant.exceptions import ConfirmationError
from mpbf_assistant.models.action import Language, PendingAction
from mpbf_assistant.parser.language import localize
from mpbf_assistant.storage.database import FactoryDatabase

logger = logging.getLogger(__name__)


def _canonical(user_id: int, action: str, parameters: dict[str, Any], table: str | None, language: str) -> bytes:
    payload = {
        "user_id": user_id,
        "action": action,
        "parameters": parameters,
        "table": table,
        "language": language,
    }
    return json.dumps(
        payload, sort_keys=True, ensure_ascii=False, separators=(",", ":"), default=str
    ).encode("utf-8")


class ConfirmationGate:
    def __init__(
        self,
        secret: str,
        db: FactoryDatabase | None = None,
        allow_synthetic_identifiers: bool = True,
        example_limit: int = 3,
    ) -> None:
        if not secret:
            raise ValueError("Confirmation secret must not be empty")
        self._secret = secret.encode("utf-8")
        self._db = db
        self._allow_synthetic = allow_synthetic_identifiers
        self._example_limit = example_limit

    def missing_specs(self, spec: ActionSpec, parameters: dict[str, Any]) -> list[FieldSpec]:
        return spec.missing(parameters, allow_synthetic=self._allow_synthetic)

    async def clarification(
        self,
        spec: ActionSpec,
        parameters: dict[str, Any],
        missing_info: list[str] | None,
        language: Language,
    ) -> tuple[str, list[str]]:
        """Clarification text and the labels it enumerates."""
        missing = self.missing_specs(spec, parameters)
        lines: list[str] = []
        labels: list[str] = []
        if missing:
            for field in missing:
                label = field.label(language)
                labels.append(label)
                examples = await self._examples(field)
                if examples:
                    joined = localize(language, "، ", ", ").join(examples)
                    label = localize(language, f"{label} (أمثلة: {joined})", f"{label} (e.g. {joined})")
                lines.append(f"- {label}")
        else:
            labels = list(missing_info or [])
            lines = [f"- {m}" for m in labels]

        header = localize(
            language,
            "لإتمام الطلب أحتاج المعلومات التالية:",
            "To complete this request I need the following information:",
        )
        return header + "\n" + "\n".join(lines), labels

    async def _examples(self, field: FieldSpec) -> list[str]:
        if (
            self._db is None
            or not self._example_limit
            or not field.example_table
            or not field.example_column
        ):
            return []
        try:
            return await self._db.sample_values(
                field.example_table, field.example_column, self._example_limit
            )
        except (aiosqlite.Error, RuntimeError, ValueError) as exc:
            logger.warning("Could not load examples for %s: %s", field.name, exc)
            return []

    def describe(self, spec: ActionSpec, parameters: dict[str, Any], language: Language) -> str:
        values = dict(parameters)
        fields = spec.required + ((spec.identifier,) if spec.identifier else ())
        for field in fields:
            value = field.value(parameters)
            if value is not None:
                values[field.name] = value
        template = localize(language, spec.summary_ar, spec.summary_en)
        summary = render_template(template, values) if template else spec.name.value
        if spec.kind == ActionKind.DELETE:
            summary += localize(
                language,
                " (تحذير: هذا الإجراء لا يمكن التراجع عنه)",
                " (warning: this cannot be undone)",
            )
        return summary + localize(language, "\nهل تريد المتابعة؟", "\nDo you want to proceed?")

    def _sign(self, user_id: int, action: str, parameters: dict[str, Any], table: str | None, language: str) -> str:
        message = _canonical(user_id, action, parameters, table, language)
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def issue(
        self,
        user_id: int,
        spec: ActionSpec,
        parameters: dict[str, Any],
        language: Language,
    ) -> PendingAction:
        action = spec.name.value
        return PendingAction(
            action=action,
            parameters=dict(parameters),
            table=spec.table,
            language=language,
            token=self._sign(user_id, action, parameters, spec.table, language),
        )

    def verify(self, user_id: int, pending: PendingAction) -> None:
        expected = self._sign(
            user_id, pending.action, pending.parameters, pending.table, pending.language
        )
        if not pending.token or not hmac.compare_digest(expected, pending.token):
            raise ConfirmationError(
                f"Pending action {pending.action!r} was not issued for user {user_id}"
            )
