"""Pipeline orchestrator — wires language → context → classify → gate → execute → log."""

from __future__ import annotations

import json
import logging
import time
from typing import Any

from mpbf_assistant.engine.action_registry import ActionName, ActionRegistry, ActionSpec
from mpbf_assistant.exceptions import ConfirmationError, UnknownActionError
from mpbf_assistant.executor.action_executor import ActionExecutor
from mpbf_assistant.executor.general_responder import GeneralResponder
from mpbf_assistant.memory.learning import LearningLogger
from mpbf_assistant.models.action import (
    CommandResponse,
    ExecutionResponse,
    Language,
    PendingAction,
    ResponseStatus,
)
from mpbf_assistant.models.intent import IntentResult, UserCommand
from mpbf_assistant.notifications.dispatcher import NotificationDispatcher
from mpbf_assistant.parser.extractors import FieldExtractor
from mpbf_assistant.parser.intent_classifier import IntentClassifier
from mpbf_assistant.parser.language import detect_language, localize
from mpbf_assistant.policy.confirmation_gate import ConfirmationGate
from mpbf_assistant.storage.context import KpiContext
from mpbf_assistant.storage.database import FactoryDatabase

logger = logging.getLogger(__name__)


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class Orchestrator:
    def __init__(
        self,
        classifier: IntentClassifier,
        extractors: dict[str, FieldExtractor],
        gate: ConfirmationGate,
        executor: ActionExecutor,
        responder: GeneralResponder,
        learning: LearningLogger,
        notifier: NotificationDispatcher,
        context: KpiContext,
        registry: ActionRegistry | None = None,
        min_confidence: float = 0.5,
        db: FactoryDatabase | None = None,
    ) -> None:
        self.db = db
        self._classifier = classifier
        self._extractors = extractors
        self._gate = gate
        self._executor = executor
        self._responder = responder
        self._learning = learning
        self._notifier = notifier
        self._context = context
        self._registry = registry or ActionRegistry()
        self._min_confidence = min_confidence

    async def close(self) -> None:
        """Flush pending notifications and release the database, if owned."""
        await self._notifier.drain()
        if self.db is not None:
            await self.db.close()

    async def handle_user_command(self, command: UserCommand) -> CommandResponse:
        language = detect_language(command.message)
        try:
            return await self._handle(command, language)
        except Exception:
            logger.exception("Unhandled failure for user %s", command.user_id)
            return CommandResponse(
                status=ResponseStatus.ERROR,
                message=localize(
                    language,
                    "عذراً، حدث خطأ أثناء معالجة طلبك. حاول مرة أخرى.",
                    "Sorry, something went wrong while handling your request. Please try again.",
                ),
                language=language,
            )

    async def _handle(self, command: UserCommand, language: Language) -> CommandResponse:
        # 1. KPI context
        context = await self._context.format_context()

        # 2. Classify
        intent = await self._classifier.classify(command.message, context=context)
        logger.info(
            "Classified %r as %s/%s (%.2f)",
            command.message,
            intent.intent.value,
            intent.action or "-",
            intent.confidence,
        )

        # 3. Low confidence
        if intent.confidence < self._min_confidence:
            return CommandResponse(
                status=ResponseStatus.INFO,
                message=localize(
                    language,
                    "عذراً، لم أفهم طلبك. هل يمكنك إعادة صياغته؟",
                    "Sorry, I didn't understand your request. Could you rephrase it?",
                ),
                language=language,
            )

        # 4. Resolve the action
        spec, parameters = self._resolve(intent)
        if spec is None:
            answer = await self._responder.respond(command.message, language)
            return CommandResponse(status=ResponseStatus.INFO, message=answer, language=language)

        # 5. Read-only actions run immediately
        if not spec.mutating:
            return await self._run_read_only(command, spec, parameters, language)

        # 6. Mutating actions: complete the fields, then ask for confirmation
        parameters = await self._merge_extracted(spec, command.message, parameters)
        text, missing = await self._gate.clarification(
            spec, parameters, intent.missing_info, language
        )
        if missing:
            return CommandResponse(
                status=ResponseStatus.CLARIFICATION,
                message=text,
                missing_fields=missing,
                language=language,
            )

        pending = self._gate.issue(command.user_id, spec, parameters, language)
        summary = self._gate.describe(spec, parameters, language)
        return CommandResponse(
            needs_confirmation=True,
            status=ResponseStatus.CONFIRM,
            message=summary,
            summary=summary,
            pending_action=pending,
            language=language,
        )

    def _resolve(self, intent: IntentResult) -> tuple[ActionSpec | None, dict[str, Any]]:
        parameters = dict(intent.parameters)
        spec = self._registry.resolve(intent.action)
        if spec is None and intent.requests_report:
            spec = self._registry.get(ActionName.GENERATE_REPORT)
            if intent.report_type:
                parameters.setdefault("report_type", intent.report_type)
        return spec, parameters

    async def _merge_extracted(
        self, spec: ActionSpec, message: str, parameters: dict[str, Any]
    ) -> dict[str, Any]:
        extractor = self._extractors.get(spec.table)
        if extractor is None:
            return parameters
        extracted = await extractor.extract(message)
        return {**parameters, **extracted}

    async def _run_read_only(
        self,
        command: UserCommand,
        spec: ActionSpec,
        parameters: dict[str, Any],
        language: Language,
    ) -> CommandResponse:
        started = time.perf_counter()
        success = False
        try:
            operation = await self._executor.execute(spec.name.value, parameters, language)
            success = operation.success
        finally:
            await self._learning.record(
                command.user_id, spec.name.value, command.message, success, _elapsed_ms(started)
            )
        return CommandResponse(
            status=ResponseStatus.INFO,
            message=operation.message,
            language=language,
        )

    async def confirm_and_execute(self, user_id: int, pending: PendingAction) -> ExecutionResponse:
        started = time.perf_counter()
        language = pending.language
        success = False
        try:
            try:
                self._gate.verify(user_id, pending)
            except ConfirmationError as exc:
                logger.warning("Rejected pending action: %s", exc)
                return ExecutionResponse(
                    status=ResponseStatus.ERROR,
                    message=localize(
                        language,
                        "لا يمكن تنفيذ هذا الإجراء لأنه لم يتم تأكيده بشكل صحيح.",
                        "This action cannot be executed because it was not properly confirmed.",
                    ),
                )

            try:
                operation = await self._executor.execute(
                    pending.action, pending.parameters, language
                )
            except UnknownActionError as exc:
                logger.warning("Rejected unknown action: %s", exc)
                return ExecutionResponse(
                    status=ResponseStatus.ERROR,
                    message=localize(
                        language,
                        "هذا الإجراء غير مدعوم.",
                        "This action is not supported.",
                    ),
                )
            except Exception:
                logger.exception("Execution of %s crashed", pending.action)
                return ExecutionResponse(
                    status=ResponseStatus.ERROR,
                    message=localize(
                        language,
                        "عذراً، تعذر تنفيذ العملية.",
                        "Sorry, the operation could not be completed.",
                    ),
                )

            success = operation.success
            if success:
                self._notifier.maybe_notify(
                    pending.action,
                    {**(operation.data or {}), **(operation.result or {})},
                    language,
                )
            return ExecutionResponse(
                status=ResponseStatus.SUCCESS if success else ResponseStatus.ERROR,
                message=operation.message,
                operation=operation,
            )
        finally:
            await self._learning.record(
                user_id,
                pending.action,
                json.dumps(pending.parameters, ensure_ascii=False, default=str),
                success,
                _elapsed_ms(started),
            )
