"""Action executor — dispatches registered actions to the appropriate handler."""

from __future__ import annotations

import logging
from typing import Any

import aiosqlite

from mpbf_assistant.engine.action_registry import ActionName, ActionRegistry, ActionSpec
from mpbf_assistant.exceptions import ExecutionError, MissingFieldsError, UnknownActionError
from mpbf_assistant.executor.handlers.analysis import AnalysisHandler
from mpbf_assistant.executor.handlers.base import OPERATIONS, BaseHandler
from mpbf_assistant.executor.handlers.customers import CustomerHandler
from mpbf_assistant.executor.handlers.machines import MachineHandler
from mpbf_assistant.executor.handlers.orders import OrderHandler
from mpbf_assistant.executor.handlers.production import ProductionHandler
from mpbf_assistant.executor.handlers.quality import QualityHandler
from mpbf_assistant.models.action import DatabaseOperation, Language
from mpbf_assistant.parser.language import localize
from mpbf_assistant.storage.database import FactoryDatabase

logger = logging.getLogger(__name__)

_HANDLER_MAP: dict[ActionName, type[BaseHandler]] = {
    ActionName.CREATE_ORDER: OrderHandler,
    ActionName.UPDATE_ORDER: OrderHandler,
    ActionName.DELETE_ORDER: OrderHandler,
    ActionName.CREATE_PRODUCTION_ORDER: ProductionHandler,
    ActionName.CREATE_ROLL: ProductionHandler,
    ActionName.CREATE_CUSTOMER: CustomerHandler,
    ActionName.ADD_CUSTOMER_PRODUCT: CustomerHandler,
    ActionName.ADD_MACHINE: MachineHandler,
    ActionName.CREATE_MAINTENANCE: MachineHandler,
    ActionName.CREATE_QUALITY_CHECK: QualityHandler,
    ActionName.ANALYZE_PERFORMANCE: AnalysisHandler,
    ActionName.COUNT_CUSTOMERS: AnalysisHandler,
    ActionName.GENERATE_REPORT: AnalysisHandler,
}


class ActionExecutor:
    def __init__(
        self,
        db: FactoryDatabase,
        registry: ActionRegistry | None = None,
        allow_synthetic_identifiers: bool = True,
    ) -> None:
        self._db = db
        self._registry = registry or ActionRegistry()
        self._allow_synthetic = allow_synthetic_identifiers
        self._handlers: dict[type[BaseHandler], BaseHandler] = {}

    def _get_handler(self, name: ActionName) -> BaseHandler:
        handler_cls = _HANDLER_MAP.get(name)
        if handler_cls is None:
            raise UnknownActionError(f"No handler registered for {name.value}")
        if handler_cls not in self._handlers:
            self._handlers[handler_cls] = handler_cls(
                self._db, allow_synthetic_identifiers=self._allow_synthetic
            )
        return self._handlers[handler_cls]

    def resolve(self, action: str) -> ActionSpec:
        spec = self._registry.resolve(action)
        if spec is None:
            raise UnknownActionError(f"Unknown action: {action!r}")
        return spec

    def require(self, spec: ActionSpec, parameters: dict[str, Any], language: Language = "ar") -> None:
        """Raise ``MissingFieldsError`` listing the localized labels of absent fields."""
        missing = spec.missing(parameters, allow_synthetic=self._allow_synthetic)
        if missing:
            labels = [f.label(language) for f in missing]
            raise MissingFieldsError(
                localize(
                    language,
                    f"معلومات ناقصة: {'، '.join(labels)}",
                    f"Missing information: {', '.join(labels)}",
                ),
                labels,
            )

    async def execute(
        self, action: str, parameters: dict[str, Any], language: Language = "ar"
    ) -> DatabaseOperation:
        spec = self.resolve(action)
        handler = self._get_handler(spec.name)

        try:
            self.require(spec, parameters, language)
        except MissingFieldsError as exc:
            logger.info("Action %s missing %s", spec.name.value, exc.fields)
            return handler.failed(spec, str(exc), data=dict(parameters))

        try:
            operation = await handler.run(spec, parameters, language)
        except (aiosqlite.Error, ExecutionError) as exc:
            logger.warning("Action %s failed: %s", spec.name.value, exc)
            return DatabaseOperation(
                operation=OPERATIONS[spec.kind],
                table=spec.table,
                data=dict(parameters),
                success=False,
                message=localize(
                    language,
                    f"فشل تنفيذ العملية: {exc}",
                    f"Execution failed: {exc}",
                ),
            )

        logger.info(
            "Action %s on %s: %s",
            spec.name.value,
            spec.table,
            "ok" if operation.success else "failed",
        )
        return operation
