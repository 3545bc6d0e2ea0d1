"""Entry point and dependency wiring."""

from __future__ import annotations

import logging

from openai import AsyncOpenAI
from rich.logging import RichHandler

from mpbf_assistant.cli.app import app
from mpbf_assistant.config.settings import Settings
from mpbf_assistant.engine.action_registry import ActionRegistry
from mpbf_assistant.executor.action_executor import ActionExecutor
from mpbf_assistant.executor.general_responder import GeneralResponder
from mpbf_assistant.memory.learning import LearningLogger
from mpbf_assistant.notifications.dispatcher import NotificationDispatcher
from mpbf_assistant.parser.extractors import build_extractors
from mpbf_assistant.parser.intent_classifier import IntentClassifier
from mpbf_assistant.pipeline import Orchestrator
from mpbf_assistant.policy.confirmation_gate import ConfirmationGate
from mpbf_assistant.storage.context import KpiContext
from mpbf_assistant.storage.database import FactoryDatabase


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=False, show_path=False)],
        force=True,
    )


def build_orchestrator(
    settings: Settings | None = None,
    client: AsyncOpenAI | None = None,
    db: FactoryDatabase | None = None,
) -> Orchestrator:
    """Wire every stage; the caller still owns ``db.initialize()``."""
    settings = settings or Settings()  # type: ignore[call-arg]
    client = client or AsyncOpenAI(api_key=settings.openai_api_key)
    db = db or FactoryDatabase(db_path=settings.db_path)
    registry = ActionRegistry()

    classifier = IntentClassifier(settings, client=client, registry=registry)
    gate = ConfirmationGate(
        settings.confirmation_secret,
        db=db,
        allow_synthetic_identifiers=settings.allow_synthetic_identifiers,
        example_limit=settings.example_limit,
    )
    executor = ActionExecutor(
        db,
        registry=registry,
        allow_synthetic_identifiers=settings.allow_synthetic_identifiers,
    )

    return Orchestrator(
        classifier=classifier,
        extractors=build_extractors(settings, client=client),
        gate=gate,
        executor=executor,
        responder=GeneralResponder(settings, db, client=client),
        learning=LearningLogger(db),
        notifier=NotificationDispatcher(
            db, registry=registry, enabled=settings.notifications_enabled
        ),
        context=KpiContext(db),
        registry=registry,
        min_confidence=settings.min_confidence,
        db=db,
    )


if __name__ == "__main__":
    app()
