"""Application settings loaded from environment variables."""

from __future__ import annotations

import secrets
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "MPBF_"}

    openai_api_key: str = Field(description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o", description="OpenAI model name")
    db_path: Path = Field(
        default=Path.home() / ".mpbf" / "factory.db",
        description="SQLite database path",
    )
    log_level: str = Field(default="INFO", description="Logging level")
    min_confidence: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Classifier confidence below which a command is not understood",
    )
    confirmation_secret: str = Field(
        default_factory=lambda: secrets.token_hex(32),
        description="HMAC key used to sign pending actions",
    )
    allow_synthetic_identifiers: bool = Field(
        default=True,
        description="Fall back to timestamp identifiers when none is supplied",
    )
    example_limit: int = Field(
        default=3, ge=0, description="Existing values offered in clarifications"
    )
    notifications_enabled: bool = Field(
        default=True, description="Dispatch notifications after successful actions"
    )
