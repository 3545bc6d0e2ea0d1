"""Custom exception hierarchy for the MPBF assistant."""

from __future__ import annotations


class AssistantError(Exception):
    """Base exception for all assistant errors."""


class ClassificationError(AssistantError):
    """Raised when the LLM response cannot be turned into a structured result."""


class MissingFieldsError(AssistantError):
    """Raised when a mutating action lacks required fields."""

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields = list(fields or [])


class ConfirmationError(AssistantError):
    """Raised when a pending action was not issued for this user and payload."""


class UnknownActionError(AssistantError):
    """Raised when an action tag is outside the registry."""


class ExecutionError(AssistantError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, action: str = "") -> None:
        super().__init__(message)
        self.action = action
