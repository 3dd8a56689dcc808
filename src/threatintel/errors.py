"""
Domain exceptions raised by the pipeline and the store layer.

The HTTP layer maps these onto status codes in threatintel.api.main; nothing
below the API imports FastAPI.
"""

from __future__ import annotations

from typing import Optional


class ConfigurationError(RuntimeError):
    """A required setting is missing. Fatal, never retried."""


class AllModelsExhaustedError(RuntimeError):
    """Every candidate model failed at the transport or HTTP level."""

    def __init__(self, last_error: Optional[str], attempts: int) -> None:
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(
            f"Failed to generate AI analysis after {attempts} attempt(s): "
            f"{last_error or 'no models configured'}"
        )


class RecordNotFoundError(LookupError):
    def __init__(self, kind: str, record_id: str) -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} '{record_id}' not found")


class AuthenticationRequiredError(PermissionError):
    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Authentication required for '{operation}'")


class PermissionDeniedError(PermissionError):
    pass


class CompletionFormatError(RuntimeError):
    """The completion service answered 2xx with a body that is not a chat completion."""
