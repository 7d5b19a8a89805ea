"""Exceptions raised by the work-intake pipeline."""

from __future__ import annotations

import httpx


class WorkIntakeError(Exception):
    """Base exception for work-intake errors."""

    kind = "unexpected"


class ConfigurationError(WorkIntakeError):
    """Raised when a backend is missing required credentials or identifiers."""

    kind = "configuration"


class TaskValidationError(WorkIntakeError):
    """Raised when task input fails schema validation."""

    kind = "validation"

    def __init__(self, message: str = "Invalid task input") -> None:
        super().__init__(message)


class BackendAPIError(WorkIntakeError):
    """Raised when a backend API answers with a non-success status."""

    kind = "api"

    def __init__(self, backend: str, status_code: int, body: str) -> None:
        self.backend = backend
        self.status_code = status_code
        self.body = body
        super().__init__(f"{backend} API error: {status_code} - {body}")


def failure_kind(exc: BaseException) -> str:
    """Classify an exception for a failed TaskResult."""
    if isinstance(exc, WorkIntakeError):
        return exc.kind
    if isinstance(exc, httpx.HTTPError):
        return "api"
    return "unexpected"
