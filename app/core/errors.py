"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses. Each subclass carries
the HTTP status it maps to at the exception-handler boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code (logged, not returned).
        message: Human-readable error message returned to the caller.
        details: Optional underlying cause, returned only when error details
            are enabled for the running environment.
        headers: Optional HTTP headers to attach to the error response.
    """

    code: str
    message: str
    details: str | None = None
    headers: dict[str, str] | None = None

    status_code: ClassVar[int] = 500

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when client input is missing or malformed."""

    status_code = 400


class RateLimitAppError(AppError):
    """Raised when a client exceeds its request budget."""

    status_code = 429


class ConfigurationAppError(AppError):
    """Raised when required server configuration is absent."""

    status_code = 500


class LLMAppError(AppError):
    """Raised when the LLM provider call fails or returns an unusable payload."""

    status_code = 500


class UpstreamAppError(AppError):
    """Raised to callers when the AI service could not produce a usable answer."""

    status_code = 500
