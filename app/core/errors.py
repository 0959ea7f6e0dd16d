"""Application-level exception types.

Each error class carries the HTTP status it maps to, so the global exception
handlers can shape a consistent ``{"error": message}`` response without
knowing about individual failure modes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability.

    Never serialized to clients; the response body only carries the message.
    """

    http_status: int
    retry_after: int
    upstream_status: int
    model: str


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message returned to the client.
        details: Optional structured details for logging.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    status_code: ClassVar[int] = 400

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)

    def resolve_status(self) -> int:
        """Return the HTTP status for this error instance."""
        if self.details and "http_status" in self.details:
            return int(self.details["http_status"])
        return self.status_code


class ValidationAppError(AppError):
    """Raised when the request body is malformed or incomplete."""

    status_code: ClassVar[int] = 400


class NotFoundAppError(AppError):
    """Raised for unknown routes or unsupported methods."""

    status_code: ClassVar[int] = 404


class RateLimitedAppError(AppError):
    """Raised when a client exceeds its request budget."""

    status_code: ClassVar[int] = 429


class ConfigurationAppError(AppError):
    """Raised when required server configuration is missing."""

    status_code: ClassVar[int] = 500


class UpstreamAppError(AppError):
    """Raised when Gemini answers with a non-success status.

    The upstream status is passed through via ``details["http_status"]``.
    """

    status_code: ClassVar[int] = 502


class UpstreamUnreachableAppError(AppError):
    """Raised when the Gemini call fails at the transport level."""

    status_code: ClassVar[int] = 502


class SafetyFilteredAppError(AppError):
    """Raised when Gemini withholds a reply for safety reasons."""

    status_code: ClassVar[int] = 400
