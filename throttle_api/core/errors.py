"""Application-level exception types.

Each error carries a stable, machine-readable ``code`` that ends up as the
``error`` field of the JSON response body, plus the HTTP status it maps to.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, TypedDict

RATE_LIMITED = "rate_limited"
INVALID_JSON = "invalid_json"
NOT_FOUND = "not_found"
METHOD_NOT_ALLOWED = "method_not_allowed"
HTTP_ERROR = "http_error"
INTERNAL_SERVER_ERROR = "internal_server_error"

RATE_LIMITED_MESSAGE = "Too many requests, please try again later."
NOT_FOUND_MESSAGE = "The requested resource was not found."
INTERNAL_SERVER_ERROR_MESSAGE = "Something went wrong on our end."


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    hint: str


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    status_code: ClassVar[int] = 400

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input cannot be parsed or validated."""

    status_code: ClassVar[int] = 400


class NotFoundAppError(AppError):
    """Raised when a resource or route does not exist."""

    status_code: ClassVar[int] = 404


@dataclass
class RateLimitedAppError(AppError):
    """An identity has used up its quota for the current window.

    The rate limit middleware sits outside the exception handlers, so it
    renders this error directly instead of raising it.
    """

    code: str = RATE_LIMITED
    message: str = RATE_LIMITED_MESSAGE

    status_code: ClassVar[int] = 429
