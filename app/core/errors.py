"""Application-level exception types.

Routes raise these after boundary validation; the global handlers in
``app.core.exception_handlers`` turn them into the uniform error body.
Stores never raise them, they signal "not found" with ``None``/``False``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for logs.

    Never rendered to clients; the public body carries only the category
    and message.
    """

    field: str
    post_id: str
    username: str
    retry_after: int
    context: NotRequired[dict[str, Any]]


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
    category: ClassVar[str] = "Bad Request"

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class AuthenticationAppError(AppError):
    """Raised when credentials, API key or token are missing or invalid."""

    status_code = 401
    category = "Unauthorized"


class AuthorizationAppError(AppError):
    """Raised when a supplied API key is not on the allow-list."""

    status_code = 403
    category = "Forbidden"


class NotFoundAppError(AppError):
    status_code = 404
    category = "Not Found"


class ConflictAppError(AppError):
    """Raised when a unique field (username/email) is already taken."""

    status_code = 409
    category = "Conflict"


class RateLimitAppError(AppError):
    status_code = 429
    category = "Too Many Requests"


STATUS_CATEGORIES: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    413: "Payload Too Large",
    415: "Unsupported Media Type",
    429: "Too Many Requests",
    500: "Internal Server Error",
}


def category_for_status(status_code: int) -> str:
    """Return the error category label for an HTTP status code."""
    return STATUS_CATEGORIES.get(
        status_code,
        "Internal Server Error" if status_code >= 500 else "Bad Request",
    )
