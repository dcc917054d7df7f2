"""Global exception handlers for consistent error responses.

Every failure leaves the API in the same envelope:

    {"success": false, "error": "<category>", "message": "...", "statusCode": 400}

Design:
- AppError and its subclasses carry their own status (400/401/403/404/409/429)
- RequestValidationError (bad body, query or malformed JSON) -> 400
- Starlette HTTPException (unknown route, wrong method) -> its status
- Unexpected Exception -> generic 500, details only in the logs. In the app
  this handler is reached through ``unhandled_error_middleware`` so the 500
  still passes the header middlewares.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import AppError, RateLimitAppError, category_for_status
from app.core.logging import get_request_id
from app.schemas.common import CLIENT_MESSAGE_ERROR, ErrorResponse

logger = logging.getLogger(__name__)


def error_response(
    status_code: int,
    message: str,
    *,
    category: str | None = None,
    retry_after: int | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Render the standard error envelope."""
    body = ErrorResponse(
        error=category or category_for_status(status_code),
        message=message,
        status_code=status_code,
        retry_after=retry_after,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
        headers=headers,
    )


def describe_validation_error(error: dict[str, Any]) -> str:
    """Turn the first pydantic error of a request into a client message."""

    if error.get("type") == "json_invalid":
        return "Invalid JSON in request body"
    if error.get("type") == CLIENT_MESSAGE_ERROR:
        return error["msg"]

    loc = [str(part) for part in error.get("loc", ())]
    source = loc[0] if loc else "body"
    field = loc[-1] if len(loc) > 1 else None

    if source == "query" and field:
        return f"Invalid {field} parameter: {error['msg'].lower()}"
    if error.get("type") == "missing" and field:
        return f"Missing required field: {field}"
    if error.get("type") == "missing":
        return "Request body is required"
    if field:
        return f"Invalid {field}: {error['msg'].lower()}"
    return error.get("msg", "Invalid request")


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors using their declared status."""

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": exc.status_code,
            "details": exc.details,
            "request_path": request.url.path,
        },
    )

    retry_after = None
    headers = None
    if isinstance(exc, RateLimitAppError) and exc.details:
        retry_after = exc.details.get("retry_after")
        if retry_after is not None:
            headers = {"Retry-After": str(retry_after)}

    return error_response(
        exc.status_code,
        exc.message,
        category=exc.category,
        retry_after=retry_after,
        headers=headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = describe_validation_error(errors[0]) if errors else "Invalid request"

    logger.info(
        "request_validation_failed",
        extra={
            "request_path": request.url.path,
            "error_count": len(errors),
            "first_error_type": errors[0].get("type") if errors else None,
        },
    )
    return error_response(400, message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs the failure for debugging while returning an opaque message, so no
    stack traces or internals leak to clients.
    """
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )
    return error_response(500, "An unexpected error occurred. Please try again later.")


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(validation_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
