"""HTTP middleware for correlation ids, rate limit and security headers.

- ``request_id_middleware`` accepts an incoming X-Request-ID (or generates a
  UUID), exposes it to logging via contextvars and echoes it back along with
  the request duration.
- ``rate_limit_headers_middleware`` copies the X-RateLimit-* headers computed
  by the rate limit dependency onto the outgoing response, whatever its
  status.
- ``security_headers_middleware`` adds the browser hardening headers.
- ``unhandled_error_middleware`` renders unexpected exceptions as the 500
  envelope inside the stack, so 500s carry the headers above as well.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from app.core.exception_handlers import general_exception_handler
from app.core.logging import clear_request_id, set_request_id

SECURITY_HEADERS: dict[str, str] = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=(), interest-cohort=()",
}


async def request_id_middleware(request: Request, call_next) -> Response:
    """Attach a correlation id and timing header to every request/response.

    Side Effects:
        - Sets request_id in contextvars (accessible via get_request_id())
        - Clears request_id from contextvars after request completes
        - Adds the request id header and X-Request-Duration-ms to the response
    """

    header_name = request.app.state.settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def rate_limit_headers_middleware(request: Request, call_next) -> Response:
    response: Response = await call_next(request)

    headers = getattr(request.state, "rate_limit_headers", None)
    if headers:
        for name, value in headers.items():
            response.headers.setdefault(name, value)
    return response


async def security_headers_middleware(request: Request, call_next) -> Response:
    response: Response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


async def unhandled_error_middleware(request: Request, call_next) -> Response:
    """Turn exceptions no handler claimed into the generic 500 response."""
    try:
        return await call_next(request)
    except Exception as exc:
        return await general_exception_handler(request, exc)
