"""Rate limiting dependency for FastAPI routes.

Strategy:
- Fixed-window limit per client, keyed by IP address (first entry of
  ``X-Forwarded-For``, then ``X-Real-IP``, then the socket peer).
- The decision's ``X-RateLimit-*`` headers are stashed on ``request.state``
  and copied onto every response by ``rate_limit_headers_middleware``.
- Exceeding the limit raises ``RateLimitAppError`` (HTTP 429, Retry-After).
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import Depends, Request

from app.adapters.rate_limit.base import RateLimitResult
from app.core.config import Settings
from app.core.container import ServiceContainer, get_container, get_settings
from app.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_ID = "127.0.0.1"


def client_identifier(request: Request) -> str:
    """Derive the rate limit key for the current request."""

    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host
    return DEFAULT_CLIENT_ID


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    reset = datetime.fromtimestamp(result.reset_at, tz=timezone.utc)
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": reset.isoformat().replace("+00:00", "Z"),
    }
    if result.retry_after_seconds is not None:
        headers["Retry-After"] = str(result.retry_after_seconds)
    return headers


def _hash_client_id(client_id: str) -> str:
    """Hash the client id for logging without exposing raw addresses."""
    return hashlib.sha256(client_id.encode()).hexdigest()[:16]


async def enforce_rate_limit(
    request: Request,
    container: Annotated[ServiceContainer, Depends(get_container)],
    app_settings: Annotated[Settings, Depends(get_settings)],
) -> None:
    """FastAPI dependency counting the request against the client's window.

    Raises:
        RateLimitAppError: 429 Too Many Requests when the limit is exceeded.
    """

    if not app_settings.app.rate_limit_enabled:
        return

    client_id = client_identifier(request)
    result = container.rate_limiter.check(client_id)
    request.state.rate_limit_headers = rate_limit_headers(result)

    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "client_hash": _hash_client_id(client_id),
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "client_hash": _hash_client_id(client_id),
            "limit": result.limit,
            "retry_after_s": retry_after,
            "path": request.url.path,
        },
    )
    raise RateLimitAppError(
        code="rate_limit_exceeded",
        message="Rate limit exceeded. Please try again later.",
        details={"retry_after": retry_after},
    )
