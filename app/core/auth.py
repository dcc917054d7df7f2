"""Request authentication dependencies.

Two schemes guard the API:
- ``x-api-key`` header checked against a configured allow-list
  (``/api/protected/*``)
- ``Authorization: Bearer <token>`` verified by the token service
  (``/api/auth/me``)

Both raise application errors that the global handlers render as 401/403.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Annotated

from fastapi import Depends, Header

from app.core.config import AppSettings, Settings, parse_csv, settings
from app.core.container import ServiceContainer, get_container, get_settings
from app.core.errors import AuthenticationAppError, AuthorizationAppError
from app.schemas.auth import TokenPayload

logger = logging.getLogger(__name__)


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Examples:
        >>> sorted(parse_api_keys("key1, key2 , key3 "))
        ['key1', 'key2', 'key3']
        >>> parse_api_keys(None)
        set()
    """
    return set(parse_csv(keys_string))


def _key_fingerprint(key: str) -> str:
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def validate_api_key(provided_key: str | None, app_settings: AppSettings | None = None) -> None:
    """Validate a provided API key against the configured allow-list.

    Pure validation logic without FastAPI dependencies for easy testing.

    Args:
        provided_key: Value of the x-api-key header, if any.
        app_settings: Settings of the running app; defaults to the global ones.

    Raises:
        AuthenticationAppError: If the key is missing.
        AuthorizationAppError: If the key is not on the allow-list, or no
            keys are configured while authentication is required.
    """
    cfg = app_settings or settings.app
    if not cfg.api_key_required:
        return

    if not provided_key:
        logger.warning("auth.missing_key", extra={"scheme": "api_key"})
        raise AuthenticationAppError(
            code="missing_api_key",
            message="API key is required. Please provide 'x-api-key' header.",
        )

    valid_keys = parse_api_keys(cfg.api_keys)
    if not valid_keys:
        logger.error("auth.api_keys_not_configured")
        raise AuthorizationAppError(
            code="api_keys_not_configured",
            message="Invalid API key provided.",
        )

    if provided_key not in valid_keys:
        logger.warning(
            "auth.invalid_key",
            extra={"scheme": "api_key", "key_fingerprint": _key_fingerprint(provided_key)},
        )
        raise AuthorizationAppError(
            code="invalid_api_key",
            message="Invalid API key provided.",
        )


async def verify_api_key(
    x_api_key: Annotated[str | None, Header(alias="x-api-key")] = None,
    app_settings: Annotated[Settings | None, Depends(get_settings)] = None,
) -> None:
    """FastAPI dependency for API key authentication.

    Usage:
        @router.get("/protected", dependencies=[Depends(verify_api_key)])
    """
    validate_api_key(x_api_key, app_settings.app if app_settings else None)
    logger.debug(
        "auth.success",
        extra={"scheme": "api_key", "key_fingerprint": _key_fingerprint(x_api_key or "")},
    )


def require_bearer_token(
    container: Annotated[ServiceContainer, Depends(get_container)],
    authorization: Annotated[str | None, Header()] = None,
) -> TokenPayload:
    """FastAPI dependency returning the verified token payload.

    Raises:
        AuthenticationAppError: If the header is missing, malformed, or the
            token fails verification.
    """
    if not authorization:
        raise AuthenticationAppError(
            code="missing_authorization",
            message="Authorization header is required",
        )

    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer" or not token or " " in token:
        raise AuthenticationAppError(
            code="malformed_authorization",
            message="Invalid authorization header format. Use 'Bearer <token>'",
        )

    payload = container.tokens.verify(token)
    if payload is None:
        claimed = container.tokens.decode(token)
        logger.warning(
            "auth.invalid_token",
            extra={"claimed_user_id": claimed.user_id if claimed else None},
        )
        raise AuthenticationAppError(
            code="invalid_token",
            message="Invalid or expired token",
        )

    return payload
