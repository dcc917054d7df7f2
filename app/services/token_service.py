"""Signed access tokens (JWT, HS256).

Tokens are ``header.payload.signature`` with base64url segments, signed
with HMAC-SHA256 under one process-wide secret taken from configuration.
There is no refresh flow: once a token expires the user logs in again.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import jwt
from jwt.exceptions import InvalidTokenError
from jwt.utils import base64url_decode, base64url_encode
from pydantic import ValidationError

from app.schemas.auth import TokenPayload

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_TTL_SECONDS = 3600


class TokenService:
    """Issue, verify and inspect HS256 tokens.

    Args:
        secret: Shared HMAC secret.
        ttl_seconds: Lifetime of issued tokens.
        clock: Time source returning UNIX seconds; injectable for tests.
    """

    def __init__(
        self,
        secret: str,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("token secret must be a non-empty string")
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")
        self._secret = secret
        self._ttl = ttl_seconds
        self._clock = clock

    def issue(self, user_id: str, username: str) -> str:
        """Sign a token for ``user_id`` valid for the configured TTL."""
        now = int(self._clock())
        claims = {
            "userId": user_id,
            "username": username,
            "iat": now,
            "exp": now + self._ttl,
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> TokenPayload | None:
        """Return the payload of a correctly signed, unexpired token.

        Fails (returns None) when the token does not have exactly three
        segments, when its signature does not match, or once ``exp`` has
        been reached.
        """
        if not self._has_canonical_signature(token):
            return None

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "iat"], "verify_exp": False, "verify_iat": False},
            )
        except InvalidTokenError as exc:
            logger.info("token.rejected", extra={"reason": type(exc).__name__})
            return None

        payload = self._to_payload(claims)
        if payload is None:
            return None

        # Expiry is checked against the injected clock, not PyJWT's own
        if payload.expires_at <= int(self._clock()):
            logger.info(
                "token.rejected",
                extra={"reason": "expired", "user_id": payload.user_id},
            )
            return None
        return payload

    def decode(self, token: str) -> TokenPayload | None:
        """Read the payload without checking signature or expiry.

        Only for inspection (e.g. logging who owned a rejected token);
        never base an authorization decision on the result.
        """
        try:
            claims = jwt.decode(token, options={"verify_signature": False})
        except InvalidTokenError:
            return None
        return self._to_payload(claims)

    @staticmethod
    def _has_canonical_signature(token: str) -> bool:
        """Require three segments and a signature in canonical base64url form.

        Base64 leaves spare low bits in the final character, so two
        different strings can decode to the same bytes. Rejecting
        non-canonical encodings makes any altered character invalid.
        """
        segments = token.split(".")
        if len(segments) != 3 or not all(segments):
            return False
        signature = segments[2].encode("ascii", errors="replace")
        try:
            return base64url_encode(base64url_decode(signature)) == signature
        except (ValueError, TypeError):
            return False

    @staticmethod
    def _to_payload(claims: dict[str, Any]) -> TokenPayload | None:
        try:
            return TokenPayload.model_validate(claims)
        except ValidationError:
            return None
