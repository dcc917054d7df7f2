"""ETag helpers for conditional GET handling."""

from __future__ import annotations

import hashlib


def generate_etag(body: bytes | str) -> str:
    """Return the md5 hex digest of a serialized response body.

    md5 is only used as a change detector here, not for security.
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    return hashlib.md5(body, usedforsecurity=False).hexdigest()


def etag_matches(if_none_match: str | None, etag: str) -> bool:
    """Check whether an ``If-None-Match`` header names ``etag``.

    The header may hold several comma-separated tags, each quoted or bare.

    Examples:
        >>> etag_matches('"abc", "def"', "def")
        True
        >>> etag_matches("abc", "abc")
        True
        >>> etag_matches(None, "abc")
        False
    """
    if not if_none_match:
        return False

    candidates = {tag.strip() for tag in if_none_match.split(",")}
    return etag in candidates or f'"{etag}"' in candidates
