"""Rate limiter interfaces.

The API should depend on this abstraction (not the concrete implementation)
so a stronger algorithm can be swapped in while keeping the
``check(client_id) -> RateLimitResult`` contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, client_id: str) -> RateLimitResult:
        """Count one request for ``client_id`` and decide whether it may proceed.

        Args:
            client_id: Unique identifier (e.g., client IP address).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def sweep(self) -> int:
        """Drop state for windows that have already ended.

        Returns:
            Number of client entries removed.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self, client_id: str) -> None:
        """Forget any state held for ``client_id``."""
        raise NotImplementedError
