"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Windows start at a client's first request, not on wall-clock boundaries.
  Bursts straddling a reset can reach twice the nominal rate.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)


@dataclass
class _WindowState:
    count: int
    reset_at: float


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests per client within a fixed window.

    The first request from a client opens a window of ``window_seconds``.
    Requests inside the window are counted until ``limit`` is reached; after
    that they are rejected until the window ends, at which point the next
    request opens a fresh window with a count of 1.

    Expired windows are dropped by ``sweep()``, which the application runs
    periodically to bound memory.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of allowed requests per window.
            window_seconds: Length of a window in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._state_by_client: dict[str, _WindowState] = {}

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_client)

    def check(self, client_id: str) -> RateLimitResult:
        """Count a request for ``client_id``.

        Args:
            client_id: Unique identifier for rate limiting (e.g., client IP).

        Returns:
            RateLimitResult with allowance decision and metadata. A blocked
            result leaves the window's ``reset_at`` untouched.

        Raises:
            ValueError: If client_id is empty.
        """
        if not client_id:
            raise ValueError("client_id must be a non-empty string")

        now = self._clock()

        with self._lock:
            state = self._state_by_client.get(client_id)

            if state is None or now >= state.reset_at:
                state = _WindowState(count=1, reset_at=now + self._window_seconds)
                self._state_by_client[client_id] = state
                return self._allowed(state)

            if state.count < self._limit:
                state.count += 1
                return self._allowed(state)

            return RateLimitResult(
                allowed=False,
                limit=self._limit,
                remaining=0,
                reset_at=state.reset_at,
                retry_after_seconds=max(0, int(math.ceil(state.reset_at - now))),
            )

    def _allowed(self, state: _WindowState) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=max(0, self._limit - state.count),
            reset_at=state.reset_at,
            retry_after_seconds=None,
        )

    def sweep(self) -> int:
        """Remove windows whose reset time has passed."""
        now = self._clock()
        with self._lock:
            expired = [
                client_id
                for client_id, state in self._state_by_client.items()
                if now >= state.reset_at
            ]
            for client_id in expired:
                del self._state_by_client[client_id]

        if expired:
            logger.debug("rate_limit.sweep", extra={"removed": len(expired)})
        return len(expired)

    def reset(self, client_id: str) -> None:
        with self._lock:
            self._state_by_client.pop(client_id, None)

    def stats(self, client_id: str) -> tuple[int, float] | None:
        """Return ``(count, reset_at)`` for an active window, else None.

        An expired window found here is dropped on the spot.
        """
        now = self._clock()
        with self._lock:
            state = self._state_by_client.get(client_id)
            if state is None:
                return None
            if now >= state.reset_at:
                del self._state_by_client[client_id]
                return None
            return state.count, state.reset_at
