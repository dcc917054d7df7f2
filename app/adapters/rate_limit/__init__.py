"""Rate limiting adapters.

The HTTP layer depends on ``AbstractRateLimiter`` only, so the fixed-window
limiter can be replaced by a token-bucket or sliding-log implementation
without touching the routes.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = ["AbstractRateLimiter", "InMemoryFixedWindowRateLimiter", "RateLimitResult"]
