"""Process-wide service container.

Stores, cache, limiter and token service are built once by the app factory
and hung on ``app.state.container`` next to ``app.state.settings``; routes
reach them through the ``get_container`` and ``get_settings`` dependencies
instead of module-level singletons.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.core.config import Settings
from app.services.password_hasher import PasswordHasher
from app.services.post_store import PostStore
from app.services.token_service import TokenService
from app.services.user_store import UserStore
from app.utils.response_cache import ResponseCache


@dataclass
class ServiceContainer:
    posts: PostStore
    users: UserStore
    tokens: TokenService
    cache: ResponseCache
    rate_limiter: AbstractRateLimiter


def build_container(settings: Settings) -> ServiceContainer:
    """Construct every shared service from configuration.

    Args:
        settings: Resolved application settings.

    Returns:
        A fresh container with empty (or demo-seeded) stores.
    """
    posts = PostStore()
    if settings.app.seed_demo_posts:
        posts.seed()

    return ServiceContainer(
        posts=posts,
        users=UserStore(hasher=PasswordHasher(rounds=settings.auth.bcrypt_rounds)),
        tokens=TokenService(
            secret=settings.auth.jwt_secret,
            ttl_seconds=settings.auth.token_ttl_seconds,
        ),
        cache=ResponseCache(default_ttl_seconds=settings.app.posts_cache_ttl_seconds),
        rate_limiter=InMemoryFixedWindowRateLimiter(
            limit=settings.app.rate_limit_requests,
            window_seconds=settings.app.rate_limit_window_seconds,
        ),
    )


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the container of the running app."""
    return request.app.state.container


def get_settings(request: Request) -> Settings:
    """FastAPI dependency returning the settings the running app was built with."""
    return request.app.state.settings
