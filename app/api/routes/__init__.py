from __future__ import annotations

from app.api.routes.auth import router as auth_router
from app.api.routes.health import router as health_router
from app.api.routes.posts import router as posts_router
from app.api.routes.protected_posts import router as protected_posts_router

__all__ = ["auth_router", "health_router", "posts_router", "protected_posts_router"]
