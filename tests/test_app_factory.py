"""Tests for application assembly: lifespan sweeper, OpenAPI docs, wiring."""

import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.core.app_factory import create_app, sweep_rate_limits
from app.core.config import Settings, settings
from app.core.container import ServiceContainer, build_container


class FakeClock:
    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_sweeper_drops_expired_windows() -> None:
    clock = FakeClock(1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=5, window_seconds=10, clock=clock)
    limiter.check("203.0.113.1")
    clock.now = 1011.0

    task = asyncio.create_task(sweep_rate_limits(limiter, 0.01))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(limiter) == 0


def test_lifespan_starts_and_stops_cleanly(container: ServiceContainer) -> None:
    app = create_app(container=container)

    with TestClient(app) as client:
        assert client.get("/health").status_code == 200


def test_app_uses_injected_container(app: FastAPI, container: ServiceContainer) -> None:
    assert app.state.container is container


def test_demo_posts_are_seeded_when_enabled() -> None:
    cfg = settings.model_copy(
        update={"app": settings.app.model_copy(update={"seed_demo_posts": True})}
    )

    container = build_container(cfg)

    assert container.posts.count() == 3
    assert [p.id for p in container.posts.list()] == ["1", "2", "3"]


def test_openapi_declares_security_schemes(client: TestClient) -> None:
    schema = client.get("/openapi.json").json()

    schemes = schema["components"]["securitySchemes"]
    assert schemes["ApiKeyAuth"]["name"] == "x-api-key"
    assert schemes["BearerAuth"]["scheme"] == "bearer"
    assert schema["paths"]["/api/protected/posts"]["get"]["security"] == [{"ApiKeyAuth": []}]
    assert schema["paths"]["/api/auth/me"]["get"]["security"] == [{"BearerAuth": []}]
    assert "security" not in schema["paths"]["/api/posts"]["get"]
    assert {t["name"] for t in schema["tags"]} >= {"Posts", "Protected", "Auth", "Health"}


def _with_app_settings(**overrides) -> Settings:
    return settings.model_copy(update={"app": settings.app.model_copy(update=overrides)})


class TestPerAppSettings:
    """An app built with explicit settings uses them over the global ones."""

    def test_rate_limiting_can_be_disabled(self) -> None:
        cfg = _with_app_settings(rate_limit_enabled=False, rate_limit_requests=1)
        client = TestClient(create_app(settings=cfg, container=build_container(cfg)))

        responses = [client.get("/api/posts") for _ in range(3)]

        assert [r.status_code for r in responses] == [200, 200, 200]
        assert "X-RateLimit-Limit" not in responses[-1].headers

    def test_api_keys_come_from_app_settings(self) -> None:
        cfg = _with_app_settings(api_keys="per-app-key")
        client = TestClient(create_app(settings=cfg, container=build_container(cfg)))

        assert client.get("/api/protected/posts", headers={"x-api-key": "per-app-key"}).status_code == 200
        assert client.get("/api/protected/posts", headers={"x-api-key": "test-api-key-123"}).status_code == 403

    def test_api_key_check_can_be_disabled(self) -> None:
        cfg = _with_app_settings(api_key_required=False)
        client = TestClient(create_app(settings=cfg, container=build_container(cfg)))

        assert client.get("/api/protected/posts").status_code == 200

    def test_cache_ttl_drives_cache_control(self) -> None:
        cfg = _with_app_settings(posts_cache_ttl_seconds=60)
        client = TestClient(create_app(settings=cfg, container=build_container(cfg)))

        assert client.get("/api/posts").headers["Cache-Control"] == "private, max-age=60"

    def test_request_id_header_name(self) -> None:
        cfg = settings.model_copy(
            update={"log": settings.log.model_copy(update={"request_id_header": "X-Correlation-ID"})}
        )
        client = TestClient(create_app(settings=cfg, container=build_container(cfg)))

        response = client.get("/health", headers={"X-Correlation-ID": "corr-7"})

        assert response.headers["X-Correlation-ID"] == "corr-7"
        assert "X-Request-ID" not in response.headers


def test_unexpected_error_keeps_response_headers(container: ServiceContainer) -> None:
    def broken_list(*args, **kwargs):
        raise RuntimeError("store exploded")

    container.posts.list = broken_list  # type: ignore[method-assign]
    client = TestClient(create_app(container=container))

    response = client.get("/api/posts", headers={"X-Request-ID": "req-500"})

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Internal Server Error",
        "message": "An unexpected error occurred. Please try again later.",
        "statusCode": 500,
    }
    assert response.headers["X-Request-ID"] == "req-500"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-RateLimit-Limit"] == "100"
