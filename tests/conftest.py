"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any app import so the global settings
object is built from test values (short bcrypt cost, no demo posts).
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret-key-that-is-at-least-32-bytes")
os.environ.setdefault("AUTH_BCRYPT_ROUNDS", "4")
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("APP_SEED_DEMO_POSTS", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.app_factory import create_app
from app.core.config import settings
from app.core.container import ServiceContainer, build_container


@pytest.fixture
def container() -> ServiceContainer:
    """Fresh stores, cache and limiter for each test."""
    return build_container(settings)


@pytest.fixture
def app(container: ServiceContainer) -> FastAPI:
    return create_app(container=container)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def api_key_headers() -> dict[str, str]:
    return {"x-api-key": "test-api-key-123"}
