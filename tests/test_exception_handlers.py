"""Tests for global exception handlers.

Validates that all exception types are rendered in the same envelope
(``success``/``error``/``message``/``statusCode``) with the proper HTTP
status code and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI, Query
from fastapi.testclient import TestClient

from app.core.errors import (
    AppError,
    AuthenticationAppError,
    AuthorizationAppError,
    ConflictAppError,
    NotFoundAppError,
    RateLimitAppError,
    category_for_status,
)
from app.core.exception_handlers import (
    describe_validation_error,
    general_exception_handler,
    setup_exception_handlers,
)
from app.schemas.posts import PostCreate


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    @pytest.mark.parametrize(
        "error_cls,status_code,category",
        [
            (AppError, 400, "Bad Request"),
            (AuthenticationAppError, 401, "Unauthorized"),
            (AuthorizationAppError, 403, "Forbidden"),
            (NotFoundAppError, 404, "Not Found"),
            (ConflictAppError, 409, "Conflict"),
        ],
    )
    def test_status_and_category(
        self,
        client: TestClient,
        app_with_handlers: FastAPI,
        error_cls: type[AppError],
        status_code: int,
        category: str,
    ):
        @app_with_handlers.get("/boom")
        async def endpoint():
            raise error_cls(code="test", message="Something failed")

        response = client.get("/boom")

        assert response.status_code == status_code
        assert response.json() == {
            "success": False,
            "error": category,
            "message": "Something failed",
            "statusCode": status_code,
        }

    def test_details_are_not_rendered(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/missing")
        async def endpoint():
            raise NotFoundAppError(
                code="post_not_found",
                message="Post with ID '9' not found",
                details={"post_id": "9"},
            )

        data = client.get("/missing").json()

        assert "details" not in data
        assert "post_not_found" not in json.dumps(data)

    def test_rate_limit_error_sets_retry_after(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/limited")
        async def endpoint():
            raise RateLimitAppError(
                code="rate_limit_exceeded",
                message="Rate limit exceeded. Please try again later.",
                details={"retry_after": 42},
            )

        response = client.get("/limited")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "42"
        assert response.json() == {
            "success": False,
            "error": "Too Many Requests",
            "message": "Rate limit exceeded. Please try again later.",
            "statusCode": 429,
            "retryAfter": 42,
        }


class TestValidationErrorHandler:
    def test_query_error_is_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/items")
        async def endpoint(page: int = Query(1, ge=1)):
            return {"page": page}

        response = client.get("/items", params={"page": 0})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Bad Request"
        assert data["message"].startswith("Invalid page parameter:")

    def test_invalid_json_body(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.post("/items")
        async def endpoint(body: PostCreate):
            return body

        response = client.post(
            "/items", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid JSON in request body"

    def test_missing_body(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.post("/items")
        async def endpoint(body: PostCreate):
            return body

        response = client.post("/items")

        assert response.status_code == 400
        assert response.json()["message"] == "Request body is required"

    def test_describe_missing_field(self):
        error = {"type": "missing", "loc": ("body", "username"), "msg": "Field required"}

        assert describe_validation_error(error) == "Missing required field: username"


class TestHttpExceptionHandler:
    def test_unknown_route_uses_envelope(self, client: TestClient):
        response = client.get("/nope")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": "Not Found",
            "message": "Not Found",
            "statusCode": 404,
        }

    def test_wrong_method(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/only-get")
        async def endpoint():
            return {}

        response = client.delete("/only-get")

        assert response.status_code == 405
        assert response.json()["error"] == "Method Not Allowed"


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_returns_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/crash")
        async def endpoint():
            raise RuntimeError("database connection failed")

        response = client.get("/crash")

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Internal Server Error"
        assert data["statusCode"] == 500
        assert "database connection" not in data["message"]

    def test_general_exception_handler_never_leaks_stack_trace(self):
        """Verify stack traces are never included in response."""
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = ValueError("Test error with details")
        response = asyncio.run(general_exception_handler(request, exc))

        response_text = bytes(response.body).decode()
        assert response.status_code == 500
        assert "Traceback" not in response_text
        assert "ValueError" not in response_text
        assert "Test error with details" not in response_text


class TestErrorHandlerIntegration:
    def test_setup_exception_handlers_registers_handlers(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_category_for_unlisted_status(self):
        assert category_for_status(418) == "Bad Request"
        assert category_for_status(503) == "Internal Server Error"
