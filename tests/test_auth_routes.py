"""Tests for /api/auth login, registration and current user endpoints."""

import pytest
from fastapi.testclient import TestClient

from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.core.app_factory import create_app
from app.core.container import ServiceContainer

ALICE = {"username": "alice", "email": "alice@example.com", "password": "secret1"}


@pytest.fixture
def registered(client: TestClient) -> dict:
    response = client.post("/api/auth/register", json=ALICE)
    assert response.status_code == 201
    return response.json()["data"]


class TestRegister:
    def test_registers_user_without_exposing_password(self, client: TestClient) -> None:
        response = client.post("/api/auth/register", json=ALICE)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["id"] == "1"
        assert body["data"]["username"] == "alice"
        assert body["data"]["email"] == "alice@example.com"
        assert "createdAt" in body["data"]
        assert "password" not in response.text
        assert "passwordHash" not in response.text

    def test_password_is_stored_hashed(self, client: TestClient, container: ServiceContainer) -> None:
        client.post("/api/auth/register", json=ALICE)

        user = container.users.find_by_username("alice")
        assert user is not None
        assert user.password_hash != ALICE["password"]
        assert user.password_hash.startswith("$2")

    def test_duplicate_username_is_409(self, client: TestClient, registered: dict) -> None:
        response = client.post(
            "/api/auth/register", json={**ALICE, "email": "other@example.com"}
        )

        assert response.status_code == 409
        assert response.json()["error"] == "Conflict"
        assert response.json()["message"] == "Username already exists"

    def test_duplicate_email_is_409(self, client: TestClient, registered: dict) -> None:
        response = client.post("/api/auth/register", json={**ALICE, "username": "alice2"})

        assert response.status_code == 409
        assert response.json()["message"] == "Email already exists"

    @pytest.mark.parametrize(
        "payload,message",
        [
            ({"username": "alice", "password": "secret1"}, "Username, password, and email are required"),
            ({**ALICE, "username": "al"}, "Username must be between 3 and 20 characters"),
            ({**ALICE, "username": "a" * 21}, "Username must be between 3 and 20 characters"),
            ({**ALICE, "email": "not-an-email"}, "Invalid email format"),
            ({**ALICE, "password": "12345"}, "Password must be at least 6 characters long"),
        ],
    )
    def test_validation(self, client: TestClient, payload: dict, message: str) -> None:
        response = client.post("/api/auth/register", json=payload)

        assert response.status_code == 400
        assert response.json()["message"] == message

    def test_long_password_registers_and_logs_in(self, client: TestClient) -> None:
        account = {"username": "longpw", "email": "l@example.com", "password": "x" * 80}

        registered = client.post("/api/auth/register", json=account)
        login = client.post(
            "/api/auth/login",
            json={"username": "longpw", "password": account["password"]},
        )

        assert registered.status_code == 201
        assert login.status_code == 200

    def test_register_is_rate_limited(self, container: ServiceContainer) -> None:
        container.rate_limiter = InMemoryFixedWindowRateLimiter(
            limit=1, window_seconds=60, clock=lambda: 1000.0
        )
        client = TestClient(create_app(container=container))

        assert client.post("/api/auth/register", json=ALICE).status_code == 201
        response = client.post("/api/auth/register", json={**ALICE, "username": "bob"})
        assert response.status_code == 429


class TestLogin:
    def test_login_returns_token_and_user(self, client: TestClient, registered: dict) -> None:
        response = client.post(
            "/api/auth/login", json={"username": "alice", "password": "secret1"}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["token"].count(".") == 2
        assert data["user"] == {"id": "1", "username": "alice", "email": "alice@example.com"}

    @pytest.mark.parametrize(
        "credentials",
        [
            {"username": "alice", "password": "wrong-password"},
            {"username": "nobody", "password": "secret1"},
        ],
    )
    def test_bad_credentials_are_401(self, client: TestClient, registered: dict, credentials: dict) -> None:
        response = client.post("/api/auth/login", json=credentials)

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid username or password"

    @pytest.mark.parametrize("payload", [{}, {"username": "alice"}, {"password": "secret1"}])
    def test_missing_fields_are_400(self, client: TestClient, payload: dict) -> None:
        response = client.post("/api/auth/login", json=payload)

        assert response.status_code == 400
        assert response.json()["message"] == "Username and password are required"

    def test_login_is_not_rate_limited(self, client: TestClient, registered: dict) -> None:
        response = client.post(
            "/api/auth/login", json={"username": "alice", "password": "secret1"}
        )

        assert "X-RateLimit-Limit" not in response.headers


class TestCurrentUser:
    def test_me_with_valid_token(self, client: TestClient, registered: dict) -> None:
        token = client.post(
            "/api/auth/login", json={"username": "alice", "password": "secret1"}
        ).json()["data"]["token"]

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["data"]["username"] == "alice"

    def test_me_without_header(self, client: TestClient) -> None:
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["message"] == "Authorization header is required"

    def test_me_with_garbage_token(self, client: TestClient) -> None:
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer a.b.c"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token"

    def test_me_for_unknown_user(self, client: TestClient, container: ServiceContainer) -> None:
        token = container.tokens.issue("42", "ghost")

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
