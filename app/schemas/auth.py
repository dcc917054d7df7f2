"""Pydantic schemas for login, registration and token payloads."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import Field, field_validator, model_validator

from app.schemas.common import CamelModel, client_error

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
USERNAME_MIN_CHARS = 3
USERNAME_MAX_CHARS = 20
PASSWORD_MIN_CHARS = 6


class User(CamelModel):
    """Stored user account. Never returned directly; see ``UserPublic``."""

    id: str
    username: str
    password_hash: str
    email: str
    created_at: datetime


class UserPublic(CamelModel):
    id: str
    username: str
    email: str
    created_at: datetime | None = None


class LoginRequest(CamelModel):
    username: str = ""
    password: str = ""

    @model_validator(mode="after")
    def _required(self) -> "LoginRequest":
        if not self.username or not self.password:
            raise client_error("Username and password are required")
        return self


class RegisterRequest(CamelModel):
    """Registration body; checks run in declaration order."""

    username: str = ""
    password: str = ""
    email: str = ""

    @model_validator(mode="after")
    def _validate(self) -> "RegisterRequest":
        if not self.username or not self.password or not self.email:
            raise client_error("Username, password, and email are required")
        if not USERNAME_MIN_CHARS <= len(self.username) <= USERNAME_MAX_CHARS:
            raise client_error(
                f"Username must be between {USERNAME_MIN_CHARS} and "
                f"{USERNAME_MAX_CHARS} characters"
            )
        if not EMAIL_PATTERN.match(self.email):
            raise client_error("Invalid email format")
        if len(self.password) < PASSWORD_MIN_CHARS:
            raise client_error(
                f"Password must be at least {PASSWORD_MIN_CHARS} characters long"
            )
        return self


class LoginResult(CamelModel):
    token: str
    user: UserPublic


class TokenPayload(CamelModel):
    """Claims carried by an issued token (``userId``, ``username``, ``iat``, ``exp``)."""

    user_id: str
    username: str
    issued_at: int = Field(..., alias="iat")
    expires_at: int = Field(..., alias="exp")

    @field_validator("user_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        return str(value) if isinstance(value, int) else value
