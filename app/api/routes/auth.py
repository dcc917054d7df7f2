"""Login, registration and current-user endpoints."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.core.auth import require_bearer_token
from app.core.container import ServiceContainer, get_container
from app.core.errors import AuthenticationAppError, ConflictAppError
from app.core.rate_limit import enforce_rate_limit
from app.schemas.auth import (
    LoginRequest,
    LoginResult,
    RegisterRequest,
    TokenPayload,
    User,
    UserPublic,
)
from app.schemas.common import ApiResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

ContainerDep = Annotated[ServiceContainer, Depends(get_container)]


def _public(user: User, *, with_created_at: bool = True) -> UserPublic:
    return UserPublic(
        id=user.id,
        username=user.username,
        email=user.email,
        created_at=user.created_at if with_created_at else None,
    )


@router.post("/login", response_model=ApiResponse[LoginResult], response_model_exclude_none=True)
def login(body: LoginRequest, container: ContainerDep) -> ApiResponse[LoginResult]:
    """Exchange username/password for a signed token valid for one hour."""
    user = container.users.validate_credentials(body.username, body.password)
    if user is None:
        logger.warning("auth.login_failed", extra={"username": body.username})
        raise AuthenticationAppError(
            code="invalid_credentials",
            message="Invalid username or password",
        )

    token = container.tokens.issue(user.id, user.username)
    logger.info("auth.login_succeeded", extra={"user_id": user.id})
    return ApiResponse[LoginResult](
        data=LoginResult(token=token, user=_public(user, with_created_at=False)),
        message="Login successful",
    )


@router.post(
    "/register",
    response_model=ApiResponse[UserPublic],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_rate_limit)],
)
def register(body: RegisterRequest, container: ContainerDep) -> ApiResponse[UserPublic]:
    if container.users.find_by_username(body.username):
        raise ConflictAppError(
            code="username_taken",
            message="Username already exists",
            details={"field": "username"},
        )
    if container.users.find_by_email(body.email):
        raise ConflictAppError(
            code="email_taken",
            message="Email already exists",
            details={"field": "email"},
        )

    user = container.users.create_user(body.username, body.password, body.email)
    return ApiResponse[UserPublic](data=_public(user), message="User registered successfully")


@router.get("/me", response_model=ApiResponse[UserPublic])
def current_user(
    payload: Annotated[TokenPayload, Depends(require_bearer_token)],
    container: ContainerDep,
) -> ApiResponse[UserPublic]:
    """Return the account the bearer token was issued to."""
    user = container.users.get_by_id(payload.user_id)
    if user is None:
        raise AuthenticationAppError(
            code="unknown_user",
            message="Invalid or expired token",
        )
    return ApiResponse[UserPublic](data=_public(user), message="User retrieved successfully")
