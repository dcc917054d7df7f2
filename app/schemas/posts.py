"""Pydantic schemas for blog posts and their listing responses."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator, model_validator

from app.schemas.common import ApiResponse, CamelModel, client_error

MIN_TITLE_CHARS = 3
MIN_DESCRIPTION_CHARS = 10


class Post(CamelModel):
    """A blog post as held by the post store."""

    id: str = Field(..., description="Sequential integer id rendered as a string.")
    title: str
    description: str
    created_at: datetime
    updated_at: datetime


def _check_title(value: str) -> str:
    value = value.strip()
    if len(value) < MIN_TITLE_CHARS:
        raise client_error(f"Title must be at least {MIN_TITLE_CHARS} characters long")
    return value


def _check_description(value: str) -> str:
    value = value.strip()
    if len(value) < MIN_DESCRIPTION_CHARS:
        raise client_error(
            f"Description must be at least {MIN_DESCRIPTION_CHARS} characters long"
        )
    return value


class PostCreate(CamelModel):
    """Body of ``POST /api/posts``; fields are trimmed before length checks."""

    title: str = ""
    description: str = ""

    @field_validator("title")
    @classmethod
    def _title(cls, value: str) -> str:
        return _check_title(value)

    @field_validator("description")
    @classmethod
    def _description(cls, value: str) -> str:
        return _check_description(value)

    @model_validator(mode="after")
    def _required(self) -> "PostCreate":
        if not self.title or not self.description:
            raise client_error(
                "Missing required fields: title and description are required"
            )
        return self


class PostUpdate(CamelModel):
    """Body of ``PUT /api/protected/posts/{id}``; at least one field is required."""

    title: str | None = None
    description: str | None = None

    @field_validator("title")
    @classmethod
    def _title(cls, value: str | None) -> str | None:
        return None if value is None else _check_title(value)

    @field_validator("description")
    @classmethod
    def _description(cls, value: str | None) -> str | None:
        return None if value is None else _check_description(value)

    @model_validator(mode="after")
    def _at_least_one(self) -> "PostUpdate":
        if self.title is None and self.description is None:
            raise client_error(
                "At least one field (title or description) must be provided"
            )
        return self


class PaginationMeta(CamelModel):
    current_page: int
    items_per_page: int
    total_pages: int
    total_items: int
    has_next_page: bool
    has_previous_page: bool


class PostListResponse(ApiResponse[list[Post]]):
    """Offset-paginated listing."""

    total: int
    pagination: PaginationMeta | None = None


class PostCursorResponse(ApiResponse[list[Post]]):
    """Cursor-paginated listing for infinite scrolling clients."""

    next_cursor: str | None = None
    has_more: bool
