"""Public, rate-limited post endpoints.

Listings are cached per query (``posts:<page>:<limit>`` and
``posts:infinite:<cursor>:<limit>``), tagged with an ETag over the exact
response bytes, and answered with 304 when the client already holds that
version. Creating a post drops every ``posts:`` cache entry.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request, Response, status

from app.core.config import Settings
from app.core.container import ServiceContainer, get_container, get_settings
from app.core.rate_limit import enforce_rate_limit
from app.schemas.common import ApiResponse
from app.schemas.posts import (
    PaginationMeta,
    Post,
    PostCreate,
    PostCursorResponse,
    PostListResponse,
)
from app.services.post_store import DEFAULT_CURSOR_LIMIT
from app.utils.etag import etag_matches, generate_etag

logger = logging.getLogger(__name__)

POSTS_CACHE_PATTERN = r"^posts:"
MAX_PAGE_LIMIT = 100
MAX_CURSOR_LIMIT = 50

router = APIRouter(
    prefix="/api/posts",
    tags=["Posts"],
    dependencies=[Depends(enforce_rate_limit)],
)

ContainerDep = Annotated[ServiceContainer, Depends(get_container)]
SettingsDep = Annotated[Settings, Depends(get_settings)]

_NOT_MODIFIED_DOC = {304: {"description": "Client copy (If-None-Match) is current"}}


def conditional_json_response(
    request: Request,
    payload: dict[str, Any],
    cache_status: str,
    max_age: int,
) -> Response:
    """Serialize ``payload`` once and answer with 200 or 304 based on its ETag."""

    body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    etag = generate_etag(body)
    headers = {"ETag": f'"{etag}"', "Cache-Control": f"private, max-age={max_age}"}

    if etag_matches(request.headers.get("if-none-match"), etag):
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers=headers)

    headers["X-Cache"] = cache_status
    return Response(content=body, media_type="application/json", headers=headers)


def build_pagination(page: int | None, limit: int | None, total: int) -> PaginationMeta:
    """Pagination metadata; without both page and limit everything is one page."""
    current_page = page or 1
    total_pages = math.ceil(total / limit) if limit else 1
    return PaginationMeta(
        current_page=current_page,
        items_per_page=limit or total,
        total_pages=total_pages,
        total_items=total,
        has_next_page=bool(page and limit) and current_page < total_pages,
        has_previous_page=bool(page) and current_page > 1,
    )


@router.get("", response_model=PostListResponse, responses=_NOT_MODIFIED_DOC)
def list_posts(
    request: Request,
    container: ContainerDep,
    app_settings: SettingsDep,
    page: Annotated[int | None, Query(ge=1, description="1-based page number")] = None,
    limit: Annotated[int | None, Query(ge=1, le=MAX_PAGE_LIMIT, description="Items per page")] = None,
) -> Response:
    """List posts, optionally one page at a time.

    Without ``page`` and ``limit`` every post is returned. Responses carry
    ``ETag``/``Cache-Control``/``X-Cache`` and honor ``If-None-Match``.
    """
    ttl = app_settings.app.posts_cache_ttl_seconds
    cache_key = f"posts:{page or 'all'}:{limit or 'all'}"

    cached = container.cache.get(cache_key)
    if cached is not None:
        return conditional_json_response(request, cached, "HIT", ttl)

    posts = container.posts.list(page, limit)
    total = container.posts.count()
    payload = PostListResponse(
        data=posts,
        total=total,
        message="Posts retrieved successfully",
        pagination=build_pagination(page, limit, total),
    ).model_dump(by_alias=True, mode="json")

    container.cache.set(cache_key, payload, ttl)
    return conditional_json_response(request, payload, "MISS", ttl)


@router.get("/infinite", response_model=PostCursorResponse, responses=_NOT_MODIFIED_DOC)
def list_posts_by_cursor(
    request: Request,
    container: ContainerDep,
    app_settings: SettingsDep,
    cursor: Annotated[str | None, Query(description="Id of the last post already seen")] = None,
    limit: Annotated[int, Query(ge=1, le=MAX_CURSOR_LIMIT)] = DEFAULT_CURSOR_LIMIT,
) -> Response:
    """Cursor-paginated listing for infinite scroll.

    Pass the returned ``nextCursor`` back as ``cursor`` until ``hasMore`` is
    false. An unknown cursor restarts from the first post.
    """
    ttl = app_settings.app.posts_cache_ttl_seconds
    cache_key = f"posts:infinite:{cursor or 'start'}:{limit}"

    cached = container.cache.get(cache_key)
    if cached is not None:
        return conditional_json_response(request, cached, "HIT", ttl)

    page = container.posts.list_by_cursor(cursor, limit)
    payload = PostCursorResponse(
        data=page.posts,
        next_cursor=page.next_cursor,
        has_more=page.has_more,
        message="Posts retrieved successfully",
    ).model_dump(by_alias=True, mode="json")

    container.cache.set(cache_key, payload, ttl)
    return conditional_json_response(request, payload, "MISS", ttl)


@router.post("", response_model=ApiResponse[Post], status_code=status.HTTP_201_CREATED)
def create_post(body: PostCreate, container: ContainerDep) -> ApiResponse[Post]:
    post = container.posts.create(body.title, body.description)
    container.cache.invalidate_pattern(POSTS_CACHE_PATTERN)
    return ApiResponse[Post](data=post, message="Post created successfully")
