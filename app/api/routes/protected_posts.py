"""Post management endpoints guarded by the ``x-api-key`` header."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from app.api.routes.posts import POSTS_CACHE_PATTERN
from app.core.auth import verify_api_key
from app.core.container import ServiceContainer, get_container
from app.core.errors import NotFoundAppError
from app.schemas.common import ApiResponse
from app.schemas.posts import Post, PostCreate, PostListResponse, PostUpdate

router = APIRouter(
    prefix="/api/protected/posts",
    tags=["Protected"],
    dependencies=[Depends(verify_api_key)],
)

ContainerDep = Annotated[ServiceContainer, Depends(get_container)]


def _not_found(post_id: str) -> NotFoundAppError:
    return NotFoundAppError(
        code="post_not_found",
        message=f"Post with ID '{post_id}' not found",
        details={"post_id": post_id},
    )


@router.get("", response_model=PostListResponse, response_model_exclude_none=True)
def list_all_posts(container: ContainerDep) -> PostListResponse:
    return PostListResponse(
        data=container.posts.list(),
        total=container.posts.count(),
        message="Posts retrieved successfully",
    )


@router.post("", response_model=ApiResponse[Post], status_code=status.HTTP_201_CREATED)
def create_post(body: PostCreate, container: ContainerDep) -> ApiResponse[Post]:
    post = container.posts.create(body.title, body.description)
    container.cache.invalidate_pattern(POSTS_CACHE_PATTERN)
    return ApiResponse[Post](data=post, message="Post created successfully")


@router.get("/{post_id}", response_model=ApiResponse[Post])
def get_post(post_id: str, container: ContainerDep) -> ApiResponse[Post]:
    post = container.posts.get_by_id(post_id)
    if post is None:
        raise _not_found(post_id)
    return ApiResponse[Post](data=post, message="Post retrieved successfully")


@router.put("/{post_id}", response_model=ApiResponse[Post])
def update_post(post_id: str, body: PostUpdate, container: ContainerDep) -> ApiResponse[Post]:
    """Update the title and/or description of a post."""
    post = container.posts.update(post_id, title=body.title, description=body.description)
    if post is None:
        raise _not_found(post_id)
    container.cache.invalidate_pattern(POSTS_CACHE_PATTERN)
    return ApiResponse[Post](data=post, message="Post updated successfully")


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_post(post_id: str, container: ContainerDep) -> Response:
    if not container.posts.delete(post_id):
        raise _not_found(post_id)
    container.cache.invalidate_pattern(POSTS_CACHE_PATTERN)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
