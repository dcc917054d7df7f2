"""In-memory repository for blog posts.

Posts live in a list in insertion order; lookups are linear scans, which is
fine at the scale this service runs at. Nothing is persisted: a restart
clears the store.

Every method hands out copies, so callers can never mutate stored posts
behind the store's back. Unknown ids are reported with ``None``/``False``
rather than exceptions; translating that into HTTP 404 is the caller's job.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable

from app.schemas.posts import Post

logger = logging.getLogger(__name__)

DEFAULT_CURSOR_LIMIT = 10

# Initial content loaded when APP_SEED_DEMO_POSTS is enabled
DEMO_POSTS: tuple[tuple[str, str], ...] = (
    (
        "Introduction to RESTful APIs",
        "Learn the basics of REST architecture and how to design clean APIs. "
        "This post covers HTTP methods, status codes, and best practices.",
    ),
    (
        "Understanding HTTP Protocol",
        "Deep dive into HTTP protocol, headers, request/response cycle, and "
        "common status codes used in web development.",
    ),
    (
        "Async Programming with Python",
        "Master async/await, coroutines, and error handling in modern Python. "
        "Learn how to handle asynchronous operations effectively.",
    ),
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CursorPage:
    """One page of a cursor-paginated listing."""

    posts: list[Post] = field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False


class PostStore:
    """Thread-safe CRUD store for posts with offset and cursor pagination."""

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._posts: list[Post] = []
        self._next_id = 1

    def seed(self, posts: Iterable[tuple[str, str]] = DEMO_POSTS) -> None:
        """Create a post for each ``(title, description)`` pair."""
        for title, description in posts:
            self.create(title, description)

    def create(self, title: str, description: str) -> Post:
        """Append a new post with the next sequential id.

        Args:
            title: Already validated title.
            description: Already validated description.

        Returns:
            A copy of the stored post; ``created_at == updated_at``.
        """
        with self._lock:
            now = self._clock()
            post = Post(
                id=str(self._next_id),
                title=title,
                description=description,
                created_at=now,
                updated_at=now,
            )
            self._next_id += 1
            self._posts.append(post)

        logger.info("post.created", extra={"post_id": post.id})
        return post.model_copy()

    def get_by_id(self, post_id: str) -> Post | None:
        with self._lock:
            index = self._index_of(post_id)
            return None if index is None else self._posts[index].model_copy()

    def update(
        self,
        post_id: str,
        title: str | None = None,
        description: str | None = None,
    ) -> Post | None:
        """Change the provided fields of a post and refresh ``updated_at``.

        Returns:
            The updated post, or None when ``post_id`` is unknown (the store
            is left untouched in that case).
        """
        with self._lock:
            index = self._index_of(post_id)
            if index is None:
                return None

            changes: dict[str, object] = {"updated_at": self._clock()}
            if title is not None:
                changes["title"] = title
            if description is not None:
                changes["description"] = description

            updated = self._posts[index].model_copy(update=changes)
            self._posts[index] = updated

        logger.info(
            "post.updated",
            extra={"post_id": post_id, "fields": sorted(k for k in changes if k != "updated_at")},
        )
        return updated.model_copy()

    def delete(self, post_id: str) -> bool:
        """Remove a post; returns True if one was removed."""
        with self._lock:
            index = self._index_of(post_id)
            if index is None:
                return False
            del self._posts[index]

        logger.info("post.deleted", extra={"post_id": post_id})
        return True

    def list(self, page: int | None = None, limit: int | None = None) -> list[Post]:
        """Return posts in insertion order, optionally one page of them.

        If either ``page`` or ``limit`` is omitted the full set is returned.
        Otherwise the slice ``[(page - 1) * limit, page * limit)`` is
        returned, clipped to the store's bounds; a page past the end yields
        an empty list.
        """
        with self._lock:
            if not page or not limit:
                return [post.model_copy() for post in self._posts]

            offset = max(0, (page - 1) * limit)
            return [post.model_copy() for post in self._posts[offset:offset + limit]]

    def list_by_cursor(self, cursor: str | None = None, limit: int = DEFAULT_CURSOR_LIMIT) -> CursorPage:
        """Return up to ``limit`` posts following the post with id ``cursor``.

        An absent or unknown cursor starts from the head of the list, so a
        stale cursor silently restarts the scan instead of failing.
        """
        with self._lock:
            start = 0
            if cursor:
                index = self._index_of(cursor)
                if index is not None:
                    start = index + 1

            posts = [post.model_copy() for post in self._posts[start:start + limit]]
            has_more = start + limit < len(self._posts)

        next_cursor = posts[-1].id if has_more and posts else None
        return CursorPage(posts=posts, next_cursor=next_cursor, has_more=has_more)

    def count(self) -> int:
        with self._lock:
            return len(self._posts)

    def _index_of(self, post_id: str) -> int | None:
        for index, post in enumerate(self._posts):
            if post.id == post_id:
                return index
        return None
