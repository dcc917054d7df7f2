"""In-memory TTL cache for serialized API responses.

Entries expire lazily: a lookup past ``expires_at`` treats the entry as absent
and drops it. Writes that change the underlying data call
``invalidate_pattern`` so stale listings are never served.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Container for cached values with expiration metadata."""

    value: Any
    expires_at: float


class ResponseCache:
    """Thread-safe, in-memory TTL cache with optional LRU capping.

    Attributes:
        default_ttl_seconds: TTL applied when ``set`` is called without one.
        max_entries: Maximum number of cached items (None for unlimited).
    """

    def __init__(self, default_ttl_seconds: float = 300, max_entries: int | None = 1024) -> None:
        self._default_ttl = default_ttl_seconds
        self._max_entries = max_entries
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"ResponseCache(default_ttl_seconds={self._default_ttl}, "
            f"max_entries={self._max_entries}, size={len(self._store)})"
        )

    def get(self, key: str) -> Any | None:
        """Retrieve a cached value if it exists and is not expired.

        Args:
            key: Cache key, e.g. ``posts:1:10``.

        Returns:
            Cached value or None if not found/expired.
        """

        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                logger.debug("cache.miss", extra={"cache_key": key, "reason": "not_found"})
                return None

            if time.time() >= entry.expires_at:
                self._evict_single(key)
                self._misses += 1
                logger.debug("cache.miss", extra={"cache_key": key, "reason": "expired"})
                return None

            self._hits += 1
            self._store.move_to_end(key)
            logger.debug("cache.hit", extra={"cache_key": key})
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        """Store a value, overwriting any previous entry for ``key``.

        Args:
            key: Cache key.
            value: JSON-serializable payload.
            ttl_seconds: Time-to-live; falls back to the cache default.
        """

        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._store[key] = CacheEntry(value=value, expires_at=time.time() + ttl)
            self._store.move_to_end(key)
            self._evict_if_over_capacity_locked()

            logger.debug(
                "cache.set",
                extra={"cache_key": key, "size": len(self._store), "ttl_s": ttl},
            )

    def invalidate_pattern(self, pattern: str | re.Pattern[str]) -> int:
        """Remove every entry whose key matches ``pattern``.

        Args:
            pattern: Regular expression searched against each key
                (anchor it, e.g. ``^posts:``, to match prefixes only).

        Returns:
            Number of entries removed.
        """

        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        with self._lock:
            doomed = [key for key in self._store if regex.search(key)]
            for key in doomed:
                del self._store[key]

        logger.info(
            "cache.invalidated",
            extra={"pattern": regex.pattern, "removed": len(doomed)},
        )
        return len(doomed)

    def clear(self) -> None:
        """Remove all cached entries and reset counters."""

        with self._lock:
            self._store.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def stats(self) -> dict[str, int | float | None]:
        """Return lightweight cache metrics without exposing values."""

        with self._lock:
            return {
                "default_ttl_seconds": self._default_ttl,
                "max_entries": self._max_entries,
                "entries": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    def _evict_single(self, key: str) -> None:
        if self._store.pop(key, None) is not None:
            self._evictions += 1

    def _evict_if_over_capacity_locked(self) -> None:
        if self._max_entries is None:
            return

        while len(self._store) > self._max_entries:
            # popitem(last=False) removes the least recently used entry
            self._store.popitem(last=False)
            self._evictions += 1
