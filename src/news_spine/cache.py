"""
Shared key-value cache used by entity resolution and the sync status store.

Architecture:
    ::

        CacheBackend (Protocol)
        ├── InMemoryCache  -- single process, bounded LRU, lock-guarded
        └── RedisCache     -- shared across Celery workers

        API: get(key) → value | None
             set(key, value, ttl_seconds=None)
             delete(key)
             delete_prefix(prefix)
             exists(key) → bool
             clear()

Values are JSON-serializable. Both backends honor per-key TTLs; the in-memory
backend expires lazily on read.

Examples:
    >>> cache = InMemoryCache(max_size=1000, default_ttl_seconds=3600)
    >>> cache.set("author_id:jane doe", 42)
    >>> cache.get("author_id:jane doe")
    42
"""

from __future__ import annotations

import json
import threading
import time
from collections import OrderedDict
from typing import TYPE_CHECKING, Any, Protocol

import redis

if TYPE_CHECKING:
    from news_spine.config import Settings


class CacheBackend(Protocol):
    """Protocol for cache backend implementations."""

    def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` if missing or expired."""
        ...

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        """Store a value. ``ttl_seconds=None`` uses the backend default."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key. No-op if missing."""
        ...

    def delete_prefix(self, prefix: str) -> int:
        """Remove every key starting with ``prefix``; return how many."""
        ...

    def exists(self, key: str) -> bool:
        """``True`` if the key exists and has not expired."""
        ...

    def clear(self) -> None:
        """Remove all keys. Testing only."""
        ...


class InMemoryCache:
    """Bounded in-memory cache with TTL support.

    LRU eviction once ``max_size`` keys are held. All operations take a lock,
    so one instance can be shared by concurrently running jobs in a process.
    """

    def __init__(
        self,
        *,
        max_size: int = 10_000,
        default_ttl_seconds: int | None = 3600,
    ):
        self._store: OrderedDict[str, tuple[Any, float | None]] = OrderedDict()
        self._lock = threading.Lock()
        self._max_size = max_size
        self._default_ttl = default_ttl_seconds

    def _live_entry(self, key: str) -> tuple[Any, float | None] | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and time.time() > expires_at:
            del self._store[key]
            return None
        return entry

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None
            self._store.move_to_end(key)
            return entry[0]

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        expires_at = (time.time() + ttl) if ttl else None

        with self._lock:
            if key not in self._store and len(self._store) >= self._max_size:
                self._store.popitem(last=False)
            self._store[key] = (value, expires_at)
            self._store.move_to_end(key)

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            doomed = [k for k in self._store if k.startswith(prefix)]
            for key in doomed:
                del self._store[key]
            return len(doomed)

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def size(self) -> int:
        """Return current number of cached keys (expired keys included until read)."""
        with self._lock:
            return len(self._store)


class RedisCache:
    """Redis-backed cache shared by all worker processes.

    Keys are namespaced with ``namespace`` so one Redis database can host
    several deployments. Values are stored as JSON.

    Example:
        cache = RedisCache("redis://localhost:6379/0", default_ttl_seconds=600)
        cache.set("source_id:guardian:theguardian.com", 7)
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        *,
        default_ttl_seconds: int | None = 3600,
        namespace: str = "news_spine:",
    ):
        self._client = redis.from_url(url, decode_responses=False)
        self._default_ttl = default_ttl_seconds
        self._namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    def get(self, key: str) -> Any | None:
        raw = self._client.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        serialized = json.dumps(value)

        if ttl:
            self._client.setex(self._key(key), ttl, serialized)
        else:
            self._client.set(self._key(key), serialized)

    def delete(self, key: str) -> None:
        self._client.delete(self._key(key))

    def delete_prefix(self, prefix: str) -> int:
        keys = list(self._client.scan_iter(match=f"{self._key(prefix)}*"))
        if not keys:
            return 0
        return int(self._client.delete(*keys))

    def exists(self, key: str) -> bool:
        return bool(self._client.exists(self._key(key)))

    def clear(self) -> None:
        """Remove this namespace's keys (not the whole database)."""
        self.delete_prefix("")


def build_cache(settings: Settings) -> CacheBackend:
    """Construct the cache backend selected by ``settings.cache_backend``."""
    if settings.cache_backend == "redis":
        return RedisCache(settings.redis_url, default_ttl_seconds=settings.cache_ttl_seconds)
    return InMemoryCache(default_ttl_seconds=settings.cache_ttl_seconds)


__all__ = [
    "CacheBackend",
    "InMemoryCache",
    "RedisCache",
    "build_cache",
]
