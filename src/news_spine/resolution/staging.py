"""Cache writes that become visible only after the owning transaction commits.

Resolvers run inside a batch transaction. If they wrote ids straight to the
shared cache, a rolled-back item (or batch) would leave other workers with
ids of rows that never existed. ``StagedCache`` holds writes locally until
``publish()``; ``savepoint()`` drops writes made by a failed item.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from news_spine.cache import CacheBackend


class StagedCache:
    def __init__(self, cache: CacheBackend, ttl_seconds: int | None = 3600):
        self._cache = cache
        self._ttl = ttl_seconds
        self._staged: dict[str, Any] = {}

    @property
    def backend(self) -> CacheBackend:
        return self._cache

    def get(self, key: str) -> Any | None:
        if key in self._staged:
            return self._staged[key]
        return self._cache.get(key)

    def put(self, key: str, value: Any) -> None:
        self._staged[key] = value

    def invalidate(self, key: str) -> None:
        self._staged.pop(key, None)
        self._cache.delete(key)

    def publish(self) -> int:
        """Write staged entries to the shared cache; return how many."""
        count = len(self._staged)
        for key, value in self._staged.items():
            self._cache.set(key, value, ttl_seconds=self._ttl)
        self._staged.clear()
        return count

    def discard(self) -> None:
        self._staged.clear()

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        snapshot = dict(self._staged)
        try:
            yield
        except BaseException:
            self._staged = snapshot
            raise
