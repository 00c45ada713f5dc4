"""
Tests for news_spine.cache.

Covers:
- InMemoryCache: get/set/delete/exists/clear, prefix deletes, LRU eviction, TTL expiry
- RedisCache: namespacing and JSON values against a mocked client
- build_cache backend selection
"""

import json
import threading
import time
from unittest.mock import MagicMock

import pytest

from news_spine.cache import InMemoryCache, RedisCache, build_cache
from news_spine.config import Settings

redis = pytest.importorskip("redis")


class TestInMemoryCache:
    def test_basic_get_set(self):
        """Cache should store and retrieve values."""
        cache = InMemoryCache(max_size=100, default_ttl_seconds=None)
        cache.set("key1", {"data": [1, 2, 3]})
        assert cache.get("key1") == {"data": [1, 2, 3]}

    def test_get_missing_key(self):
        assert InMemoryCache().get("missing") is None

    def test_delete(self):
        cache = InMemoryCache()
        cache.set("key1", "value1")
        cache.delete("key1")
        assert not cache.exists("key1")

    def test_delete_prefix(self):
        """Only keys under the prefix are removed."""
        cache = InMemoryCache()
        cache.set("category:tech", 1)
        cache.set("category:sport", 2)
        cache.set("author_id:jane", 3)

        assert cache.delete_prefix("category:") == 2
        assert cache.get("author_id:jane") == 3
        assert cache.size() == 1

    def test_ttl_expiry(self):
        """Expired keys read as missing."""
        cache = InMemoryCache()
        cache.set("short", "v", ttl_seconds=1)
        assert cache.get("short") == "v"
        time.sleep(1.1)
        assert cache.get("short") is None
        assert not cache.exists("short")

    def test_lru_eviction(self):
        """The least recently used key is evicted at capacity."""
        cache = InMemoryCache(max_size=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)

        assert cache.get("a") == 1
        assert cache.get("b") is None
        assert cache.get("c") == 3

    def test_concurrent_writers(self):
        """Parallel writers neither lose keys nor corrupt the store."""
        cache = InMemoryCache(max_size=10_000)

        def writer(n):
            for i in range(200):
                cache.set(f"k:{n}:{i}", i)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert cache.size() == 1600


class TestRedisCache:
    @pytest.fixture
    def client(self, monkeypatch):
        client = MagicMock()
        monkeypatch.setattr(redis, "from_url", MagicMock(return_value=client))
        return client

    def test_set_with_ttl_uses_setex(self, client):
        cache = RedisCache("redis://localhost:6379/0", default_ttl_seconds=600)
        cache.set("author_id:jane", 7)
        client.setex.assert_called_once_with("news_spine:author_id:jane", 600, json.dumps(7))

    def test_set_without_ttl(self, client):
        cache = RedisCache(default_ttl_seconds=None)
        cache.set("k", {"a": 1})
        client.set.assert_called_once_with("news_spine:k", json.dumps({"a": 1}))

    def test_get_decodes_json(self, client):
        client.get.return_value = b'{"status": "completed"}'
        cache = RedisCache()
        assert cache.get("sync_status:s:guardian:1") == {"status": "completed"}
        client.get.assert_called_once_with("news_spine:sync_status:s:guardian:1")

    def test_get_missing(self, client):
        client.get.return_value = None
        assert RedisCache().get("missing") is None

    def test_delete_prefix_scans_namespace(self, client):
        client.scan_iter.return_value = iter([b"news_spine:category:a", b"news_spine:category:b"])
        client.delete.return_value = 2
        cache = RedisCache()

        assert cache.delete_prefix("category:") == 2
        client.scan_iter.assert_called_once_with(match="news_spine:category:*")

    def test_delete_prefix_no_keys(self, client):
        client.scan_iter.return_value = iter([])
        assert RedisCache().delete_prefix("category:") == 0
        client.delete.assert_not_called()


class TestBuildCache:
    def test_memory_backend(self):
        cache = build_cache(Settings(cache_backend="memory"))
        assert isinstance(cache, InMemoryCache)

    def test_redis_backend(self, monkeypatch):
        from_url = MagicMock(return_value=MagicMock())
        monkeypatch.setattr(redis, "from_url", from_url)

        cache = build_cache(Settings(cache_backend="redis", redis_url="redis://cache:6379/2"))

        assert isinstance(cache, RedisCache)
        from_url.assert_called_once_with("redis://cache:6379/2", decode_responses=False)
