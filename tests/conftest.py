"""Pytest configuration and fixtures.

Everything runs against an in-memory SQLite store, the in-memory cache and
``httpx.MockTransport``; no network, Redis or PostgreSQL is needed.
"""

import os
from collections.abc import Callable
from datetime import UTC, datetime

import httpx
import pytest

# Set test environment variables before importing app modules
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("LOG_FORMAT", "console")

from news_spine.cache import InMemoryCache
from news_spine.config import Settings, reset_settings
from news_spine.db import create_engine_from_url, init_db, session_factory as make_session_factory
from news_spine.models import CanonicalItem
from news_spine.persistence import NewsPersistenceService
from news_spine.sync.status import SyncStatusStore
from news_spine.text import make_unique_id


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings():
    """Settings with no real waits and fake API keys."""
    return Settings(
        database_url="sqlite://",
        guardian_api_key="guardian-key",
        nytimes_api_key="nytimes-key",
        newsapi_api_key="newsapi-key",
        http_retry_delay_seconds=0,
        job_backoff_seconds=0,
        page_delay_seconds=0,
    )


@pytest.fixture
def engine():
    """Fresh in-memory database with the schema applied."""
    engine = create_engine_from_url("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def session(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def cache():
    return InMemoryCache()


@pytest.fixture
def status_store(cache):
    return SyncStatusStore(cache, ttl_seconds=3600)


@pytest.fixture
def persistence(session_factory, cache):
    return NewsPersistenceService(session_factory, cache)


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.Client]:
    """Build an httpx client whose requests are answered by ``handler``."""

    def build(handler):
        return httpx.Client(transport=httpx.MockTransport(handler))

    return build


@pytest.fixture
def make_item():
    """Factory for canonical items with sensible defaults."""

    def build(url: str = "https://example.com/a", **overrides) -> CanonicalItem:
        values = {
            "unique_id": make_unique_id("newsapi", url),
            "title": "Markets rally on rate hopes",
            "description": "Stocks rose sharply.",
            "category_name": "Business",
            "author_name": "Jane Doe",
            "source_name": "Example News",
            "source_domain": "example.com",
            "provider": "newsapi",
            "source_url": url,
            "published_at": datetime(2024, 1, 15, 10, 0, tzinfo=UTC),
        }
        values.update(overrides)
        return CanonicalItem(**values)

    return build


@pytest.fixture
def guardian_article():
    return {
        "id": "world/2024/jan/15/example-story",
        "type": "article",
        "sectionName": "World news",
        "webPublicationDate": "2024-01-15T10:30:00Z",
        "webTitle": "Example story web title",
        "webUrl": "https://www.theguardian.com/world/2024/jan/15/example-story",
        "fields": {
            "headline": "Example story headline",
            "trailText": "A short trail text",
            "standfirst": "A longer standfirst",
            "byline": "By Jane Smith",
        },
    }


@pytest.fixture
def nytimes_doc():
    return {
        "_id": "nyt://article/1234",
        "web_url": "https://www.nytimes.com/2024/01/15/world/example.html",
        "abstract": "The abstract.",
        "lead_paragraph": "The lead paragraph.",
        "snippet": "The snippet.",
        "pub_date": "2024-01-15T10:00:00+0000",
        "section_name": "World",
        "headline": {"main": "Example NYT headline"},
        "byline": {
            "original": "By Alice Adams and Bob Brown",
            "person": [
                {"firstname": "Alice", "lastname": "Adams"},
                {"firstname": "Bob", "lastname": "Brown"},
            ],
        },
    }


@pytest.fixture
def newsapi_article():
    return {
        "source": {"id": "bbc-news", "name": "BBC News"},
        "author": "John Roe (john.roe@bbc.co.uk)",
        "title": "Big tech story - BBC News",
        "description": "Something happened in tech...",
        "url": "https://www.bbc.co.uk/news/technology-1",
        "publishedAt": "2024-01-15T09:00:00Z",
    }
