"""Provider adapters, selected by name.

Usage:
    from news_spine.providers import build_provider

    provider = build_provider("guardian")
    raw = provider.fetch_page(1, 10)
"""

from __future__ import annotations

import time
from collections.abc import Callable

import httpx

from news_spine.cache import CacheBackend
from news_spine.config import Settings, get_settings
from news_spine.errors import ConfigError
from news_spine.models import Provider
from news_spine.providers.base import NewsProvider, ProviderHttpClient
from news_spine.providers.guardian import GuardianProvider
from news_spine.providers.newsapi import NewsAPIProvider
from news_spine.providers.nytimes import NYTimesProvider


def _guardian(settings: Settings, http: ProviderHttpClient, cache: CacheBackend | None):
    return GuardianProvider(
        settings.guardian_api_key, http, base_url=settings.guardian_base_url
    )


def _nytimes(settings: Settings, http: ProviderHttpClient, cache: CacheBackend | None):
    return NYTimesProvider(settings.nytimes_api_key, http, base_url=settings.nytimes_base_url)


def _newsapi(settings: Settings, http: ProviderHttpClient, cache: CacheBackend | None):
    return NewsAPIProvider(
        settings.newsapi_api_key,
        http,
        base_url=settings.newsapi_base_url,
        domains=settings.newsapi_domains,
        cache=cache,
        sources_ttl_seconds=settings.newsapi_sources_ttl_seconds,
    )


PROVIDERS: dict[str, Callable[[Settings, ProviderHttpClient, CacheBackend | None], NewsProvider]] = {
    Provider.NEWSAPI.value: _newsapi,
    Provider.GUARDIAN.value: _guardian,
    Provider.NYTIMES.value: _nytimes,
}


def build_provider(
    name: str,
    settings: Settings | None = None,
    *,
    cache: CacheBackend | None = None,
    client: httpx.Client | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> NewsProvider:
    """Construct the adapter registered under ``name``.

    Raises:
        ConfigError: If ``name`` is not a known provider.
    """
    factory = PROVIDERS.get(name)
    if factory is None:
        raise ConfigError(f"Unknown provider: {name}. Known: {', '.join(PROVIDERS)}")

    settings = settings or get_settings()
    http = ProviderHttpClient(
        name,
        timeout=settings.http_timeout_seconds,
        max_attempts=settings.http_max_attempts,
        retry_delay=settings.http_retry_delay_seconds,
        client=client,
        sleep=sleep,
    )
    return factory(settings, http, cache)


__all__ = [
    "GuardianProvider",
    "NYTimesProvider",
    "NewsAPIProvider",
    "NewsProvider",
    "PROVIDERS",
    "ProviderHttpClient",
    "build_provider",
]
