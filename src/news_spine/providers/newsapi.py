"""NewsAPI ``/everything`` search plus its sources catalog."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

import structlog

from news_spine.cache import CacheBackend
from news_spine.config import DEFAULT_NEWSAPI_DOMAINS
from news_spine.errors import NewsSpineError, ProviderError
from news_spine.models import Provider
from news_spine.providers.base import (
    ProviderHttpClient,
    RawArticle,
    check_page,
    resolve_window,
)

logger = structlog.get_logger(__name__)

SOURCES_CACHE_KEY = "newsapi_sources"


def _raise_for_payload(data: dict) -> None:
    if data.get("status") == "error":
        raise ProviderError(data.get("message") or data.get("code") or "NewsAPI error")


class NewsAPIProvider:
    """``GET /everything``; 1-based pages, ISO-8601 datetimes, fixed domain list."""

    def __init__(
        self,
        api_key: str,
        http: ProviderHttpClient,
        *,
        base_url: str,
        domains: Sequence[str] = DEFAULT_NEWSAPI_DOMAINS,
        cache: CacheBackend | None = None,
        sources_ttl_seconds: int = 86400,
    ):
        self._api_key = api_key
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._domains = list(domains)
        self._cache = cache
        self._sources_ttl = sources_ttl_seconds

    @property
    def name(self) -> str:
        return Provider.NEWSAPI.value

    @property
    def domains(self) -> list[str]:
        return list(self._domains)

    def with_domains(self, domains: Sequence[str]) -> NewsAPIProvider:
        """Same adapter restricted to ``domains``."""
        return NewsAPIProvider(
            self._api_key,
            self._http,
            base_url=self._base_url,
            domains=domains,
            cache=self._cache,
            sources_ttl_seconds=self._sources_ttl,
        )

    def fetch_page(
        self,
        page: int,
        page_size: int,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> list[RawArticle]:
        check_page(page, page_size)
        start, end = resolve_window(from_date, to_date)
        params = {
            "apiKey": self._api_key,
            "page": page,
            "pageSize": page_size,
            "sortBy": "publishedAt",
            "language": "en",
            "from": start.strftime("%Y-%m-%dT%H:%M:%S"),
            "to": end.strftime("%Y-%m-%dT%H:%M:%S"),
            "domains": ",".join(self._domains),
            "q": "*",
        }

        try:
            data = self._http.get_json(f"{self._base_url}/everything", params)
            _raise_for_payload(data)
            articles = data.get("articles") or []
        except NewsSpineError as e:
            logger.error("provider_fetch_failed", provider=self.name, page=page, **e.to_dict())
            return []

        logger.info("provider_page_fetched", provider=self.name, page=page, count=len(articles))
        return list(articles)

    def sources(self) -> dict[str, str]:
        """Map of NewsAPI source id → category, cached for a day."""
        if self._cache is not None:
            cached = self._cache.get(SOURCES_CACHE_KEY)
            if cached is not None:
                return cached

        try:
            data = self._http.get_json(
                f"{self._base_url}/sources", {"apiKey": self._api_key, "language": "en"}
            )
            _raise_for_payload(data)
        except NewsSpineError as e:
            logger.warning("newsapi_sources_unavailable", **e.to_dict())
            return {}

        mapping = {
            source["id"]: source.get("category") or ""
            for source in data.get("sources") or []
            if isinstance(source, dict) and source.get("id")
        }
        if self._cache is not None:
            self._cache.set(SOURCES_CACHE_KEY, mapping, ttl_seconds=self._sources_ttl)
        return mapping

    def clear_sources_cache(self) -> None:
        if self._cache is not None:
            self._cache.delete(SOURCES_CACHE_KEY)
