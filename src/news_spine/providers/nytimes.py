"""New York Times Article Search API."""

from datetime import datetime

import structlog

from news_spine.errors import NewsSpineError, ProviderError
from news_spine.models import Provider
from news_spine.providers.base import (
    ProviderHttpClient,
    RawArticle,
    check_page,
    resolve_window,
)

logger = structlog.get_logger(__name__)

FALLBACK_SECTIONS = [
    "world",
    "us",
    "politics",
    "business",
    "technology",
    "science",
    "health",
    "sports",
    "arts",
    "books",
    "movies",
    "theater",
    "opinion",
    "food",
    "travel",
]


def _raise_for_payload(data: dict) -> None:
    fault = data.get("fault")
    if fault:
        message = fault.get("faultstring") if isinstance(fault, dict) else str(fault)
        raise ProviderError(message or "NYTimes API fault")
    if data.get("status", "OK") != "OK":
        raise ProviderError(data.get("message") or f"NYTimes status {data.get('status')}")


class NYTimesProvider:
    """``GET /search/v2/articlesearch.json``; 0-based pages, ``YYYYMMDD`` dates.

    The API fixes the page size at 10, so ``page_size`` only feeds logging.
    """

    def __init__(self, api_key: str, http: ProviderHttpClient, *, base_url: str):
        self._api_key = api_key
        self._http = http
        self._base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return Provider.NYTIMES.value

    def _search(self, params: dict, page: int) -> list[RawArticle]:
        try:
            data = self._http.get_json(f"{self._base_url}/search/v2/articlesearch.json", params)
            _raise_for_payload(data)
            docs = (data.get("response") or {}).get("docs") or []
        except NewsSpineError as e:
            logger.error("provider_fetch_failed", provider=self.name, page=page, **e.to_dict())
            return []
        logger.info("provider_page_fetched", provider=self.name, page=page, count=len(docs))
        return list(docs)

    def _window_params(self, from_date, to_date) -> dict:
        start, end = resolve_window(from_date, to_date)
        return {
            "api-key": self._api_key,
            "sort": "newest",
            "begin_date": start.strftime("%Y%m%d"),
            "end_date": end.strftime("%Y%m%d"),
        }

    def fetch_page(
        self,
        page: int,
        page_size: int,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> list[RawArticle]:
        check_page(page, page_size)
        params = {**self._window_params(from_date, to_date), "page": page - 1}
        return self._search(params, page)

    def fetch_section(
        self,
        section: str,
        limit: int = 10,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> list[RawArticle]:
        """First page of articles from one section, at most ``limit`` docs."""
        params = {
            **self._window_params(from_date, to_date),
            "page": 0,
            "fq": f'section_name:"{section}" AND document_type:("article")',
        }
        return self._search(params, 1)[:limit]

    def available_sections(self) -> list[str]:
        """Section names from the Times Newswire, or a static list on failure."""
        try:
            data = self._http.get_json(
                f"{self._base_url}/news/v3/content/section-list.json",
                {"api-key": self._api_key},
            )
            _raise_for_payload(data)
        except NewsSpineError as e:
            logger.warning("nytimes_sections_fallback", **e.to_dict())
            return list(FALLBACK_SECTIONS)

        sections = [
            entry["section"]
            for entry in data.get("results") or []
            if isinstance(entry, dict) and entry.get("section")
        ]
        return sections or list(FALLBACK_SECTIONS)
