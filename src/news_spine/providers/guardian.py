"""The Guardian Open Platform content search."""

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

SHOW_FIELDS = "headline,trailText,byline,standfirst"


class GuardianProvider:
    """``GET /search``; 1-based pages, ``YYYY-MM-DD`` dates."""

    def __init__(self, api_key: str, http: ProviderHttpClient, *, base_url: str):
        self._api_key = api_key
        self._http = http
        self._base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return Provider.GUARDIAN.value

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
            "api-key": self._api_key,
            "page": page,
            "page-size": page_size,
            "from-date": start.strftime("%Y-%m-%d"),
            "to-date": end.strftime("%Y-%m-%d"),
            "show-fields": SHOW_FIELDS,
            "order-by": "newest",
        }

        try:
            data = self._http.get_json(f"{self._base_url}/search", params)
            body = data.get("response") or {}
            if body.get("status", "ok") != "ok":
                raise ProviderError(body.get("message") or "Guardian reported an error")
            results = body.get("results") or []
        except NewsSpineError as e:
            logger.error("provider_fetch_failed", provider=self.name, page=page, **e.to_dict())
            return []

        logger.info("provider_page_fetched", provider=self.name, page=page, count=len(results))
        return list(results)
