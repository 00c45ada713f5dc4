"""NewsAPI ``/everything`` articles → canonical items.

NewsAPI articles carry no section, so the category comes from the sources
catalog (source id → category) fetched by the adapter.
"""

import re
from urllib.parse import urlsplit

from news_spine.models import CanonicalItem, Provider
from news_spine.text import (
    blank_to_none,
    capitalize_words,
    clean_author_name,
    make_unique_id,
    parse_timestamp,
)
from news_spine.transformers.base import RawArticle, dig, transform_all

_SOURCE_SUFFIX = re.compile(r"\s-\s[A-Z][A-Za-z\s]+$")

CATEGORY_MAP = {
    "general": "News",
    "sci-tech": "Technology",
    "tech": "Technology",
    "biz": "Business",
    "sci-and-tech": "Technology",
    "science-and-technology": "Technology",
}


def clean_title(title: str) -> str:
    """Drop a trailing ``" - Source Name"``."""
    return _SOURCE_SUFFIX.sub("", title).strip()


def clean_description(description: str | None) -> str | None:
    if description is None:
        return None
    cleaned = description.strip()
    for ellipsis in ("...", "…"):
        if cleaned.endswith(ellipsis):
            cleaned = cleaned[: -len(ellipsis)].rstrip()
            break
    return cleaned or None


def normalize_category(category: str | None) -> str | None:
    if category is None or not category.strip():
        return None
    key = category.strip().lower()
    return CATEGORY_MAP.get(key, capitalize_words(key))


def domain_of(url: str) -> str | None:
    host = urlsplit(url).hostname
    if not host:
        return None
    return host.removeprefix("www.")


class NewsAPITransformer:
    provider = Provider.NEWSAPI.value

    def __init__(self, source_categories: dict[str, str] | None = None):
        self._source_categories = source_categories or {}

    def to_canonical(self, raw: RawArticle) -> CanonicalItem | None:
        title = blank_to_none(raw.get("title"))
        url = blank_to_none(raw.get("url"))
        if title is None or url is None:
            return None

        title = clean_title(title)
        if not title:
            return None

        source_id = blank_to_none(dig(raw, "source", "id"))
        category = self._source_categories.get(source_id) if source_id else None

        return CanonicalItem(
            unique_id=make_unique_id(self.provider, url),
            title=title,
            description=clean_description(blank_to_none(raw.get("description"))),
            category_name=normalize_category(category),
            author_name=clean_author_name(blank_to_none(raw.get("author"))),
            source_name=blank_to_none(dig(raw, "source", "name")),
            source_domain=domain_of(url),
            provider=self.provider,
            source_url=url,
            published_at=parse_timestamp(raw.get("publishedAt")),
        )

    def transform_batch(self, raws):
        return transform_all(self.to_canonical, raws)
