"""The Guardian content API → canonical items."""

from news_spine.models import CanonicalItem, Provider
from news_spine.text import blank_to_none, clean_author_name, make_unique_id, parse_timestamp
from news_spine.transformers.base import RawArticle, dig, transform_all

SOURCE_NAME = "The Guardian"
SOURCE_DOMAIN = "theguardian.com"


class GuardianTransformer:
    provider = Provider.GUARDIAN.value

    def to_canonical(self, raw: RawArticle) -> CanonicalItem | None:
        web_title = blank_to_none(raw.get("webTitle"))
        web_url = blank_to_none(raw.get("webUrl"))
        if web_title is None or web_url is None:
            return None

        return CanonicalItem(
            unique_id=make_unique_id(self.provider, blank_to_none(raw.get("id")) or web_url),
            title=blank_to_none(dig(raw, "fields", "headline")) or web_title,
            description=(
                blank_to_none(dig(raw, "fields", "trailText"))
                or blank_to_none(dig(raw, "fields", "standfirst"))
            ),
            category_name=blank_to_none(raw.get("sectionName")),
            author_name=clean_author_name(blank_to_none(dig(raw, "fields", "byline"))),
            source_name=SOURCE_NAME,
            source_domain=SOURCE_DOMAIN,
            provider=self.provider,
            source_url=web_url,
            published_at=parse_timestamp(raw.get("webPublicationDate")),
        )

    def transform_batch(self, raws):
        return transform_all(self.to_canonical, raws)
