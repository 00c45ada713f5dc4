"""Tests for EntityResolver author and source resolution."""

import pytest

from news_spine.orm.tables import AuthorTable, SourceTable
from news_spine.resolution.entities import EntityResolver
from news_spine.resolution.naming import domain_from_name, name_from_domain


@pytest.fixture
def resolver(session, cache):
    return EntityResolver(session, cache)


class TestAuthors:
    def test_two_character_name_resolves(self, resolver, session):
        """Two characters is the minimum name length."""
        author_id = resolver.resolve_author_id("Al")
        assert author_id is not None
        assert session.get(AuthorTable, author_id).name == "Al"

    def test_one_character_name_is_absent(self, resolver, session):
        """A single character after trimming creates nothing."""
        assert resolver.resolve_author_id(" A ") is None
        assert resolver.resolve_author_id(None) is None
        assert session.query(AuthorTable).count() == 0

    def test_name_is_cleaned_once(self, resolver, session):
        author_id = resolver.resolve_author_id("By Jane Doe (jane@example.com) | Reuters")
        author = session.get(AuthorTable, author_id)
        assert author.name == "Jane Doe"
        assert author.slug == "jane-doe"

    def test_same_name_resolves_to_same_row(self, resolver, session):
        first = resolver.resolve_author_id("Jane Doe")
        second = resolver.resolve_author_id("By Jane Doe")
        assert first == second
        assert session.query(AuthorTable).count() == 1

    def test_same_name_resolves_after_cache_is_lost(self, session, cache):
        first = EntityResolver(session, cache).resolve_author_id("Jane Doe")
        cache.clear()
        second = EntityResolver(session, cache).resolve_author_id("jane doe")
        assert first == second

    def test_slug_collision_gets_suffix(self, resolver, session):
        """Two authors named "John Doe" get john-doe and john-doe-1."""
        first = resolver.create_author("John Doe")
        second = resolver.create_author("John Doe")

        slugs = [session.get(AuthorTable, i).slug for i in (first, second)]
        assert slugs == ["john-doe", "john-doe-1"]

    def test_resolution_skips_slug_held_by_other_name(self, resolver, session):
        """Same slug, different name: resolution walks to the next free slug."""
        resolver.resolve_author_id("Zoë Lane")
        other = resolver.resolve_author_id("Zoe-Lane")

        author = session.get(AuthorTable, other)
        assert author.name == "Zoe-Lane"
        assert author.slug == "zoe-lane-1"

    def test_cached_ids_published_after_commit(self, resolver, cache):
        author_id = resolver.resolve_author_id("Jane Doe")
        assert cache.get("author_id:jane doe") is None

        resolver.publish()

        assert cache.get("author_id:jane doe") == author_id

    def test_discard_drops_staged_ids(self, resolver, cache):
        resolver.resolve_author_id("Jane Doe")
        resolver.discard()
        resolver.publish()
        assert cache.get("author_id:jane doe") is None


class TestSources:
    def test_default_source_per_provider(self, resolver, session):
        guardian_id = resolver.resolve_source_id("guardian")
        newsapi_id = resolver.resolve_source_id("newsapi")
        custom_id = resolver.resolve_source_id("reddit")

        assert session.get(SourceTable, guardian_id).name == "The Guardian"
        assert session.get(SourceTable, guardian_id).domain == "theguardian.com"
        assert session.get(SourceTable, newsapi_id).name == "NewsAPI"
        assert session.get(SourceTable, custom_id).name == "Reddit"
        assert resolver.resolve_source_id("guardian") == guardian_id

    def test_by_domain(self, resolver, session):
        source_id = resolver.resolve_source_id("newsapi", "TechCrunch Daily", "www.techcrunch.com")
        source = session.get(SourceTable, source_id)

        assert source.domain == "techcrunch.com"
        assert source.name == "TechCrunch"
        assert source.slug == "techcrunch"
        assert source.website_url == "https://techcrunch.com"
        assert source.provider == "newsapi"

    def test_same_domain_different_provider(self, resolver):
        a = resolver.resolve_source_id("newsapi", None, "bbc.co.uk")
        b = resolver.resolve_source_id("guardian", None, "bbc.co.uk")
        assert a != b

    def test_domain_slug_clash_gets_suffix(self, resolver, session):
        """bbc.co.uk and bbc.com both want slug "bbc" under one provider."""
        first = resolver.resolve_source_id("newsapi", None, "bbc.co.uk")
        second = resolver.resolve_source_id("newsapi", None, "bbc.com")

        assert first != second
        assert session.get(SourceTable, second).slug == "bbc-1"

    def test_by_name(self, resolver, session):
        source_id = resolver.resolve_source_id("newsapi", "Daily Planet")
        source = session.get(SourceTable, source_id)

        assert source.slug == "daily-planet"
        assert source.domain == "dailyplanet.com"
        assert resolver.resolve_source_id("newsapi", "daily planet ") == source_id

    def test_by_name_reuses_domain_owner(self, resolver):
        """The provider default finds the row already created for its domain."""
        by_domain = resolver.resolve_source_id("guardian", None, "theguardian.com")
        by_name = resolver.resolve_source_id("guardian", "Guardian Weekly Edition")
        default = resolver.resolve_source_id("guardian")

        assert default == by_domain
        assert by_name != by_domain


class TestNaming:
    @pytest.mark.parametrize(
        "domain, name",
        [
            ("bbc.co.uk", "BBC"),
            ("www.cnn.com", "CNN"),
            ("techcrunch.com", "TechCrunch"),
            ("theguardian.com", "The Guardian"),
            ("my-local_news.org", "My Local News"),
            ("example.net", "Example"),
        ],
    )
    def test_name_from_domain(self, domain, name):
        assert name_from_domain(domain) == name

    @pytest.mark.parametrize(
        "name, domain",
        [
            ("The Guardian", "theguardian.com"),
            ("BBC", "bbc.co.uk"),
            ("Daily Planet", "dailyplanet.com"),
        ],
    )
    def test_domain_from_name(self, name, domain):
        assert domain_from_name(name) == domain
