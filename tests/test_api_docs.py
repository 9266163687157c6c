"""Tests for app.services.api_docs.ApiDocsStrategy."""

import asyncio
from unittest.mock import AsyncMock, patch

from app.services.api_docs import ApiDocsStrategy
from app.services.crawler import VisitedSet
from app.services.relevance import RelevanceFilter
from tests.fakes import FakeClassifier, FakeWeb, keep_all_links, page

_MARKETING = "https://www.example.com/pricing"
_SWAGGER_HTML = (
    '<html><body><div class="swagger-ui"><h2>Pets</h2>'
    "<p>GET /pets lists every pet.</p></div></body></html>"
)


def _run(web: FakeWeb, *args, classifier=None):
    strategy = ApiDocsStrategy(RelevanceFilter(classifier or FakeClassifier(keep_all_links)))
    with patch("app.services.plain_fetch.fetch_url", new=AsyncMock(side_effect=web.fetch)):
        return asyncio.run(strategy.process(*args))


class TestApiDocsStrategy:
    def test_non_api_page_is_skipped_outside_testing(self):
        classifier = FakeClassifier(keep_all_links)
        web = FakeWeb({_MARKETING: page("Pricing", links=["https://www.example.com/plans"])})
        result = _run(web, _MARKETING, _MARKETING, 2, classifier=classifier)

        assert result.success is True
        assert result.texts == []
        assert result.source_urls == []
        assert classifier.prompts == []
        assert web.fetched == [_MARKETING]

    def test_non_api_page_is_kept_in_testing_mode(self):
        web = FakeWeb({_MARKETING: page("Pricing", "Plans for every team.")})
        result = _run(web, _MARKETING, _MARKETING, 1, 0, VisitedSet(), True)

        assert result.success is True
        assert len(result.texts) == 1
        assert "Plans for every team." in result.texts[0]

    def test_api_url_is_kept(self):
        url = "https://example.com/api/reference"
        web = FakeWeb({url: page("Users", "Create and list users.")})
        result = _run(web, url, url, 0)

        assert result.source_urls == [url]

    def test_api_markup_on_neutral_url_is_kept(self):
        url = "https://example.com/developers"
        web = FakeWeb({url: _SWAGGER_HTML})
        result = _run(web, url, url, 0)

        assert result.source_urls == [url]
        assert "GET /pets" in result.texts[0]

    def test_recurses_into_api_pages_only(self):
        seed = "https://example.com/docs"
        web = FakeWeb(
            {
                seed: page("Docs", links=["https://example.com/api/users", "https://example.com/blog/news"]),
                "https://example.com/api/users": page("Users API"),
                "https://example.com/blog/news": page("Company news"),
            }
        )
        result = _run(web, seed, seed, 1)

        assert result.source_urls == [seed, "https://example.com/api/users"]
        assert "https://example.com/blog/news" in web.fetched

    def test_fetch_error_is_reported(self):
        url = "https://example.com/api"
        result = _run(FakeWeb({}), url, url, 1)

        assert result.success is False
        assert result.error
