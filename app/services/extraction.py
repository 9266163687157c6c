"""The extraction-strategy contract and the registry of available strategies."""

import asyncio
from typing import Dict, Optional, Protocol

from app.models.method import ExtractionMethod
from app.models.scraping import ScrapingResult
from app.services.api_docs import ApiDocsStrategy
from app.services.browser_rendered import BrowserRenderedStrategy
from app.services.crawler import DEFAULT_MAX_DEPTH, VisitedSet
from app.services.plain_fetch import PlainFetchStrategy
from app.services.relevance import RelevanceFilter


class ExtractionStrategy(Protocol):
    """Anything that can crawl a seed URL into a :class:`ScrapingResult`."""

    method: ExtractionMethod

    async def process(
        self,
        base_url: str,
        current_url: str,
        max_depth: int = DEFAULT_MAX_DEPTH,
        current_depth: int = 0,
        visited: Optional[VisitedSet] = None,
        testing: bool = False,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ScrapingResult: ...


StrategyRegistry = Dict[ExtractionMethod, ExtractionStrategy]


def build_strategies(relevance_filter: RelevanceFilter, *, headless: bool = True) -> StrategyRegistry:
    """Instantiate one strategy per :class:`ExtractionMethod`."""
    return {
        ExtractionMethod.PLAIN: PlainFetchStrategy(relevance_filter),
        ExtractionMethod.API_DOCS: ApiDocsStrategy(relevance_filter),
        ExtractionMethod.BROWSER: BrowserRenderedStrategy(relevance_filter, headless=headless),
    }
