"""API-documentation-aware extraction.

Fetches pages like :mod:`app.services.plain_fetch` but only keeps pages whose
URL or markup identifies them as API documentation.  Outside testing mode,
any other page is skipped along with its links.
"""

import asyncio
import logging
from typing import Optional

from app.models.method import ExtractionMethod
from app.models.scraping import ScrapingResult
from app.services.crawler import DEFAULT_MAX_DEPTH, LoadedPage, VisitedSet, crawl
from app.services.detector import is_api_docs_content, is_api_docs_url
from app.services.extractor import extract_links, html_to_text
from app.services.plain_fetch import fetch_html
from app.services.relevance import RelevanceFilter

logger = logging.getLogger(__name__)


class ApiDocsStrategy:
    method = ExtractionMethod.API_DOCS

    def __init__(self, relevance_filter: RelevanceFilter):
        self.relevance_filter = relevance_filter

    async def _load(self, url: str, testing: bool) -> Optional[LoadedPage]:
        html = await fetch_html(url)

        if not is_api_docs_url(url) and not is_api_docs_content(html) and not testing:
            logger.info("API docs: %s does not look like API documentation, skipping", url)
            return None

        return LoadedPage(text=html_to_text(html), links=extract_links(html, url))

    async def process(
        self,
        base_url: str,
        current_url: str,
        max_depth: int = DEFAULT_MAX_DEPTH,
        current_depth: int = 0,
        visited: Optional[VisitedSet] = None,
        testing: bool = False,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ScrapingResult:
        logger.info("API docs: processing %s (depth %d/%d)", current_url, current_depth, max_depth)
        return await crawl(
            self._load,
            base_url,
            current_url,
            max_depth=max_depth,
            current_depth=current_depth,
            visited=visited if visited is not None else VisitedSet(),
            testing=testing,
            relevance_filter=self.relevance_filter,
            cancel_event=cancel_event,
        )
