"""Plain HTTP extraction: one GET per page, HTML converted to text."""

import asyncio
import logging
from typing import Optional

import httpx

from app.models.method import ExtractionMethod
from app.models.scraping import ScrapingResult
from app.services.crawler import DEFAULT_MAX_DEPTH, LoadedPage, VisitedSet, crawl
from app.services.errors import FetchError
from app.services.extractor import extract_links, html_to_text
from app.services.fetcher import fetch_url
from app.services.relevance import RelevanceFilter

logger = logging.getLogger(__name__)


async def fetch_html(url: str) -> str:
    """Fetch *url*, translating transport failures into :class:`FetchError`."""
    try:
        return await fetch_url(url)
    except httpx.TimeoutException as exc:
        raise FetchError(url, "Request timed out") from exc
    except httpx.HTTPStatusError as exc:
        raise FetchError(url, f"HTTP {exc.response.status_code}") from exc
    except (ValueError, httpx.HTTPError, RuntimeError) as exc:
        raise FetchError(url, str(exc) or exc.__class__.__name__) from exc


class PlainFetchStrategy:
    method = ExtractionMethod.PLAIN

    def __init__(self, relevance_filter: RelevanceFilter):
        self.relevance_filter = relevance_filter

    async def _load(self, url: str, testing: bool) -> LoadedPage:
        html = await fetch_html(url)
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
        logger.info("Plain fetch: processing %s (depth %d/%d)", current_url, current_depth, max_depth)
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
