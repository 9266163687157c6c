"""Headless-browser extraction for JavaScript-rendered sites and PDF documents.

Chromium is launched when a crawl reaches its first HTML page and shared by
every later page of that top-level :meth:`process` call; each URL gets its own
page, which is closed before its content is processed further.  PDF URLs are
downloaded directly, so a crawl of PDFs only never starts a browser.
"""

import asyncio
import logging
from contextlib import AsyncExitStack
from typing import Optional

import httpx
from playwright.async_api import BrowserContext
from playwright.async_api import Error as PlaywrightError

from app.models.method import ExtractionMethod
from app.models.scraping import ScrapingResult
from app.services.browser_fetcher import browser_session, render_page
from app.services.crawler import DEFAULT_MAX_DEPTH, LoadedPage, VisitedSet, crawl
from app.services.errors import ExtractionEmptyError, FetchError
from app.services.extractor import html_to_text
from app.services.pdf_text import extract_pdf_text, is_pdf_url
from app.services.relevance import RelevanceFilter

logger = logging.getLogger(__name__)


class BrowserRenderedStrategy:
    method = ExtractionMethod.BROWSER

    def __init__(self, relevance_filter: RelevanceFilter, headless: bool = True):
        self.relevance_filter = relevance_filter
        self.headless = headless

    async def _load_pdf(self, url: str) -> LoadedPage:
        try:
            text = await extract_pdf_text(url)
        except (ValueError, httpx.HTTPError, RuntimeError) as exc:
            raise FetchError(url, str(exc) or exc.__class__.__name__) from exc
        if not text.strip():
            raise ExtractionEmptyError(url, "PDF parsing resulted in empty content")
        return LoadedPage(text=text, links=[], follow_links=False)

    async def _load_html(self, context: BrowserContext, url: str) -> LoadedPage:
        try:
            rendered = await render_page(context, url)
        except (ValueError, RuntimeError, PlaywrightError) as exc:
            raise FetchError(url, str(exc) or exc.__class__.__name__) from exc

        # The in-page script already removed page chrome, so the final HTML is clean
        text = html_to_text(rendered.html) or rendered.text.strip()
        return LoadedPage(text=text, links=rendered.links)

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
        logger.info("Browser: processing %s (depth %d/%d)", current_url, current_depth, max_depth)

        try:
            async with AsyncExitStack() as stack:
                context: Optional[BrowserContext] = None

                async def load(url: str, is_testing: bool) -> LoadedPage:
                    nonlocal context
                    if is_pdf_url(url):
                        return await self._load_pdf(url)
                    if context is None:
                        context = await stack.enter_async_context(browser_session(headless=self.headless))
                    return await self._load_html(context, url)

                return await crawl(
                    load,
                    base_url,
                    current_url,
                    max_depth=max_depth,
                    current_depth=current_depth,
                    visited=visited if visited is not None else VisitedSet(),
                    testing=testing,
                    relevance_filter=self.relevance_filter,
                    cancel_event=cancel_event,
                )
        except PlaywrightError as exc:
            logger.error("Browser: could not start Chromium for %s – %s", current_url, exc)
            return ScrapingResult.failure(base_url, f"Browser error: {exc}")
