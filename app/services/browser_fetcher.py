"""Playwright-based rendering for JavaScript-driven (dynamic) web pages."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, NamedTuple

from playwright.async_api import BrowserContext, Page, async_playwright
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from app.services.fetcher import validate_url

logger = logging.getLogger(__name__)

MAX_CONTENT_SIZE = 10 * 1024 * 1024  # 10 MB
NAVIGATION_TIMEOUT_MS = 30_000
BODY_TIMEOUT_MS = 10_000
CONTENT_TIMEOUT_MS = 5_000

# Any one of these appearing means client-side content has been mounted
CONTENT_SELECTORS = "main, article, .content, #content"

# Strips page chrome from the live DOM, then returns the remaining text and links.
_EXTRACT_SCRIPT = """
() => {
    document
        .querySelectorAll('script, style, noscript, nav, header, footer, aside, [role="navigation"]')
        .forEach((el) => el.remove());
    document
        .querySelectorAll('[class*="sidebar"], [id*="sidebar"], [class*="cookie"]')
        .forEach((el) => el.remove());
    const links = Array.from(document.querySelectorAll('a[href]'))
        .map((a) => a.href)
        .filter((href) => href.startsWith('http'));
    return {
        text: document.body ? document.body.innerText : '',
        links: Array.from(new Set(links)),
    };
}
"""


class RenderedPage(NamedTuple):
    text: str
    links: List[str]
    html: str


@asynccontextmanager
async def browser_session(headless: bool = True) -> AsyncIterator[BrowserContext]:
    """Launch headless Chromium and yield a browser context; always shut it down."""
    async with async_playwright() as pw:
        browser = await pw.chromium.launch(
            headless=headless,
            args=[
                # --no-sandbox is required when running as root inside a container
                # (Docker drops the user namespace needed by Chromium's sandbox).
                "--no-sandbox",
                "--disable-dev-shm-usage",
                "--disable-gpu",
            ],
        )
        context = await browser.new_context(viewport={"width": 1280, "height": 800})
        try:
            yield context
        finally:
            await context.close()
            await browser.close()


@asynccontextmanager
async def open_page(context: BrowserContext) -> AsyncIterator[Page]:
    """Yield a fresh page that is closed on every exit path."""
    page = await context.new_page()
    try:
        yield page
    finally:
        await page.close()


async def render_page(context: BrowserContext, url: str) -> RenderedPage:
    """Render *url* in a new page of *context*.

    The page is closed before this function returns, whether or not
    navigation succeeded.

    Raises:
        ValueError: if the URL fails SSRF / scheme validation.
        RuntimeError: if the rendered HTML exceeds MAX_CONTENT_SIZE.
        playwright.async_api.Error: on navigation or browser errors.
    """
    validate_url(url)

    async with open_page(context) as page:
        await page.goto(url, wait_until="domcontentloaded", timeout=NAVIGATION_TIMEOUT_MS)

        try:
            await page.wait_for_selector("body", timeout=BODY_TIMEOUT_MS)
        except PlaywrightTimeoutError:
            logger.debug("Browser: no <body> after %d ms for %s", BODY_TIMEOUT_MS, url)

        try:
            await page.wait_for_selector(CONTENT_SELECTORS, timeout=CONTENT_TIMEOUT_MS)
        except PlaywrightTimeoutError:
            logger.debug("Browser: no dynamic content container on %s", url)

        extracted = await page.evaluate(_EXTRACT_SCRIPT) or {}
        html = await page.content()

    if len(html.encode()) > MAX_CONTENT_SIZE:
        raise RuntimeError("Rendered HTML exceeds the maximum allowed size.")

    return RenderedPage(
        text=str(extracted.get("text") or ""),
        links=[str(link) for link in extracted.get("links") or []],
        html=html,
    )
