"""Depth-bounded, same-domain recursive crawl shared by every extraction strategy.

A strategy only supplies a *page loader*: an async callable that turns one
normalised URL into a :class:`LoadedPage` (or ``None`` to skip the page).
:func:`crawl` owns everything else: URL normalisation, the visited set,
domain confinement, relevance filtering, recursion, cancellation and the
testing-mode diagnostics.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, NamedTuple, Optional, Tuple
from urllib.parse import urljoin, urlparse

from app.models.scraping import ContentSample, ScrapingResult, TrialDetails
from app.services.content_analyzer import analyze_content, compare_quality
from app.services.errors import FetchError
from app.services.relevance import RelevanceFilter

logger = logging.getLogger(__name__)

# Links followed per page in testing mode, whatever the relevance filter returns
TEST_LINKS_COUNT = 2

# Characters of the best text copied into trial diagnostics
SAMPLE_CHARS = 1500

DEFAULT_MAX_DEPTH = 2

_DEFAULT_PORTS = {"http": ":80", "https": ":443"}


class LoadedPage(NamedTuple):
    text: str
    links: List[str]
    # False for documents that cannot link anywhere (e.g. PDFs)
    follow_links: bool = True


PageLoader = Callable[[str, bool], Awaitable[Optional[LoadedPage]]]


def normalize_url(url: str, base_url: str = "") -> str:
    """Resolve *url* against *base_url* and canonicalise it.

    The fragment is dropped, scheme and host are lower-cased, and the
    scheme's default port and a trailing slash are removed, so
    ``https://Docs.example.com:443/`` and ``https://docs.example.com``
    normalise to the same URL.

    Raises:
        ValueError: if the result is not an absolute http(s) URL.
    """
    parsed = urlparse(urljoin(base_url, url.strip()))
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Not an absolute http(s) URL: {url!r}")
    scheme = parsed.scheme.lower()
    netloc = parsed.netloc.lower()
    if netloc.endswith(_DEFAULT_PORTS[scheme]):
        netloc = netloc[: -len(_DEFAULT_PORTS[scheme])]
    path = parsed.path.rstrip("/") or "/"
    return parsed._replace(
        scheme=scheme,
        netloc=netloc,
        path=path,
        fragment="",
    ).geturl()


def same_host(url: str, base_url: str) -> bool:
    """Return True when *url* and *base_url* share a hostname."""
    return urlparse(url).hostname == urlparse(base_url).hostname


class VisitedSet:
    """URLs already claimed by one top-level crawl.

    :meth:`add` checks and inserts in one step; callers must claim a URL
    before fetching it.
    """

    def __init__(self) -> None:
        self._urls: set = set()

    def add(self, url: str) -> bool:
        """Insert *url*; return False if it was already present."""
        if url in self._urls:
            return False
        self._urls.add(url)
        return True

    def __contains__(self, url: object) -> bool:
        return url in self._urls

    def __len__(self) -> int:
        return len(self._urls)


def _cancelled(cancel_event: Optional[asyncio.Event]) -> bool:
    return cancel_event is not None and cancel_event.is_set()


async def crawl(
    load_page: PageLoader,
    base_url: str,
    current_url: str,
    *,
    max_depth: int,
    current_depth: int,
    visited: VisitedSet,
    testing: bool,
    relevance_filter: RelevanceFilter,
    cancel_event: Optional[asyncio.Event] = None,
) -> ScrapingResult:
    """Extract *current_url* and, depth permitting, its relevant same-domain links.

    Visited, cross-domain and loader-skipped URLs yield an empty successful
    result.  A :class:`FetchError` for *current_url* yields a failed result;
    a failed child never aborts its siblings.
    """
    if _cancelled(cancel_event):
        return ScrapingResult.empty(base_url)

    try:
        url = normalize_url(current_url, base_url)
    except ValueError as exc:
        logger.warning("Crawler: skipping %s – %s", current_url, exc)
        return ScrapingResult.failure(base_url, str(exc))

    if not visited.add(url):
        logger.debug("Crawler: already visited %s", url)
        return ScrapingResult.empty(base_url)

    if not same_host(url, base_url):
        logger.debug("Crawler: skipping external URL %s", url)
        return ScrapingResult.empty(base_url)

    if _cancelled(cancel_event):
        return ScrapingResult.empty(base_url)

    try:
        page = await load_page(url, testing)
    except FetchError as exc:
        logger.warning("Crawler: skipping %s – %s", url, exc.reason)
        diagnostics = TrialDetails(processed_url=url, errors=[exc.reason]) if testing else None
        return ScrapingResult.failure(base_url, exc.reason, diagnostics=diagnostics)

    if page is None:
        logger.debug("Crawler: loader skipped %s", url)
        return ScrapingResult.empty(base_url)

    texts = [page.text]
    source_urls = [url]
    samples = [ContentSample(url=url, content=page.text)]
    errors: List[str] = []
    links_to_process: List[str] = []

    if current_depth < max_depth and page.follow_links and page.links:
        relevant = await relevance_filter.filter(page.text, page.links)
        links_to_process = relevant[:TEST_LINKS_COUNT] if testing else relevant

        for link in links_to_process:
            if _cancelled(cancel_event):
                logger.info("Crawler: cancelled, returning partial result for %s", url)
                break
            child = await crawl(
                load_page,
                base_url,
                link,
                max_depth=max_depth,
                current_depth=current_depth + 1,
                visited=visited,
                testing=testing,
                relevance_filter=relevance_filter,
                cancel_event=cancel_event,
            )
            if not child.success:
                errors.append(f"{link}: {child.error}")
                continue
            texts.extend(child.texts)
            source_urls.extend(child.source_urls)
            if testing and child.texts:
                samples.append(ContentSample(url=child.source_urls[0], content=child.texts[0]))

    if not testing:
        return ScrapingResult(
            success=True, texts=texts, source_urls=source_urls, document_id=base_url
        )

    return _testing_result(base_url, texts, source_urls, samples, links_to_process, errors)


def _testing_result(
    base_url: str,
    texts: List[str],
    source_urls: List[str],
    samples: List[ContentSample],
    links_to_process: List[str],
    errors: List[str],
) -> ScrapingResult:
    if links_to_process and len(errors) == len(links_to_process):
        _, details = _best_sample(samples, len(links_to_process), errors)
        return ScrapingResult(
            success=False,
            texts=texts,
            source_urls=source_urls,
            document_id=base_url,
            error="All test links failed processing",
            diagnostics=details,
        )

    best, details = _best_sample(samples, len(links_to_process), errors)
    return ScrapingResult(
        success=True,
        texts=[best.content],
        source_urls=[best.url],
        document_id=base_url,
        diagnostics=details,
    )


def _best_sample(
    samples: List[ContentSample], number_of_links: int, errors: List[str]
) -> Tuple[ContentSample, TrialDetails]:
    quality = compare_quality([s.content for s in samples])
    best = samples[quality.best_index]
    details = TrialDetails(
        processed_url=best.url,
        content_sample=best.content[:SAMPLE_CHARS],
        extracted_text_length=len(best.content),
        number_of_links=number_of_links,
        content_stats=analyze_content(best.content),
        content_quality=quality,
        errors=errors,
    )
    return best, details
