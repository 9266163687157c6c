"""API documentation detection from URLs and page HTML.

:func:`is_api_docs_url` looks at the URL alone; :func:`is_api_docs_content`
looks for documentation-framework markup (Swagger UI, Redoc, generic
``api-reference`` containers) and for headings that API references typically
carry.  Either signal is enough for the API-docs extraction strategy to keep
a page.
"""

import re

from bs4 import BeautifulSoup

# ---------------------------------------------------------------------------
# URL keywords
# ---------------------------------------------------------------------------
_API_URL_PATTERN = re.compile(
    r"api|docs|documentation|reference|swagger|openapi|redoc",
    re.IGNORECASE,
)

# ---------------------------------------------------------------------------
# Documentation-framework fingerprints in the raw HTML
# ---------------------------------------------------------------------------
_API_MARKUP_SELECTORS = (
    "swagger-ui",
    ".swagger-ui",
    "redoc",
    ".redoc",
    ".api-docs",
    ".api-reference",
    ".api-documentation",
    "[data-swagger-ui]",
    "[data-redoc]",
)

# ---------------------------------------------------------------------------
# Heading / emphasis keywords
# ---------------------------------------------------------------------------
_API_HEADING_KEYWORDS = (
    "api reference",
    "api documentation",
    "endpoints",
    "http methods",
    "request parameters",
    "response schema",
    "authentication",
    "rate limiting",
)

_HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6", "strong")


def is_api_docs_url(url: str) -> bool:
    """Return True when *url* contains a typical API-documentation keyword."""
    return bool(_API_URL_PATTERN.search(url))


def is_api_docs_content(html: str) -> bool:
    """Return True when *html* looks like rendered API documentation."""
    soup = BeautifulSoup(html, "lxml")

    if any(soup.select_one(selector) is not None for selector in _API_MARKUP_SELECTORS):
        return True

    for tag in soup.find_all(_HEADING_TAGS):
        text = tag.get_text(" ", strip=True).lower()
        if any(keyword in text for keyword in _API_HEADING_KEYWORDS):
            return True
    return False
