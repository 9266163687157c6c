"""HTML to knowledge-base text conversion and link discovery."""

import re
from typing import List
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup
from markdownify import markdownify

from app.services.sanitizer import sanitize

_BLANK_LINES_RE = re.compile(r"\n{3,}")
_TRAILING_SPACE_RE = re.compile(r"[ \t]+\n")

_SKIPPED_HREF_PREFIXES = ("#", "javascript:", "mailto:", "tel:", "data:")


def clean_text(text: str) -> str:
    """Collapse runs of blank lines and strip trailing whitespace."""
    text = _TRAILING_SPACE_RE.sub("\n", text.replace("\r\n", "\n"))
    return _BLANK_LINES_RE.sub("\n\n", text).strip()


def html_to_text(html: str) -> str:
    """Convert *html* into readable text with paragraph breaks preserved.

    Scripts, styles and navigation/footer noise are removed first; headings,
    lists and tables survive as lightweight Markdown.
    """
    soup = sanitize(html)
    root = soup.find("body") or soup
    return clean_text(markdownify(str(root), heading_style="ATX", strip=["img"]))


def extract_links(html: str, base_url: str) -> List[str]:
    """Return the unique absolute http(s) links in *html*, in document order."""
    soup = BeautifulSoup(html, "lxml")
    seen: set = set()
    links: List[str] = []
    for a in soup.find_all("a", href=True):
        href = str(a["href"]).strip()
        if not href or href.lower().startswith(_SKIPPED_HREF_PREFIXES):
            continue
        abs_url = urljoin(base_url, href)
        if urlparse(abs_url).scheme not in ("http", "https"):
            continue
        if abs_url not in seen:
            seen.add(abs_url)
            links.append(abs_url)
    return links
