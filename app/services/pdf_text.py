"""PDF download and text extraction."""

import asyncio
import io
import logging

import pdfplumber

from app.services.fetcher import fetch_bytes

logger = logging.getLogger(__name__)


def is_pdf_url(url: str) -> bool:
    return url.lower().split("?", 1)[0].endswith(".pdf")


def pdf_bytes_to_text(data: bytes) -> str:
    """Extract the text of every page, separated by blank lines."""
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        pages = [page.extract_text() or "" for page in pdf.pages]
    return "\n\n".join(text.strip() for text in pages if text.strip())


async def extract_pdf_text(url: str) -> str:
    """Download the PDF at *url* and return its text.

    Raises:
        ValueError, httpx.HTTPError: as :func:`fetch_bytes`.
        RuntimeError: also if the document cannot be parsed.
    """
    data = await fetch_bytes(url)
    try:
        text = await asyncio.to_thread(pdf_bytes_to_text, data)
    except Exception as exc:
        raise RuntimeError(f"PDF parsing failed: {exc}") from exc
    logger.info("PDF: extracted %d characters from %s", len(text), url)
    return text
