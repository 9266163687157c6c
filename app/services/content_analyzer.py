"""Content statistics and quality comparison for extracted page text.

:func:`analyze_content` summarises one text; :func:`compare_quality` picks the
most prose-like of several candidate texts, flagging samples that look like
raw code, data dumps or layout residue.
"""

import re
from typing import List, Sequence

from app.models.scraping import ContentQuality, ContentStats

# Long uppercase identifiers (constants, env vars) suggest code or config dumps
_UPPERCASE_RUN_RE = re.compile(r"[A-Z_]{10,}")

_CODE_KEYWORD_RE = re.compile(r"\b(?:function|const|var|let|return|import|export)\b")

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]")

_BRACKETS = frozenset("{}[]()")

# Above these densities the text is flagged (units: characters per occurrence)
_CHARS_PER_PARAGRAPH_BREAK = 100
_CHARS_PER_BRACKET = 50


def _paragraphs(text: str) -> List[str]:
    return [p for p in text.split("\n\n") if p.strip()]


def analyze_content(text: str) -> ContentStats:
    """Return length, paragraph and structure statistics for *text*."""
    paragraphs = _paragraphs(text)
    total = len(text)
    has_structured_data = ("{" in text and "}" in text) or ("[" in text and "]" in text)

    if has_structured_data and "api" in text.lower():
        content_type = "api_docs"
    elif has_structured_data:
        content_type = "structured_data"
    else:
        content_type = "text"

    return ContentStats(
        total_characters=total,
        paragraph_count=len(paragraphs),
        average_paragraph_length=total / max(len(paragraphs), 1),
        has_structured_data=has_structured_data,
        content_type=content_type,
    )


def find_issues(content: str) -> List[str]:
    """Return human-readable quality issues detected in *content*."""
    issues: List[str] = []
    length = len(content)

    if "\n\n" in content and len(content.split("\n\n")) > length / _CHARS_PER_PARAGRAPH_BREAK:
        issues.append("Excessive paragraph breaks")
    if _UPPERCASE_RUN_RE.search(content):
        issues.append("Long uppercase sequences")
    if sum(1 for ch in content if ch in _BRACKETS) > length / _CHARS_PER_BRACKET:
        issues.append("High density of brackets")
    if _CODE_KEYWORD_RE.search(content):
        issues.append("Contains programming keywords")

    return issues


def readability_score(content: str) -> float:
    """Sentences per word; higher means shorter, more prose-like sentences."""
    words = max(len(content.split()), 1)
    return len(_SENTENCE_SPLIT_RE.split(content)) / words


def compare_quality(samples: Sequence[str]) -> ContentQuality:
    """Select the best of *samples*.

    The best sample has the fewest issues; ties go to the highest readability
    score and then to the earliest sample.

    Raises:
        ValueError: if *samples* is empty.
    """
    if not samples:
        raise ValueError("compare_quality requires at least one sample")

    issues = [find_issues(sample) for sample in samples]
    scores = [readability_score(sample) for sample in samples]

    best = min(range(len(samples)), key=lambda i: (len(issues[i]), -scores[i], i))

    return ContentQuality(
        best_index=best,
        issues=issues[best],
        is_likely_code=len(issues[best]) > 1,
        readability_score=scores[best],
    )
