"""Prompt templates sent to the classifier."""

import json
from typing import Sequence

from app.models.method import TrialOutcome

SYSTEM_PROMPT = (
    "You help a web crawler build a knowledge base. "
    "Always respond with a single valid JSON object and nothing else."
)

# Only the start of a page is sent; it is enough to judge what the site is about
PAGE_EXCERPT_CHARS = 1500

RELEVANCE_PROMPT_TEMPLATE = """Below is the beginning of a web page followed by the links found on it.

Page content:
{excerpt}

Links:
{links}

Select the links that lead to pages with content relevant to the page above
and worth adding to a knowledge base. Exclude social media, navigation,
login, footer and legal pages, and links to external sites.

Respond with JSON of the form {{"urls": ["<url>", ...]}} using only URLs from the list."""

GRADING_PROMPT_TEMPLATE = """We need to extract the textual content of {url} for a knowledge base.
Three extraction methods are available:

- "plain": a single HTTP GET of the HTML, converted to text.
- "api_docs": like "plain", but only keeps pages that look like API documentation
  (Swagger, Redoc, reference pages).
- "browser": renders the page in a headless browser so JavaScript content is included,
  and downloads PDF files.

A trial run of each method produced:
{trials}

Rank the three methods from most to least suitable for this URL and grade each
method from A (excellent) to E (unusable) with a one-sentence explanation.

Respond with JSON of the form:
{{"order": ["plain", "browser", "api_docs"],
  "grades": {{"plain": {{"grade": "A", "explanation": "..."}},
             "api_docs": {{"grade": "C", "explanation": "..."}},
             "browser": {{"grade": "B", "explanation": "..."}}}}}}"""


def build_relevance_prompt(page_text: str, links: Sequence[str]) -> str:
    return RELEVANCE_PROMPT_TEMPLATE.format(
        excerpt=page_text[:PAGE_EXCERPT_CHARS],
        links="\n".join(links),
    )


def _summarise_trial(trial: TrialOutcome) -> dict:
    summary = {"method": trial.method.value, "success": trial.success, "pages": trial.pages}
    if trial.error:
        summary["error"] = trial.error
    if trial.diagnostics is not None:
        details = trial.diagnostics
        summary["extracted_text_length"] = details.extracted_text_length
        summary["number_of_links"] = details.number_of_links
        summary["content_sample"] = details.content_sample[:300]
        if details.content_stats is not None:
            summary["content_type"] = details.content_stats.content_type
        if details.content_quality is not None:
            summary["issues"] = details.content_quality.issues
    return summary


def build_grading_prompt(url: str, trials: Sequence[TrialOutcome]) -> str:
    lines = [json.dumps(_summarise_trial(trial)) for trial in trials]
    return GRADING_PROMPT_TEMPLATE.format(url=url, trials="\n".join(lines) or "(no trials ran)")
