"""Link relevance filtering backed by the classifier."""

import logging
from typing import List, Sequence

from app.services.classifier import Classifier
from app.services.errors import ClassifierError
from app.services.prompts import build_relevance_prompt

logger = logging.getLogger(__name__)

# Maximum number of candidate links sent in a single classifier call
BATCH_SIZE = 50


class RelevanceFilter:
    """Ask the classifier which discovered links are worth following.

    The returned list is always a subset of the candidates, in candidate
    order, without duplicates.  A batch whose classifier call fails or whose
    response is malformed contributes no links.
    """

    def __init__(self, classifier: Classifier, batch_size: int = BATCH_SIZE):
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.classifier = classifier
        self.batch_size = batch_size

    async def filter(self, page_text: str, links: Sequence[str]) -> List[str]:
        candidates = list(dict.fromkeys(links))
        if not candidates:
            return []

        selected: set = set()
        for start in range(0, len(candidates), self.batch_size):
            batch = candidates[start : start + self.batch_size]
            selected.update(await self._filter_batch(page_text, batch))

        relevant = [link for link in candidates if link in selected]
        logger.info("Relevance filter kept %d of %d links", len(relevant), len(candidates))
        return relevant

    async def _filter_batch(self, page_text: str, batch: List[str]) -> List[str]:
        prompt = build_relevance_prompt(page_text, batch)
        try:
            response = await self.classifier.rank(prompt)
        except ClassifierError as exc:
            logger.warning("Relevance filter: classifier failed – %s", exc)
            return []

        urls = response.get("urls")
        if not isinstance(urls, list):
            logger.warning("Relevance filter: response has no 'urls' list")
            return []

        allowed = set(batch)
        return [url for url in urls if isinstance(url, str) and url in allowed]
