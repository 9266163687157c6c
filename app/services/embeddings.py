"""Text embeddings via the OpenAI embeddings endpoint."""

import logging
from typing import List, Optional, Protocol, Sequence

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "text-embedding-3-small"
BATCH_SIZE = 100


class Embedder(Protocol):
    async def embed(self, texts: Sequence[str]) -> List[List[float]]: ...


class OpenAIEmbedder:
    """Embed texts in batches, preserving input order."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        base_url: Optional[str] = None,
        batch_size: int = BATCH_SIZE,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self.batch_size = batch_size
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        vectors: List[List[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = list(texts[start : start + self.batch_size])
            response = await self.client.embeddings.create(model=self.model, input=batch)
            vectors.extend(item.embedding for item in sorted(response.data, key=lambda item: item.index))
            logger.debug("Embedded batch of %d texts with %s", len(batch), self.model)
        return vectors
