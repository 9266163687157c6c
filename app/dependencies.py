"""FastAPI dependency providers wiring the services to their collaborators."""

from functools import lru_cache

from qdrant_client import AsyncQdrantClient

from app.config import get_settings
from app.services.classifier import OpenAIClassifier
from app.services.embeddings import OpenAIEmbedder
from app.services.extraction import StrategyRegistry, build_strategies
from app.services.ingestion import IngestionService
from app.services.knowledge_store import ChunkedStore
from app.services.method_chooser import MethodChooser
from app.services.relevance import RelevanceFilter
from app.services.vector_store import QdrantVectorStore


@lru_cache
def get_classifier() -> OpenAIClassifier:
    settings = get_settings()
    return OpenAIClassifier(
        api_key=settings.openai_api_key,
        model=settings.classifier_model,
        base_url=settings.openai_base_url,
    )


@lru_cache
def get_strategies() -> StrategyRegistry:
    settings = get_settings()
    return build_strategies(RelevanceFilter(get_classifier()), headless=settings.browser_headless)


@lru_cache
def get_method_chooser() -> MethodChooser:
    return MethodChooser(get_strategies(), get_classifier())


@lru_cache
def get_store() -> ChunkedStore:
    settings = get_settings()
    embedder = OpenAIEmbedder(
        api_key=settings.openai_api_key,
        model=settings.embedding_model,
        base_url=settings.openai_base_url,
    )
    client = AsyncQdrantClient(url=settings.qdrant_url, api_key=settings.qdrant_api_key)
    vector_store = QdrantVectorStore(client, collection_prefix=settings.qdrant_collection_prefix)
    return ChunkedStore(embedder, vector_store)


@lru_cache
def get_ingestion_service() -> IngestionService:
    return IngestionService(get_method_chooser(), get_strategies(), get_store())
