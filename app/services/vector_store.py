"""Vector store access.

:class:`VectorStore` is the narrow interface the knowledge store relies on.
:class:`QdrantVectorStore` implements it with one Qdrant collection per
namespace; the collection is created on first upsert with the dimension of
the first vector.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    MatchValue,
    PointIdsList,
    PointStruct,
    VectorParams,
)

from app.models.vector import ScoredRecord, VectorRecord

logger = logging.getLogger(__name__)

COLLECTION_PREFIX = "kb_"


class VectorStore(Protocol):
    async def upsert(self, namespace: str, records: Sequence[VectorRecord]) -> None: ...

    async def list_ids(
        self, namespace: str, limit: int, page_token: Optional[str] = None
    ) -> Tuple[List[str], Optional[str]]: ...

    async def fetch_by_ids(self, namespace: str, ids: Sequence[str]) -> List[VectorRecord]: ...

    async def delete_by_ids(self, namespace: str, ids: Sequence[str]) -> None: ...

    async def delete_namespace(self, namespace: str) -> None: ...

    async def similarity_search(
        self,
        namespace: str,
        vector: Sequence[float],
        top_k: int,
        metadata_filter: Optional[Dict[str, Any]] = None,
    ) -> List[ScoredRecord]: ...


def _build_filter(metadata_filter: Optional[Dict[str, Any]]) -> Optional[Filter]:
    if not metadata_filter:
        return None
    return Filter(
        must=[
            FieldCondition(key=key, match=MatchValue(value=value))
            for key, value in metadata_filter.items()
        ]
    )


class QdrantVectorStore:
    def __init__(
        self,
        client: AsyncQdrantClient,
        collection_prefix: str = COLLECTION_PREFIX,
        distance: Distance = Distance.COSINE,
    ):
        self.client = client
        self.collection_prefix = collection_prefix
        self.distance = distance

    def collection_name(self, namespace: str) -> str:
        return f"{self.collection_prefix}{namespace}"

    async def _exists(self, collection: str) -> bool:
        return await self.client.collection_exists(collection)

    async def _ensure_collection(self, collection: str, dimension: int) -> None:
        if await self._exists(collection):
            return
        await self.client.create_collection(
            collection_name=collection,
            vectors_config=VectorParams(size=dimension, distance=self.distance),
        )
        logger.info("Created Qdrant collection %s (dimension %d)", collection, dimension)

    async def upsert(self, namespace: str, records: Sequence[VectorRecord]) -> None:
        if not records:
            return
        collection = self.collection_name(namespace)
        await self._ensure_collection(collection, len(records[0].embedding))
        await self.client.upsert(
            collection_name=collection,
            points=[
                PointStruct(id=record.id, vector=record.embedding, payload=record.metadata)
                for record in records
            ],
            wait=True,
        )

    async def list_ids(
        self, namespace: str, limit: int, page_token: Optional[str] = None
    ) -> Tuple[List[str], Optional[str]]:
        collection = self.collection_name(namespace)
        if not await self._exists(collection):
            return [], None
        points, next_offset = await self.client.scroll(
            collection_name=collection,
            limit=limit,
            offset=page_token,
            with_payload=False,
            with_vectors=False,
        )
        next_token = str(next_offset) if next_offset is not None else None
        return [str(point.id) for point in points], next_token

    async def fetch_by_ids(self, namespace: str, ids: Sequence[str]) -> List[VectorRecord]:
        collection = self.collection_name(namespace)
        if not ids or not await self._exists(collection):
            return []
        points = await self.client.retrieve(
            collection_name=collection,
            ids=list(ids),
            with_payload=True,
            with_vectors=False,
        )
        return [VectorRecord(id=str(point.id), metadata=point.payload or {}) for point in points]

    async def delete_by_ids(self, namespace: str, ids: Sequence[str]) -> None:
        if not ids:
            return
        await self.client.delete(
            collection_name=self.collection_name(namespace),
            points_selector=PointIdsList(points=list(ids)),
            wait=True,
        )

    async def delete_namespace(self, namespace: str) -> None:
        collection = self.collection_name(namespace)
        if await self._exists(collection):
            await self.client.delete_collection(collection_name=collection)
            logger.info("Deleted Qdrant collection %s", collection)

    async def similarity_search(
        self,
        namespace: str,
        vector: Sequence[float],
        top_k: int,
        metadata_filter: Optional[Dict[str, Any]] = None,
    ) -> List[ScoredRecord]:
        collection = self.collection_name(namespace)
        if not await self._exists(collection):
            return []
        response = await self.client.query_points(
            collection_name=collection,
            query=list(vector),
            limit=top_k,
            query_filter=_build_filter(metadata_filter),
            with_payload=True,
        )
        return [
            ScoredRecord(id=str(point.id), score=point.score, metadata=point.payload or {})
            for point in response.points
        ]
