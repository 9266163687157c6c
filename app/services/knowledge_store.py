"""Chunked, metadata-tagged persistence of extracted text in a vector store.

Every stored text becomes one *document* with a fresh ``document_id``.  Long
texts are split into overlapping chunks; each chunk is a separate vector
record carrying the shared ``document_id`` and its position, so a document
can be deleted as a unit later on.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from app.models.vector import ScoredRecord, VectorRecord
from app.services.chunker import CHUNK_OVERLAP, CHUNK_SIZE, split_text
from app.services.embeddings import Embedder
from app.services.vector_store import VectorStore

logger = logging.getLogger(__name__)

CHUNK_THRESHOLD = 1000
LIST_PAGE_SIZE = 100
FETCH_BATCH_SIZE = 100
DELETE_BATCH_SIZE = 20
DELETE_PAUSE_SECONDS = 0.1
DEFAULT_TOP_K = 5

# Keys written by the store itself; caller metadata never sets them
RESERVED_KEYS = frozenset(
    {"document_id", "chunk_index", "total_chunks", "is_chunk", "original_length", "text", "timestamp"}
)


def _new_document_id() -> str:
    return f"doc_{uuid.uuid4().hex}"


def _batches(items: Sequence[str], size: int) -> List[List[str]]:
    return [list(items[start : start + size]) for start in range(0, len(items), size)]


class ChunkedStore:
    def __init__(
        self,
        embedder: Embedder,
        vector_store: VectorStore,
        chunk_threshold: int = CHUNK_THRESHOLD,
        chunk_size: int = CHUNK_SIZE,
        chunk_overlap: int = CHUNK_OVERLAP,
        delete_pause_seconds: float = DELETE_PAUSE_SECONDS,
    ):
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError("chunk_overlap must be non-negative and smaller than chunk_size")
        self.embedder = embedder
        self.vector_store = vector_store
        self.chunk_threshold = chunk_threshold
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.delete_pause_seconds = delete_pause_seconds

    # ── Writing ──────────────────────────────────────────────────────────────

    def _records_for(self, text: str, metadata: Dict[str, Any], timestamp: str) -> List[Dict[str, Any]]:
        document_id = _new_document_id()
        caller_fields = {key: value for key, value in metadata.items() if key not in RESERVED_KEYS}
        base = {**caller_fields, "document_id": document_id, "timestamp": timestamp}

        if len(text) <= self.chunk_threshold:
            return [{**base, "is_chunk": False, "text": text}]

        chunks = split_text(text, self.chunk_size, self.chunk_overlap)
        return [
            {
                **base,
                "is_chunk": True,
                "chunk_index": index,
                "total_chunks": len(chunks),
                "original_length": len(text),
                "text": chunk,
            }
            for index, chunk in enumerate(chunks)
        ]

    async def store(
        self,
        texts: Sequence[str],
        metadata: Dict[str, Any],
        namespace: str,
    ) -> List[str]:
        """Embed and upsert *texts* into *namespace*; return one document id per text.

        All records are embedded in one call and upserted in one batch.
        """
        timestamp = datetime.now(timezone.utc).isoformat()
        payloads: List[Dict[str, Any]] = []
        document_ids: List[str] = []
        for text in texts:
            records = self._records_for(text, metadata, timestamp)
            document_ids.append(records[0]["document_id"])
            payloads.extend(records)

        if not payloads:
            return []

        vectors = await self.embedder.embed([payload["text"] for payload in payloads])
        if len(vectors) != len(payloads):
            raise RuntimeError(
                f"Embedder returned {len(vectors)} vectors for {len(payloads)} records"
            )

        records = [
            VectorRecord(id=str(uuid.uuid4()), embedding=vector, metadata=payload)
            for vector, payload in zip(vectors, payloads)
        ]
        await self.vector_store.upsert(namespace, records)
        logger.info(
            "Stored %d documents as %d records in namespace %s",
            len(document_ids),
            len(records),
            namespace,
        )
        return document_ids

    # ── Deleting ─────────────────────────────────────────────────────────────

    async def _all_ids(self, namespace: str, cancel_event: Optional[asyncio.Event]) -> List[str]:
        ids: List[str] = []
        page_token: Optional[str] = None
        while True:
            if cancel_event is not None and cancel_event.is_set():
                break
            page, page_token = await self.vector_store.list_ids(namespace, LIST_PAGE_SIZE, page_token)
            ids.extend(page)
            if not page_token:
                break
        return ids

    async def delete_by_document_id(
        self,
        document_ids: Sequence[str],
        namespace: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> int:
        """Delete every chunk belonging to *document_ids*; return the number of records removed.

        The namespace is scanned id by id, records are fetched in batches to
        read their ``document_id`` and the matches are deleted in small
        batches with a pause in between.  Setting *cancel_event* stops the
        scan before the next batch.
        """
        targets = set(document_ids)
        if not targets:
            return 0

        matching: List[str] = []
        for batch in _batches(await self._all_ids(namespace, cancel_event), FETCH_BATCH_SIZE):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Delete in %s cancelled during scan", namespace)
                return 0
            for record in await self.vector_store.fetch_by_ids(namespace, batch):
                if record.metadata.get("document_id") in targets:
                    matching.append(record.id)

        deleted = 0
        delete_batches = _batches(matching, DELETE_BATCH_SIZE)
        for index, batch in enumerate(delete_batches):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Delete in %s cancelled after %d records", namespace, deleted)
                break
            await self.vector_store.delete_by_ids(namespace, batch)
            deleted += len(batch)
            if index < len(delete_batches) - 1:
                await asyncio.sleep(self.delete_pause_seconds)

        logger.info(
            "Deleted %d records for %d documents in namespace %s",
            deleted,
            len(targets),
            namespace,
        )
        return deleted

    async def delete_namespace(self, namespace: str) -> None:
        await self.vector_store.delete_namespace(namespace)
        logger.info("Deleted namespace %s", namespace)

    # ── Reading ──────────────────────────────────────────────────────────────

    async def search(
        self,
        namespace: str,
        query: str,
        top_k: int = DEFAULT_TOP_K,
        metadata_filter: Optional[Dict[str, Any]] = None,
    ) -> List[ScoredRecord]:
        """Return the *top_k* records most similar to *query*."""
        [vector] = await self.embedder.embed([query])
        return await self.vector_store.similarity_search(namespace, vector, top_k, metadata_filter)

    async def list_documents(self, namespace: str) -> List[VectorRecord]:
        """Return one record per stored document, preferring its first chunk."""
        documents: Dict[str, VectorRecord] = {}
        for batch in _batches(await self._all_ids(namespace, None), FETCH_BATCH_SIZE):
            for record in await self.vector_store.fetch_by_ids(namespace, batch):
                document_id = record.metadata.get("document_id")
                if document_id is None:
                    continue
                current = documents.get(document_id)
                if current is None or record.metadata.get("chunk_index", 0) < current.metadata.get("chunk_index", 0):
                    documents[document_id] = record
        return list(documents.values())
