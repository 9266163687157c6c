"""Tests for chunking and the chunked knowledge store."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from app.services.chunker import split_text
from app.services.knowledge_store import DELETE_BATCH_SIZE, ChunkedStore
from tests.fakes import FakeEmbedder, FakeVectorStore

NS = "support"


def _store(**kwargs):
    embedder, vectors = FakeEmbedder(), FakeVectorStore()
    return ChunkedStore(embedder, vectors, delete_pause_seconds=0, **kwargs), embedder, vectors


def _records(vectors: FakeVectorStore, namespace: str = NS):
    return list(vectors.namespaces.get(namespace, {}).values())


class TestSplitText:
    def test_window_positions(self):
        text = "".join(chr(ord("a") + i % 26) for i in range(1200))
        chunks = split_text(text, 500, 50)

        assert len(chunks) == 3
        for i, chunk in enumerate(chunks):
            start = i * 450
            assert chunk == text[start : start + 500]

    def test_last_window_reaches_end(self):
        text = "x" * 951
        chunks = split_text(text, 500, 50)
        assert len(chunks) == 3
        assert chunks[-1] == text[900:]
        assert len(chunks[-1]) == 51

    def test_short_text_is_one_chunk(self):
        assert split_text("hello", 500, 50) == ["hello"]

    def test_empty_text(self):
        assert split_text("", 500, 50) == []

    @pytest.mark.parametrize("size, overlap", [(0, 0), (100, 100), (100, -1)])
    def test_invalid_parameters(self, size, overlap):
        with pytest.raises(ValueError):
            split_text("abc", size, overlap)


class TestStore:
    def test_long_text_is_chunked(self):
        store, _, vectors = _store()
        text = "Lorem ipsum dolor sit amet. " * 86  # 2408 characters
        [document_id] = asyncio.run(store.store([text], {"source": "https://x.org/"}, NS))

        records = sorted(_records(vectors), key=lambda r: r.metadata["chunk_index"])
        assert len(records) == 6
        assert [r.metadata["chunk_index"] for r in records] == list(range(6))
        for record in records:
            meta = record.metadata
            assert meta["document_id"] == document_id
            assert meta["total_chunks"] == 6
            assert meta["is_chunk"] is True
            assert meta["original_length"] == len(text)
            assert meta["source"] == "https://x.org/"
            assert "timestamp" in meta
        assert records[0].metadata["text"] == text[:500]
        assert records[1].metadata["text"] == text[450:950]

    def test_short_text_is_single_record(self):
        store, _, vectors = _store()
        [document_id] = asyncio.run(store.store(["Short answer."], {}, NS))

        [record] = _records(vectors)
        assert record.metadata["document_id"] == document_id
        assert record.metadata["is_chunk"] is False
        assert "chunk_index" not in record.metadata
        assert "total_chunks" not in record.metadata
        assert record.metadata["text"] == "Short answer."

    def test_threshold_is_exclusive(self):
        store, _, vectors = _store()
        asyncio.run(store.store(["a" * 1000, "b" * 1001], {}, NS))
        flags = sorted(r.metadata["is_chunk"] for r in _records(vectors))
        assert flags == [False, True, True, True]

    def test_fresh_document_id_per_text(self):
        store, _, _ = _store()
        ids = asyncio.run(store.store(["one", "two"], {}, NS))
        assert len(set(ids)) == 2

    def test_caller_metadata_cannot_override_bookkeeping(self):
        store, _, vectors = _store()
        caller = {
            "document_id": "mine",
            "is_chunk": True,
            "chunk_index": 7,
            "total_chunks": 9,
            "original_length": 42,
            "text": "forged",
            "timestamp": "1970-01-01",
            "team": "docs",
        }
        [document_id] = asyncio.run(store.store(["text"], caller, NS))
        [record] = _records(vectors)
        meta = record.metadata
        assert meta["document_id"] == document_id
        assert meta["is_chunk"] is False
        assert "chunk_index" not in meta
        assert "total_chunks" not in meta
        assert "original_length" not in meta
        assert meta["text"] == "text"
        assert meta["timestamp"] != "1970-01-01"
        assert meta["team"] == "docs"

    def test_caller_chunk_index_does_not_confuse_listing(self):
        store, _, _ = _store()
        [document_id] = asyncio.run(store.store(["z" * 3000], {"chunk_index": -1}, NS))

        [listed] = asyncio.run(store.list_documents(NS))

        assert listed.metadata["document_id"] == document_id
        assert listed.metadata["chunk_index"] == 0

    def test_one_embed_call_and_one_upsert(self):
        store, embedder, vectors = _store()
        asyncio.run(store.store(["x" * 2000, "short"], {}, NS))
        assert len(embedder.calls) == 1
        assert vectors.upsert_calls == [(NS, len(split_text("x" * 2000)) + 1)]

    def test_empty_input_stores_nothing(self):
        store, embedder, vectors = _store()
        assert asyncio.run(store.store([], {}, NS)) == []
        assert embedder.calls == []
        assert vectors.upsert_calls == []

    def test_embedder_count_mismatch_raises(self):
        store, embedder, _ = _store()
        embedder.embed = AsyncMock(return_value=[])
        with pytest.raises(RuntimeError):
            asyncio.run(store.store(["text"], {}, NS))


class TestDeleteByDocumentId:
    def test_removes_every_chunk_of_target_documents_only(self):
        store, _, vectors = _store()
        long_ids = asyncio.run(store.store(["y" * 5000, "z" * 3000], {}, NS))
        [keep_id] = asyncio.run(store.store(["keep me"], {}, NS))

        deleted = asyncio.run(store.delete_by_document_id([long_ids[0]], NS))

        remaining = {r.metadata["document_id"] for r in _records(vectors)}
        assert deleted == len(split_text("y" * 5000))
        assert remaining == {long_ids[1], keep_id}

    def test_scans_beyond_one_page(self):
        store, _, vectors = _store()
        ids = asyncio.run(store.store([f"doc {i}" for i in range(250)], {}, NS))

        deleted = asyncio.run(store.delete_by_document_id(ids[200:], NS))

        assert deleted == 50
        assert len(_records(vectors)) == 200
        assert all(len(batch) <= 100 for batch in vectors.fetch_calls)

    def test_deletes_in_small_batches_with_pauses(self):
        store, _, vectors = _store()
        [document_id] = asyncio.run(store.store(["w" * 20000], {}, NS))
        total = len(split_text("w" * 20000))

        with patch("app.services.knowledge_store.asyncio.sleep", new=AsyncMock()) as sleep:
            deleted = asyncio.run(store.delete_by_document_id([document_id], NS))

        assert deleted == total
        assert all(len(batch) <= DELETE_BATCH_SIZE for batch in vectors.delete_calls)
        assert sleep.await_count == len(vectors.delete_calls) - 1

    def test_unknown_ids_delete_nothing(self):
        store, _, vectors = _store()
        asyncio.run(store.store(["text"], {}, NS))
        assert asyncio.run(store.delete_by_document_id(["doc_missing"], NS)) == 0
        assert vectors.delete_calls == []

    def test_cancellation_stops_before_deleting(self):
        store, _, vectors = _store()
        [document_id] = asyncio.run(store.store(["text"], {}, NS))
        cancel = asyncio.Event()
        cancel.set()

        assert asyncio.run(store.delete_by_document_id([document_id], NS, cancel)) == 0
        assert len(_records(vectors)) == 1


class TestNamespaceAndReads:
    def test_delete_namespace(self):
        store, _, vectors = _store()
        asyncio.run(store.store(["a", "b"], {}, NS))
        asyncio.run(store.store(["c"], {}, "other"))

        asyncio.run(store.delete_namespace(NS))

        assert _records(vectors, NS) == []
        assert len(_records(vectors, "other")) == 1

    def test_list_documents_returns_first_chunk_per_document(self):
        store, _, _ = _store()
        ids = asyncio.run(store.store(["q" * 3000, "short"], {}, NS))

        documents = asyncio.run(store.list_documents(NS))

        by_id = {d.metadata["document_id"]: d for d in documents}
        assert set(by_id) == set(ids)
        assert by_id[ids[0]].metadata["chunk_index"] == 0

    def test_search_embeds_query_and_applies_filter(self):
        store, embedder, _ = _store()
        asyncio.run(store.store(["alpha"], {"lang": "en"}, NS))
        asyncio.run(store.store(["beta!"], {"lang": "de"}, NS))

        results = asyncio.run(store.search(NS, "query", top_k=5, metadata_filter={"lang": "de"}))

        assert embedder.calls[-1] == ["query"]
        assert [r.metadata["text"] for r in results] == ["beta!"]
