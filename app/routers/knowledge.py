import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import APIRouter, Depends, HTTPException, Path, Request
from openai import OpenAIError
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse

from app.dependencies import get_store
from app.limits import limiter
from app.models.knowledge import (
    DeleteDocumentsRequest,
    DeleteDocumentsResponse,
    DocumentListResponse,
    SearchRequest,
    SearchResponse,
)
from app.services.knowledge_store import ChunkedStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/namespaces", tags=["Knowledge base"])

NamespacePath = Path(..., min_length=1, max_length=128, pattern=r"^[A-Za-z0-9_\-]+$")


@router.get("/{namespace}/documents", response_model=DocumentListResponse, summary="List stored documents")
async def list_documents(
    namespace: str = NamespacePath,
    store: ChunkedStore = Depends(get_store),
) -> DocumentListResponse:
    with _upstream_errors(namespace):
        documents = await store.list_documents(namespace)
    return DocumentListResponse(namespace=namespace, total=len(documents), documents=documents)


@router.post("/{namespace}/search", response_model=SearchResponse, summary="Similarity search")
@limiter.limit("30/minute")
async def search(
    request: Request,
    body: SearchRequest,
    namespace: str = NamespacePath,
    store: ChunkedStore = Depends(get_store),
) -> SearchResponse:
    with _upstream_errors(namespace):
        results = await store.search(namespace, body.query, body.top_k, body.filter)
    return SearchResponse(namespace=namespace, results=results)


@router.post(
    "/{namespace}/documents/delete",
    response_model=DeleteDocumentsResponse,
    summary="Delete documents and all of their chunks",
)
async def delete_documents(
    body: DeleteDocumentsRequest,
    namespace: str = NamespacePath,
    store: ChunkedStore = Depends(get_store),
) -> DeleteDocumentsResponse:
    with _upstream_errors(namespace):
        deleted = await store.delete_by_document_id(body.document_ids, namespace)
    logger.info("Deleted %d records from %s", deleted, namespace)
    return DeleteDocumentsResponse(namespace=namespace, deleted=deleted)


@router.delete("/{namespace}", status_code=204, summary="Delete a whole namespace")
async def delete_namespace(
    namespace: str = NamespacePath,
    store: ChunkedStore = Depends(get_store),
) -> None:
    with _upstream_errors(namespace):
        await store.delete_namespace(namespace)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

@contextmanager
def _upstream_errors(namespace: str) -> Iterator[None]:
    """Turn embedding and vector-store failures into HTTP exceptions."""
    try:
        yield
    except ValueError as exc:
        logger.warning("Invalid knowledge-base request for %s – %s", namespace, exc)
        raise HTTPException(status_code=400, detail=str(exc))
    except OpenAIError as exc:
        logger.error("Embedding request failed for %s: %s", namespace, exc)
        raise HTTPException(status_code=502, detail="Embedding service unavailable.")
    except (UnexpectedResponse, ResponseHandlingException) as exc:
        logger.error("Vector store error for %s: %s", namespace, exc)
        raise HTTPException(status_code=502, detail="Vector store unavailable.")
