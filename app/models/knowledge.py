from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.models.vector import ScoredRecord, VectorRecord


class DeleteDocumentsRequest(BaseModel):
    document_ids: List[str] = Field(..., min_length=1)


class DeleteDocumentsResponse(BaseModel):
    namespace: str
    deleted: int


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    top_k: int = Field(default=5, ge=1, le=100)
    filter: Optional[Dict[str, Any]] = None


class SearchResponse(BaseModel):
    namespace: str
    results: List[ScoredRecord]


class DocumentListResponse(BaseModel):
    namespace: str
    total: int
    documents: List[VectorRecord]
