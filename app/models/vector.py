from typing import Any, Dict, List

from pydantic import BaseModel, Field


class VectorRecord(BaseModel):
    """One stored chunk: an embedding plus its metadata (including its text)."""

    id: str
    embedding: List[float] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ScoredRecord(BaseModel):
    id: str
    score: float
    metadata: Dict[str, Any] = Field(default_factory=dict)
