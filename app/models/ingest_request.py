from typing import Any, Dict

from pydantic import BaseModel, Field, HttpUrl


class IngestRequest(BaseModel):
    url: HttpUrl
    namespace: str = Field(..., min_length=1, max_length=128, pattern=r"^[A-Za-z0-9_\-]+$")
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Extra fields stored with every record of this ingestion.",
    )
    max_depth: int = Field(default=2, ge=0, le=5, description="Link depth followed from the seed URL (max 5).")
