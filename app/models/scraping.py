from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

ContentType = Literal["text", "api_docs", "structured_data"]


class ContentStats(BaseModel):
    """Summary statistics for one extracted text."""

    model_config = ConfigDict(frozen=True)

    total_characters: int
    paragraph_count: int
    average_paragraph_length: float
    has_structured_data: bool
    content_type: ContentType


class ContentQuality(BaseModel):
    """Outcome of comparing several candidate texts for the same crawl."""

    best_index: int
    issues: List[str] = Field(default_factory=list)
    is_likely_code: bool = False
    readability_score: float = 0.0


class ContentSample(BaseModel):
    url: str
    content: str


class TrialDetails(BaseModel):
    """Diagnostics attached to a result produced in testing mode."""

    processed_url: str
    content_sample: str = ""
    extracted_text_length: int = 0
    number_of_links: int = 0
    content_stats: Optional[ContentStats] = None
    content_quality: Optional[ContentQuality] = None
    errors: List[str] = Field(default_factory=list)


class ScrapingResult(BaseModel):
    """Texts gathered by one extraction strategy, paired with their source URLs."""

    success: bool
    texts: List[str] = Field(default_factory=list)
    source_urls: List[str] = Field(default_factory=list)
    document_id: str
    error: Optional[str] = None
    diagnostics: Optional[TrialDetails] = None

    @model_validator(mode="after")
    def _texts_match_sources(self) -> "ScrapingResult":
        if len(self.texts) != len(self.source_urls):
            raise ValueError("texts and source_urls must have the same length")
        return self

    @classmethod
    def empty(cls, document_id: str) -> "ScrapingResult":
        """Successful result carrying no content (visited, skipped or cross-domain URL)."""
        return cls(success=True, document_id=document_id)

    @classmethod
    def failure(
        cls,
        document_id: str,
        error: str,
        diagnostics: Optional[TrialDetails] = None,
    ) -> "ScrapingResult":
        return cls(success=False, document_id=document_id, error=error, diagnostics=diagnostics)
