from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.scraping import TrialDetails

Grade = Literal["A", "B", "C", "D", "E"]


class ExtractionMethod(str, Enum):
    PLAIN = "plain"
    API_DOCS = "api_docs"
    BROWSER = "browser"


class MethodGrade(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: ExtractionMethod
    grade: Grade
    explanation: str = ""


class TrialOutcome(BaseModel):
    """Result of running one strategy in testing mode against the seed URL."""

    method: ExtractionMethod
    success: bool
    error: Optional[str] = None
    pages: int = 0
    diagnostics: Optional[TrialDetails] = None


class MethodChoice(BaseModel):
    order: List[ExtractionMethod]
    grades: Dict[ExtractionMethod, MethodGrade]
    errors: List[str] = Field(default_factory=list)
    trials: List[TrialOutcome] = Field(default_factory=list)
