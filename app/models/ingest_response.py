from typing import Dict, List

from pydantic import BaseModel, Field

from app.models.method import ExtractionMethod, Grade, MethodGrade


class IngestSuccess(BaseModel):
    implementation_used: ExtractionMethod
    pages_processed: int
    document_id: str  # seed URL
    group_id: str
    document_ids: List[str] = Field(default_factory=list)
    grade: Grade
    grade_explanation: str = ""
    all_method_grades: Dict[ExtractionMethod, MethodGrade]


class IngestFailure(BaseModel):
    error: str
    method_grades: Dict[ExtractionMethod, MethodGrade] = Field(default_factory=dict)
    implementation_errors: List[str] = Field(default_factory=list)
