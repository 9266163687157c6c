from pydantic import BaseModel, Field, HttpUrl

from app.models.method import ExtractionMethod


class MethodChooserRequest(BaseModel):
    url: HttpUrl


class TrialRequest(BaseModel):
    url: HttpUrl
    method: ExtractionMethod
    max_depth: int = Field(default=1, ge=0, le=2, description="Link depth followed during the trial (max 2).")
