from pydantic import BaseModel
from typing import Optional


class ExplainRequest(BaseModel):
    text: str
    context: Optional[str] = None


class SummarizeRequest(BaseModel):
    note_id: Optional[str] = None
    text: Optional[str] = None


class AIContentResponse(BaseModel):
    success: bool
    content: str
