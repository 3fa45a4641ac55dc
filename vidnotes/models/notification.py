from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import datetime

from vidnotes.models.note import utcnow


class Notification(BaseModel):
    title: str
    description: Optional[str] = None
    variant: Literal["default", "destructive"] = "default"
    created_at: datetime = Field(default_factory=utcnow)


class NotificationResponse(BaseModel):
    success: bool
    data: List[Notification]
    count: int
