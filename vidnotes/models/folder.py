from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from vidnotes.core.config import DEFAULT_FOLDER_COLOR
from vidnotes.models.note import as_utc


class Folder(BaseModel):
    id: str
    user_id: str
    name: str
    color: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, doc: dict) -> "Folder":
        return cls(
            id=str(doc["_id"]),
            user_id=doc["user_id"],
            name=doc["name"],
            color=doc.get("color") or DEFAULT_FOLDER_COLOR,
            created_at=as_utc(doc["created_at"]),
            updated_at=as_utc(doc["updated_at"]),
        )


class FolderCreate(BaseModel):
    name: str
    color: Optional[str] = None


class FolderListResponse(BaseModel):
    success: bool
    data: List[Folder]
    count: int
