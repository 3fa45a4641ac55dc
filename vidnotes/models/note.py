from pydantic import BaseModel, Field, computed_field
from typing import List, Optional
from datetime import datetime, timezone
import uuid

THUMBNAIL_URL_TEMPLATE = "https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"


def generate_id() -> str:
    return uuid.uuid4().hex[:12]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Mongo hands back naive datetimes unless the client is tz-aware."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def format_time(seconds: float) -> str:
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


class Timestamp(BaseModel):
    id: str = Field(default_factory=generate_id)
    time: float = Field(ge=0)
    label: str
    note: Optional[str] = None


class Note(BaseModel):
    id: str
    user_id: str
    video_id: str
    video_title: str
    video_url: str
    content: str = ""
    timestamps: List[Timestamp] = []
    tags: List[str] = []
    folder_id: Optional[str] = None
    is_public: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    views: int = 0

    @computed_field
    @property
    def thumbnail_url(self) -> str:
        return THUMBNAIL_URL_TEMPLATE.format(video_id=self.video_id)

    @classmethod
    def from_document(cls, doc: dict) -> "Note":
        return cls(
            id=str(doc["_id"]),
            user_id=doc["user_id"],
            video_id=doc["video_id"],
            video_title=doc.get("video_title", ""),
            video_url=doc.get("video_url", ""),
            content=doc.get("content") or "",
            timestamps=doc.get("timestamps") or [],
            tags=doc.get("tags") or [],
            folder_id=doc.get("folder_id"),
            is_public=doc.get("is_public", False),
            created_at=as_utc(doc["created_at"]),
            updated_at=as_utc(doc["updated_at"]),
            views=doc.get("views", 0),
        )

    def matches(self, query: str) -> bool:
        """Case-insensitive match against title, content or any tag."""
        needle = query.lower()
        return (
            needle in self.video_title.lower()
            or needle in self.content.lower()
            or any(needle in tag.lower() for tag in self.tags)
        )


class NoteCreate(BaseModel):
    user_id: str
    video_id: str
    video_title: str = ""
    video_url: str = ""


class NoteUpdate(BaseModel):
    content: Optional[str] = None
    tags: Optional[List[str]] = None
    timestamps: Optional[List[Timestamp]] = None
    folder_id: Optional[str] = None
    is_public: Optional[bool] = None


class ContentUpdate(BaseModel):
    content: str


class TagRequest(BaseModel):
    tag: str


class TimestampCreate(BaseModel):
    time: float = Field(ge=0)
    label: str = ""


class NoteFilter(BaseModel):
    q: Optional[str] = None
    folder_id: Optional[str] = None


class VisibilityRequest(BaseModel):
    is_public: bool


class ShareResponse(BaseModel):
    success: bool
    note: Note
    share_url: Optional[str] = None


class NoteListResponse(BaseModel):
    success: bool
    data: List[Note]
    count: int
    is_loading: bool = False
