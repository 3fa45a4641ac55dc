import logging
from datetime import timedelta
from typing import List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from vidnotes.core.config import DEFAULT_FOLDER_COLOR, PUBLIC_APP_URL
from vidnotes.models.folder import Folder
from vidnotes.models.note import Note, Timestamp, as_utc, utcnow
from vidnotes.services.notifier import Notifier

logger = logging.getLogger(__name__)


def _object_id(value: str) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _folder_sort_key(folder: Folder) -> str:
    return folder.name.lower()


def share_url(note_id: str) -> str:
    return f"{PUBLIC_APP_URL}/shared/{note_id}"


async def fetch_shared_note(note_id: str, notes_collection=None) -> Optional[Note]:
    """Read a public note for anyone holding its link and count the view.

    Private and unknown notes both come back as None. Store errors propagate.
    """
    if notes_collection is None:
        from vidnotes.core.database import notes_collection as default_notes
        notes_collection = default_notes
    oid = _object_id(note_id)
    if oid is None:
        return None

    doc = await notes_collection.find_one_and_update(
        {"_id": oid, "is_public": True},
        {"$inc": {"views": 1}},
        return_document=ReturnDocument.AFTER,
    )
    if doc is None:
        return None
    logger.info(f"👀 Shared note {note_id} viewed ({doc.get('views', 0)} views)")
    return Note.from_document(doc)


class CloudNotes:
    """Cache of one user's notes and folders, kept in step with MongoDB.

    Every remote operation is a single round trip. Failures never raise out of
    this class: they are logged, pushed to the user's notifier and leave the
    cache as it was (stale-but-available).
    """

    def __init__(self, user_id: Optional[str], notifier: Notifier, notes_collection=None, folders_collection=None):
        if notes_collection is None or folders_collection is None:
            from vidnotes.core.database import notes_collection as default_notes, folders_collection as default_folders
            notes_collection = notes_collection if notes_collection is not None else default_notes
            folders_collection = folders_collection if folders_collection is not None else default_folders
        self.user_id = user_id
        self.notifier = notifier
        self.notes_collection = notes_collection
        self.folders_collection = folders_collection

        self.notes: List[Note] = []
        self.folders: List[Folder] = []
        self.current_note: Optional[Note] = None
        self.search_query: str = ""
        self.selected_folder: Optional[str] = None
        self.is_loading: bool = True

    # ── Reads ────────────────────────────────────────────────────────

    async def fetch_notes(self):
        if not self.user_id:
            self.notes = []
            self.is_loading = False
            return

        try:
            cursor = self.notes_collection.find({"user_id": self.user_id}).sort("updated_at", -1)
            docs = await cursor.to_list(length=None)
            self.notes = [Note.from_document(doc) for doc in docs]
            logger.info(f"📚 Loaded {len(self.notes)} notes for user {self.user_id}")
        except PyMongoError as e:
            logger.error(f"❌ Error fetching notes for {self.user_id}: {e}")
            self.notifier.error("Error loading notes", "Please try again later.")
        finally:
            self.is_loading = False

    async def fetch_folders(self):
        if not self.user_id:
            self.folders = []
            return

        try:
            cursor = self.folders_collection.find({"user_id": self.user_id}).sort("name", 1)
            docs = await cursor.to_list(length=None)
            self.folders = sorted((Folder.from_document(doc) for doc in docs), key=_folder_sort_key)
        except PyMongoError as e:
            logger.error(f"❌ Error fetching folders for {self.user_id}: {e}")
            self.notifier.error("Error loading folders", "Please try again later.")

    async def refresh(self):
        await self.fetch_notes()
        await self.fetch_folders()

    async def set_user(self, user_id: Optional[str]):
        """Switch identity and reload everything for the new user"""
        if user_id == self.user_id:
            return
        self.user_id = user_id
        self.current_note = None
        self.selected_folder = None
        self.search_query = ""
        await self.refresh()

    # ── Local view ───────────────────────────────────────────────────

    def get_note(self, note_id: str) -> Optional[Note]:
        for note in self.notes:
            if note.id == note_id:
                return note
        return None

    def select_note(self, note_id: Optional[str]) -> Optional[Note]:
        self.current_note = self.get_note(note_id) if note_id else None
        return self.current_note

    def select_folder(self, folder_id: Optional[str]):
        self.selected_folder = folder_id or None

    def set_search(self, query: Optional[str]):
        self.search_query = query or ""

    @property
    def filtered_notes(self) -> List[Note]:
        return self.filter_notes(self.search_query, self.selected_folder)

    def filter_notes(self, query: Optional[str] = None, folder_id: Optional[str] = None) -> List[Note]:
        """Folder filter AND search over the cache, without touching the saved filter"""
        return [
            note for note in self.notes
            if (not folder_id or note.folder_id == folder_id)
            and (not query or note.matches(query))
        ]

    # ── Notes ────────────────────────────────────────────────────────

    async def create_note(self, video_id: str, video_title: str, video_url: str) -> Optional[Note]:
        if not self.user_id:
            return None

        if not video_id or not video_id.strip():
            logger.warning(f"Rejected note creation without a video id for {self.user_id}")
            self.notifier.error("Invalid video", "A video id is required to create a note.")
            return None

        # One note per video: reuse what the cache already has
        for note in self.notes:
            if note.video_id == video_id:
                logger.info(f"♻️ Reusing note {note.id} for video {video_id}")
                self.current_note = note
                return note

        now = utcnow()
        doc = {
            "user_id": self.user_id,
            "video_id": video_id,
            "video_title": video_title,
            "video_url": video_url,
            "content": "",
            "tags": [],
            "timestamps": [],
            "folder_id": self.selected_folder,
            "is_public": False,
            "views": 0,
            "created_at": now,
            "updated_at": now,
        }

        try:
            result = await self.notes_collection.insert_one(doc)
        except PyMongoError as e:
            logger.error(f"❌ Error creating note for video {video_id}: {e}")
            self.notifier.error("Error creating note", "Please try again.")
            return None

        doc["_id"] = result.inserted_id
        created = Note.from_document(doc)
        self.notes = [created] + self.notes
        self.current_note = created
        logger.info(f"✅ Created note {created.id} for video {video_id}")
        return created

    async def update_note(self, note: Note) -> Optional[Note]:
        if not self.user_id:
            return None

        previous = self.get_note(note.id)
        oid = _object_id(note.id)
        if oid is None:
            logger.error(f"❌ Cannot update note with invalid id {note.id!r}")
            self.notifier.error("Error saving note", "Changes may not be saved.")
            return None

        try:
            doc = await self.notes_collection.find_one_and_update(
                {"_id": oid, "user_id": self.user_id},
                {
                    "$set": {
                        "content": note.content,
                        "tags": list(note.tags),
                        "timestamps": [ts.model_dump() for ts in note.timestamps],
                        "folder_id": note.folder_id,
                        "is_public": note.is_public,
                    },
                    "$currentDate": {"updated_at": True},
                },
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error(f"❌ Error updating note {note.id}: {e}")
            self.notifier.error("Error saving note", "Changes may not be saved.")
            return None

        if doc is None:
            logger.error(f"❌ Note {note.id} not found for user {self.user_id}")
            self.notifier.error("Error saving note", "Changes may not be saved.")
            return None

        updated_at = as_utc(doc.get("updated_at") or utcnow())
        if previous is not None and updated_at <= previous.updated_at:
            updated_at = previous.updated_at + timedelta(milliseconds=1)

        saved = note.model_copy(update={"updated_at": updated_at})
        self.notes = [saved if n.id == note.id else n for n in self.notes]
        if self.current_note is None or self.current_note.id == note.id:
            self.current_note = saved
        return saved

    async def remove_note(self, note_id: str) -> bool:
        if not self.user_id:
            return False

        oid = _object_id(note_id)
        if oid is None:
            logger.error(f"❌ Cannot delete note with invalid id {note_id!r}")
            self.notifier.error("Error deleting note")
            return False

        try:
            await self.notes_collection.delete_one({"_id": oid, "user_id": self.user_id})
        except PyMongoError as e:
            logger.error(f"❌ Error deleting note {note_id}: {e}")
            self.notifier.error("Error deleting note")
            return False

        self.notes = [n for n in self.notes if n.id != note_id]
        if self.current_note is not None and self.current_note.id == note_id:
            self.current_note = None
        logger.info(f"🗑️ Deleted note {note_id}")
        return True

    # ── Folders ──────────────────────────────────────────────────────

    async def create_folder(self, name: str, color: Optional[str] = None) -> Optional[Folder]:
        if not self.user_id:
            return None

        if not name or not name.strip():
            self.notifier.error("Invalid folder name", "Folder name cannot be empty.")
            return None

        now = utcnow()
        doc = {
            "user_id": self.user_id,
            "name": name.strip(),
            "color": color or DEFAULT_FOLDER_COLOR,
            "created_at": now,
            "updated_at": now,
        }

        try:
            result = await self.folders_collection.insert_one(doc)
        except PyMongoError as e:
            logger.error(f"❌ Error creating folder {name!r}: {e}")
            self.notifier.error("Error creating folder")
            return None

        doc["_id"] = result.inserted_id
        folder = Folder.from_document(doc)
        self.folders = sorted(self.folders + [folder], key=_folder_sort_key)
        return folder

    async def delete_folder(self, folder_id: str) -> bool:
        if not self.user_id:
            return False

        oid = _object_id(folder_id)
        if oid is None:
            logger.error(f"❌ Cannot delete folder with invalid id {folder_id!r}")
            self.notifier.error("Error deleting folder")
            return False

        try:
            await self.folders_collection.delete_one({"_id": oid, "user_id": self.user_id})
        except PyMongoError as e:
            logger.error(f"❌ Error deleting folder {folder_id}: {e}")
            self.notifier.error("Error deleting folder")
            return False

        self.folders = [f for f in self.folders if f.id != folder_id]
        if self.selected_folder == folder_id:
            self.selected_folder = None
        return True

    # ── Timestamps ───────────────────────────────────────────────────

    async def add_timestamp(self, time: float, label: str, note: Optional[Note] = None) -> Optional[Note]:
        """Insert a timestamp into the active note (or a working copy of it)"""
        base = note or self.current_note
        if base is None:
            return None

        timestamp = Timestamp(time=time, label=label)
        timestamps = sorted(base.timestamps + [timestamp], key=lambda ts: ts.time)
        return await self.update_note(base.model_copy(update={"timestamps": timestamps}))

    async def remove_timestamp(self, timestamp_id: str, note: Optional[Note] = None) -> Optional[Note]:
        base = note or self.current_note
        if base is None:
            return None

        timestamps = [ts for ts in base.timestamps if ts.id != timestamp_id]
        return await self.update_note(base.model_copy(update={"timestamps": timestamps}))
