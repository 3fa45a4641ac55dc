import asyncio
import logging
from typing import Optional

from vidnotes.core.config import EDITOR_DEBOUNCE_MS
from vidnotes.models.note import Note, format_time
from vidnotes.services.cloud_notes import CloudNotes

logger = logging.getLogger(__name__)


class NoteEditorSession:
    """Editable content buffer for the active note.

    Keystrokes land in ``content`` immediately; a single-shot debounce task
    commits the buffer through ``CloudNotes.update_note`` once typing pauses.
    Tag and timestamp edits commit right away and always carry the buffer
    along, so they never drop unsaved prose.
    """

    def __init__(self, cloud_notes: CloudNotes, delay: float = EDITOR_DEBOUNCE_MS / 1000):
        self.cloud_notes = cloud_notes
        self.notifier = cloud_notes.notifier
        self.delay = delay
        self.note_id: Optional[str] = None
        self.content: str = ""
        self._pending: Optional[asyncio.Task] = None

    @property
    def note(self) -> Optional[Note]:
        if self.note_id is None:
            return None
        return self.cloud_notes.get_note(self.note_id)

    @property
    def has_pending_commit(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def open(self, note: Note):
        if note.id == self.note_id:
            return
        self._cancel_pending()
        self.note_id = note.id
        self.content = note.content

    def close(self):
        self._cancel_pending()
        self.note_id = None
        self.content = ""

    def type(self, content: str):
        """Record a keystroke and re-arm the debounce timer"""
        if self.note_id is None:
            raise ValueError("No note is open in the editor")
        self.content = content
        self._cancel_pending()
        self._pending = asyncio.create_task(self._commit_later())

    async def flush(self):
        """Wait for the pending debounced commit, if any"""
        if self._pending is not None:
            try:
                await self._pending
            except asyncio.CancelledError:
                pass

    async def save(self) -> Optional[Note]:
        self._cancel_pending()
        saved = await self._commit(force=True)
        if saved is not None:
            self.notifier.notify("Saved!", "Your notes have been saved.")
        return saved

    # ── Tags ─────────────────────────────────────────────────────────

    async def add_tag(self, tag: str) -> Optional[Note]:
        note = self.note
        if note is None:
            return None

        tag = tag.strip()
        if not tag:
            self.notifier.error("Invalid tag", "Tag cannot be empty.")
            return None
        if tag in note.tags:
            logger.warning(f"Duplicate tag {tag!r} rejected on note {note.id}")
            self.notifier.error("Tag exists", "This tag is already added.")
            return None

        return await self._commit_now(note.model_copy(update={"tags": note.tags + [tag], "content": self.content}))

    async def remove_tag(self, tag: str) -> Optional[Note]:
        note = self.note
        if note is None:
            return None
        tags = [t for t in note.tags if t != tag]
        return await self._commit_now(note.model_copy(update={"tags": tags, "content": self.content}))

    # ── Sharing ──────────────────────────────────────────────────────

    async def set_visibility(self, is_public: bool) -> Optional[Note]:
        note = self.note
        if note is None:
            return None
        saved = await self._commit_now(note.model_copy(update={"is_public": is_public, "content": self.content}))
        if saved is not None:
            if saved.is_public:
                self.notifier.notify("Note is now public", "Anyone with the link can view this note.")
            else:
                self.notifier.notify("Note is now private", "Only you can view this note.")
        return saved

    # ── Timestamps ───────────────────────────────────────────────────

    async def add_timestamp(self, time: float, label: str = "") -> Optional[Note]:
        note = self.note
        if note is None:
            return None

        label = label.strip() or f"Timestamp at {format_time(time)}"
        self._cancel_pending()
        saved = await self.cloud_notes.add_timestamp(time, label, note=note.model_copy(update={"content": self.content}))
        if saved is not None:
            self.notifier.notify("Timestamp added", f"Added timestamp at {format_time(time)}")
        return saved

    async def remove_timestamp(self, timestamp_id: str) -> Optional[Note]:
        note = self.note
        if note is None:
            return None
        self._cancel_pending()
        return await self.cloud_notes.remove_timestamp(timestamp_id, note=note.model_copy(update={"content": self.content}))

    # ── Internals ────────────────────────────────────────────────────

    def _cancel_pending(self):
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _commit_later(self):
        await asyncio.sleep(self.delay)
        self._pending = None
        await self._commit()

    async def _commit(self, force: bool = False) -> Optional[Note]:
        note = self.note
        if note is None:
            return None
        if not force and note.content == self.content:
            return note
        return await self.cloud_notes.update_note(note.model_copy(update={"content": self.content}))

    async def _commit_now(self, note: Note) -> Optional[Note]:
        # The buffer rides along with this write, so a queued commit is redundant
        self._cancel_pending()
        return await self.cloud_notes.update_note(note)
