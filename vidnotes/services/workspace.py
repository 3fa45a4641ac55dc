import asyncio
import logging
import time
from typing import Callable, Dict, Optional

from vidnotes.core.config import WORKSPACE_IDLE_MINUTES
from vidnotes.services.cloud_notes import CloudNotes
from vidnotes.services.note_editor import NoteEditorSession
from vidnotes.services.notifier import Notifier

logger = logging.getLogger(__name__)


class Workspace:
    """Everything one signed-in user has live in this process"""

    def __init__(self, user_id: str, notes_collection=None, folders_collection=None):
        self.user_id = user_id
        self.notifier = Notifier(user_id)
        self.notes = CloudNotes(user_id, self.notifier, notes_collection, folders_collection)
        self.editor = NoteEditorSession(self.notes)
        self.last_seen = 0.0
        self._initial_load: Optional[asyncio.Future] = None

    async def ensure_loaded(self):
        """Run the first refresh once; concurrent callers wait on the same load"""
        if self._initial_load is None:
            self._initial_load = asyncio.ensure_future(self.notes.refresh())
        await asyncio.shield(self._initial_load)

    @property
    def is_busy(self) -> bool:
        return self.editor.has_pending_commit

    def open_note(self, note_id: str):
        note = self.notes.select_note(note_id)
        if note is not None:
            self.editor.open(note)
        return note


class WorkspaceRegistry:
    def __init__(self, idle_seconds: float = WORKSPACE_IDLE_MINUTES * 60,
                 clock: Callable[[], float] = time.monotonic):
        # Map user_id -> Workspace
        self._workspaces: Dict[str, Workspace] = {}
        self.notes_collection = None
        self.folders_collection = None
        self.idle_seconds = idle_seconds
        self.clock = clock

    def configure(self, notes_collection=None, folders_collection=None):
        """Point new workspaces at different collections and drop existing ones"""
        self.close_all()
        self.notes_collection = notes_collection
        self.folders_collection = folders_collection

    async def get(self, user_id: str) -> Workspace:
        self.evict_idle()
        workspace = self._workspaces.get(user_id)
        if workspace is None:
            workspace = Workspace(user_id, self.notes_collection, self.folders_collection)
            self._workspaces[user_id] = workspace
            logger.info(f"🧭 Opened workspace for user {user_id}")
        workspace.last_seen = self.clock()
        await workspace.ensure_loaded()
        return workspace

    def peek(self, user_id: str) -> Optional[Workspace]:
        return self._workspaces.get(user_id)

    def __len__(self) -> int:
        return len(self._workspaces)

    def evict_idle(self) -> int:
        """Close workspaces untouched for longer than ``idle_seconds``.

        A workspace with an edit still waiting to be committed is kept until
        the commit has run.
        """
        cutoff = self.clock() - self.idle_seconds
        idle = [
            user_id for user_id, workspace in self._workspaces.items()
            if workspace.last_seen < cutoff and not workspace.is_busy
        ]
        for user_id in idle:
            logger.info(f"💤 Evicting idle workspace for user {user_id}")
            self.close(user_id)
        return len(idle)

    def close(self, user_id: str):
        workspace = self._workspaces.pop(user_id, None)
        if workspace is not None:
            workspace.editor.close()
            logger.info(f"🧭 Closed workspace for user {user_id}")

    def close_all(self):
        for user_id in list(self._workspaces):
            self.close(user_id)


workspaces = WorkspaceRegistry()
