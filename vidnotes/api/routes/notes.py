from fastapi import APIRouter, HTTPException, Query
from pymongo.errors import PyMongoError
from typing import Optional
import logging

from vidnotes.models.note import (
    ContentUpdate,
    Note,
    NoteCreate,
    NoteFilter,
    NoteListResponse,
    NoteUpdate,
    ShareResponse,
    TagRequest,
    TimestampCreate,
    VisibilityRequest,
)
from vidnotes.services.cloud_notes import fetch_shared_note, share_url
from vidnotes.services.workspace import Workspace, workspaces

router = APIRouter(prefix="/notes", tags=["notes"])
logger = logging.getLogger(__name__)

VALIDATION_TITLES = {"Invalid video", "Invalid tag", "Tag exists"}


def _raise_failure(workspace: Workspace, mark: int, fallback: str):
    """Turn the error notification this request produced into an HTTP error"""
    errors = [n for n in workspace.notifier.since(mark) if n.variant == "destructive"]
    if not errors:
        raise HTTPException(status_code=500, detail=fallback)
    failure = errors[-1]
    detail = f"{failure.title}: {failure.description}" if failure.description else failure.title
    status_code = 400 if failure.title in VALIDATION_TITLES else 500
    raise HTTPException(status_code=status_code, detail=detail)


def _open(workspace: Workspace, note_id: str) -> Note:
    note = workspace.open_note(note_id)
    if note is None:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


def _list_response(workspace: Workspace, notes) -> NoteListResponse:
    return NoteListResponse(
        success=True,
        data=notes,
        count=len(notes),
        is_loading=workspace.notes.is_loading,
    )


@router.get("/shared/{note_id}", response_model=Note, summary="Read a public note through its share link")
async def get_shared_note(note_id: str):
    try:
        note = await fetch_shared_note(note_id, workspaces.notes_collection)
    except PyMongoError as e:
        logger.error(f"❌ Error loading shared note {note_id}: {e}")
        raise HTTPException(status_code=500, detail="Error loading note")
    if note is None:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


@router.get("/{user_id}", response_model=NoteListResponse, summary="List a user's notes, filtered by folder and search")
async def list_notes(user_id: str, q: Optional[str] = Query(None), folder_id: Optional[str] = Query(None)):
    """``q`` and ``folder_id`` apply to this request only; omitted ones fall back to the saved filter"""
    workspace = await workspaces.get(user_id)
    query = q if q is not None else workspace.notes.search_query
    folder = folder_id if folder_id is not None else workspace.notes.selected_folder
    return _list_response(workspace, workspace.notes.filter_notes(query, folder))


@router.post("/{user_id}/filter", response_model=NoteListResponse, summary="Save the search and folder filter")
async def set_filter(user_id: str, body: NoteFilter):
    """The saved folder is also where new notes are filed"""
    workspace = await workspaces.get(user_id)
    workspace.notes.set_search(body.q)
    workspace.notes.select_folder(body.folder_id)
    return _list_response(workspace, workspace.notes.filtered_notes)


@router.post("", response_model=Note, status_code=201, summary="Create (or reuse) the note for a video")
async def create_note(note: NoteCreate):
    if not note.video_id or not note.video_id.strip():
        raise HTTPException(status_code=400, detail="video_id cannot be empty")

    workspace = await workspaces.get(note.user_id)
    mark = workspace.notifier.mark()
    created = await workspace.notes.create_note(note.video_id.strip(), note.video_title, note.video_url)
    if created is None:
        _raise_failure(workspace, mark, "Failed to create note")
    workspace.editor.open(created)
    return created


@router.get("/{user_id}/{note_id}", response_model=Note)
async def get_note(user_id: str, note_id: str):
    workspace = await workspaces.get(user_id)
    note = workspace.notes.get_note(note_id)
    if note is None:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


@router.post("/{user_id}/{note_id}/select", response_model=Note, summary="Make a note the active one")
async def select_note(user_id: str, note_id: str):
    workspace = await workspaces.get(user_id)
    return _open(workspace, note_id)


@router.put("/{user_id}/{note_id}", response_model=Note)
async def update_note(user_id: str, note_id: str, update: NoteUpdate):
    """Overwrite the editable fields of a note"""
    workspace = await workspaces.get(user_id)
    note = _open(workspace, note_id)

    changes = {field: getattr(update, field) for field in update.model_fields_set}
    if changes.get("timestamps") is not None:
        changes["timestamps"] = sorted(changes["timestamps"], key=lambda ts: ts.time)
    if changes.get("content") is None:
        changes["content"] = workspace.editor.content
    mark = workspace.notifier.mark()
    saved = await workspace.notes.update_note(note.model_copy(update=changes))
    if saved is None:
        _raise_failure(workspace, mark, "Failed to update note")
    workspace.editor.content = saved.content
    return saved


@router.delete("/{user_id}/{note_id}")
async def delete_note(user_id: str, note_id: str):
    workspace = await workspaces.get(user_id)
    if workspace.notes.get_note(note_id) is None:
        raise HTTPException(status_code=404, detail="Note not found")

    mark = workspace.notifier.mark()
    if not await workspace.notes.remove_note(note_id):
        _raise_failure(workspace, mark, "Failed to delete note")
    # Only a note that is really gone may drop its unsaved buffer
    if workspace.editor.note_id == note_id:
        workspace.editor.close()

    return {"success": True, "message": "Note deleted successfully", "id": note_id}


@router.put("/{user_id}/{note_id}/content", summary="Record an edit; it is saved once typing pauses")
async def edit_content(user_id: str, note_id: str, body: ContentUpdate):
    workspace = await workspaces.get(user_id)
    _open(workspace, note_id)
    workspace.editor.type(body.content)
    return {"success": True, "pending": workspace.editor.has_pending_commit, "content": workspace.editor.content}


@router.post("/{user_id}/{note_id}/save", response_model=Note, summary="Save the editor buffer immediately")
async def save_note(user_id: str, note_id: str):
    workspace = await workspaces.get(user_id)
    _open(workspace, note_id)
    mark = workspace.notifier.mark()
    saved = await workspace.editor.save()
    if saved is None:
        _raise_failure(workspace, mark, "Failed to save note")
    return saved


@router.put("/{user_id}/{note_id}/visibility", response_model=ShareResponse, summary="Make a note public or private")
async def set_visibility(user_id: str, note_id: str, body: VisibilityRequest):
    workspace = await workspaces.get(user_id)
    _open(workspace, note_id)
    mark = workspace.notifier.mark()
    saved = await workspace.editor.set_visibility(body.is_public)
    if saved is None:
        _raise_failure(workspace, mark, "Failed to change visibility")
    return ShareResponse(
        success=True,
        note=saved,
        share_url=share_url(saved.id) if saved.is_public else None,
    )


@router.post("/{user_id}/{note_id}/tags", response_model=Note)
async def add_tag(user_id: str, note_id: str, body: TagRequest):
    workspace = await workspaces.get(user_id)
    _open(workspace, note_id)
    mark = workspace.notifier.mark()
    saved = await workspace.editor.add_tag(body.tag)
    if saved is None:
        _raise_failure(workspace, mark, "Failed to add tag")
    return saved


@router.delete("/{user_id}/{note_id}/tags/{tag}", response_model=Note)
async def remove_tag(user_id: str, note_id: str, tag: str):
    workspace = await workspaces.get(user_id)
    _open(workspace, note_id)
    mark = workspace.notifier.mark()
    saved = await workspace.editor.remove_tag(tag)
    if saved is None:
        _raise_failure(workspace, mark, "Failed to remove tag")
    return saved


@router.post("/{user_id}/{note_id}/timestamps", response_model=Note)
async def add_timestamp(user_id: str, note_id: str, body: TimestampCreate):
    workspace = await workspaces.get(user_id)
    _open(workspace, note_id)
    mark = workspace.notifier.mark()
    saved = await workspace.editor.add_timestamp(body.time, body.label)
    if saved is None:
        _raise_failure(workspace, mark, "Failed to add timestamp")
    return saved


@router.delete("/{user_id}/{note_id}/timestamps/{timestamp_id}", response_model=Note)
async def remove_timestamp(user_id: str, note_id: str, timestamp_id: str):
    workspace = await workspaces.get(user_id)
    _open(workspace, note_id)
    mark = workspace.notifier.mark()
    saved = await workspace.editor.remove_timestamp(timestamp_id)
    if saved is None:
        _raise_failure(workspace, mark, "Failed to remove timestamp")
    return saved
