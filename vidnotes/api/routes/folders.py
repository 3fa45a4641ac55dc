from fastapi import APIRouter, HTTPException

from vidnotes.models.folder import Folder, FolderCreate, FolderListResponse
from vidnotes.services.workspace import workspaces

router = APIRouter(prefix="/folders", tags=["folders"])


@router.get("/{user_id}", response_model=FolderListResponse, summary="List a user's folders alphabetically")
async def list_folders(user_id: str):
    workspace = await workspaces.get(user_id)
    folders = workspace.notes.folders
    return FolderListResponse(success=True, data=folders, count=len(folders))


@router.post("/{user_id}", response_model=Folder, status_code=201)
async def create_folder(user_id: str, folder: FolderCreate):
    if not folder.name or not folder.name.strip():
        raise HTTPException(status_code=400, detail="Folder name cannot be empty")

    workspace = await workspaces.get(user_id)
    created = await workspace.notes.create_folder(folder.name.strip(), folder.color)
    if created is None:
        raise HTTPException(status_code=500, detail="Error creating folder")
    return created


@router.delete("/{user_id}/{folder_id}")
async def delete_folder(user_id: str, folder_id: str):
    workspace = await workspaces.get(user_id)
    if not any(f.id == folder_id for f in workspace.notes.folders):
        raise HTTPException(status_code=404, detail="Folder not found")

    if not await workspace.notes.delete_folder(folder_id):
        raise HTTPException(status_code=500, detail="Error deleting folder")

    return {
        "success": True,
        "message": "Folder deleted successfully",
        "id": folder_id,
        "selected_folder": workspace.notes.selected_folder,
    }
