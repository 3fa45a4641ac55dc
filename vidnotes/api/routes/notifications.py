from fastapi import APIRouter

from vidnotes.models.notification import NotificationResponse
from vidnotes.services.workspace import workspaces

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/{user_id}", response_model=NotificationResponse, summary="Drain the user's pending notifications")
async def drain_notifications(user_id: str):
    workspace = await workspaces.get(user_id)
    items = workspace.notifier.drain()
    return NotificationResponse(success=True, data=items, count=len(items))
