from fastapi import APIRouter, HTTPException
import logging

from vidnotes.models.ai import AIContentResponse, ExplainRequest, SummarizeRequest
from vidnotes.services.ai_gateway import AIGateway, AIGatewayError, AIInputError
from vidnotes.services.workspace import workspaces

router = APIRouter(prefix="/ai", tags=["ai"])
logger = logging.getLogger(__name__)

gateway = AIGateway()


@router.post("/{user_id}/explain", response_model=AIContentResponse, summary="Explain highlighted text")
async def explain(user_id: str, request: ExplainRequest):
    workspace = await workspaces.get(user_id)
    if not request.text or not request.text.strip():
        workspace.notifier.error("No text selected", "Highlight some text to explain.")
        raise HTTPException(status_code=400, detail="Text field cannot be empty")

    try:
        content = await gateway.explain(request.text, request.context)
    except AIInputError as e:
        workspace.notifier.error("AI Explain", str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except AIGatewayError as e:
        workspace.notifier.error("AI Explain failed", str(e))
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return AIContentResponse(success=True, content=content)


@router.post("/{user_id}/summarize", response_model=AIContentResponse, summary="Summarize a note or a selection")
async def summarize(user_id: str, request: SummarizeRequest):
    workspace = await workspaces.get(user_id)

    text = request.text
    if not text and request.note_id:
        note = workspace.notes.get_note(request.note_id)
        if note is None:
            raise HTTPException(status_code=404, detail="Note not found")
        text = note.content

    try:
        content = await gateway.summarize(text or "")
    except AIInputError as e:
        workspace.notifier.error("Nothing to summarize", str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except AIGatewayError as e:
        workspace.notifier.error("AI Summarize failed", str(e))
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return AIContentResponse(success=True, content=content)
