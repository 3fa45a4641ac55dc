from fastapi import APIRouter, HTTPException
from typing import Union
import logging

from vidnotes.models.study import (
    AnswerRequest,
    FlashcardSessionState,
    QuizSessionState,
    SelectOptionRequest,
    SelectOptionResponse,
    StartStudyRequest,
    StudyKind,
)
from vidnotes.services.study_manager import StudySessionManager, StudyStartError
from vidnotes.services.study_session import StudySessionError
from vidnotes.services.workspace import workspaces

router = APIRouter(prefix="/study", tags=["study"])
logger = logging.getLogger(__name__)

study_manager = StudySessionManager()

StudyState = Union[FlashcardSessionState, QuizSessionState]


@router.post("/{user_id}/{kind}", response_model=StudyState, summary="Start (or regenerate) a study session for a note")
async def start_session(user_id: str, kind: StudyKind, request: StartStudyRequest):
    workspace = await workspaces.get(user_id)
    note = workspace.notes.get_note(request.note_id)
    if note is None:
        raise HTTPException(status_code=404, detail="Note not found")

    try:
        return await study_manager.start(
            user_id, kind.value, note, workspace.notifier, regenerate=request.regenerate
        )
    except StudyStartError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/{user_id}/{kind}", response_model=StudyState)
async def get_session(user_id: str, kind: StudyKind):
    state = await study_manager.get_state(user_id, kind.value)
    if state is None:
        raise HTTPException(status_code=404, detail="No active study session")
    return state


@router.delete("/{user_id}/{kind}")
async def close_session(user_id: str, kind: StudyKind):
    closed = await study_manager.close(user_id, kind.value)
    return {"success": True, "closed": closed}


@router.post("/{user_id}/flashcards/flip", response_model=FlashcardSessionState)
async def flip_card(user_id: str):
    try:
        return await study_manager.flip(user_id)
    except StudySessionError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/{user_id}/flashcards/answer", response_model=FlashcardSessionState)
async def answer_card(user_id: str, request: AnswerRequest):
    try:
        return await study_manager.answer(user_id, request.correct)
    except StudySessionError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/{user_id}/flashcards/next", response_model=FlashcardSessionState)
async def next_card(user_id: str):
    try:
        return await study_manager.next_card(user_id)
    except StudySessionError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/{user_id}/flashcards/prev", response_model=FlashcardSessionState)
async def prev_card(user_id: str):
    try:
        return await study_manager.prev_card(user_id)
    except StudySessionError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/{user_id}/quiz/select", response_model=SelectOptionResponse)
async def select_option(user_id: str, request: SelectOptionRequest):
    try:
        return await study_manager.select_option(user_id, request.question_index, request.option)
    except StudySessionError as e:
        raise HTTPException(status_code=409, detail=str(e))
