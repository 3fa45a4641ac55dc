from pydantic import BaseModel, Field
from enum import Enum
from typing import Dict, List, Literal, Optional
from datetime import datetime

from vidnotes.models.note import generate_id

SessionStatus = Literal["loading", "ready", "finished"]


class StudyKind(str, Enum):
    flashcards = "flashcards"
    quiz = "quiz"


class Flashcard(BaseModel):
    id: str = Field(default_factory=generate_id)
    note_id: str
    question: str
    answer: str
    mastered: bool = False


class QuizQuestion(BaseModel):
    question: str
    options: List[str]
    answer: str


class StudyScore(BaseModel):
    correct: int = 0
    incorrect: int = 0


class FlashcardSessionState(BaseModel):
    kind: Literal["flashcards"] = "flashcards"
    note_id: str
    status: SessionStatus
    cards: List[Flashcard] = []
    index: int = 0
    revealed: bool = False
    score: StudyScore = StudyScore()
    answered: List[int] = []


class QuizSessionState(BaseModel):
    kind: Literal["quiz"] = "quiz"
    note_id: str
    status: SessionStatus
    questions: List[QuizQuestion] = []
    selections: Dict[int, str] = {}
    celebrated: bool = False


class AnswerRequest(BaseModel):
    correct: bool


class SelectOptionRequest(BaseModel):
    question_index: int = Field(ge=0)
    option: str


class SelectOptionResponse(BaseModel):
    success: bool
    question_index: int
    selected: str
    is_correct: bool
    correct_answer: str
    completed: bool
    celebrate: bool


class StartStudyRequest(BaseModel):
    note_id: str
    regenerate: bool = False


class StudySessionRecord(BaseModel):
    id: str
    user_id: str
    note_id: Optional[str] = None
    cards_studied: int = 0
    correct_answers: int = 0
    duration_seconds: int = 0
    created_at: datetime


class NoteStudyStats(BaseModel):
    note_id: Optional[str] = None
    sessions: int
    cards_studied: int
    correct_answers: int
    accuracy: float


class StudyAnalyticsSummary(BaseModel):
    success: bool
    total_sessions: int
    total_cards_studied: int
    total_correct_answers: int
    total_duration_seconds: int
    accuracy: float
    by_note: List[NoteStudyStats] = []
