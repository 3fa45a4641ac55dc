"""Flashcard and quiz study sessions, independent of storage and HTTP.

A flashcard session walks a bounded deck: each card can be flipped any number
of times, is scored at most once, and answering the last card finishes the
session. A quiz session locks each question on its first selection and
signals completion once, when every question is locked.
"""

from typing import List, Optional

from vidnotes.models.study import (
    Flashcard,
    FlashcardSessionState,
    QuizQuestion,
    QuizSessionState,
    SelectOptionResponse,
    StudyScore,
)


class StudySessionError(ValueError):
    """Raised when an action is not valid in the session's current state."""


class FlashcardSession:
    def __init__(self, note_id: str, cards: List[Flashcard]):
        if not cards:
            raise StudySessionError("A flashcard session needs at least one card")
        self.note_id = note_id
        self.cards = list(cards)
        self.index = 0
        self.revealed = False
        self.score = StudyScore()
        self.answered: set = set()
        self.status = "ready"

    @property
    def current_card(self) -> Flashcard:
        return self.cards[self.index]

    @property
    def is_finished(self) -> bool:
        return self.status == "finished"

    def _require_ready(self):
        if self.status != "ready":
            raise StudySessionError(f"Session is {self.status}")

    def flip(self) -> bool:
        self._require_ready()
        self.revealed = not self.revealed
        return self.revealed

    def answer(self, correct: bool):
        self._require_ready()
        if self.index not in self.answered:
            self.answered.add(self.index)
            if correct:
                self.score.correct += 1
            else:
                self.score.incorrect += 1

        if self.index + 1 < len(self.cards):
            self._move_to(self.index + 1)
        else:
            self.status = "finished"

    def next(self):
        self._require_ready()
        if self.index + 1 >= len(self.cards):
            raise StudySessionError("Already at the last card")
        self._move_to(self.index + 1)

    def prev(self):
        self._require_ready()
        if self.index == 0:
            raise StudySessionError("Already at the first card")
        self._move_to(self.index - 1)

    def _move_to(self, index: int):
        self.index = index
        self.revealed = False

    def to_state(self) -> FlashcardSessionState:
        return FlashcardSessionState(
            note_id=self.note_id,
            status=self.status,
            cards=self.cards,
            index=self.index,
            revealed=self.revealed,
            score=self.score.model_copy(),
            answered=sorted(self.answered),
        )

    @classmethod
    def from_state(cls, state: FlashcardSessionState) -> "FlashcardSession":
        session = cls(state.note_id, state.cards)
        session.index = state.index
        session.revealed = state.revealed
        session.score = state.score.model_copy()
        session.answered = set(state.answered)
        session.status = state.status
        return session


class QuizSession:
    def __init__(self, note_id: str, questions: List[QuizQuestion]):
        if not questions:
            raise StudySessionError("A quiz needs at least one question")
        self.note_id = note_id
        self.questions = list(questions)
        self.selections: dict = {}
        self.celebrated = False

    @property
    def status(self) -> str:
        return "finished" if self.is_complete else "ready"

    @property
    def is_complete(self) -> bool:
        return len(self.selections) == len(self.questions)

    def is_locked(self, question_index: int) -> bool:
        return question_index in self.selections

    def select(self, question_index: int, option: str) -> SelectOptionResponse:
        if not 0 <= question_index < len(self.questions):
            raise StudySessionError(f"No question at index {question_index}")
        question = self.questions[question_index]

        if not self.is_locked(question_index):
            if option not in question.options:
                raise StudySessionError(f"{option!r} is not an option for question {question_index}")
            self.selections[question_index] = option

        celebrate = False
        if self.is_complete and not self.celebrated:
            self.celebrated = True
            celebrate = True

        selected = self.selections[question_index]
        return SelectOptionResponse(
            success=True,
            question_index=question_index,
            selected=selected,
            is_correct=selected == question.answer,
            correct_answer=question.answer,
            completed=self.is_complete,
            celebrate=celebrate,
        )

    def correct_count(self) -> int:
        return sum(
            1 for i, selected in self.selections.items()
            if selected == self.questions[i].answer
        )

    def to_state(self) -> QuizSessionState:
        return QuizSessionState(
            note_id=self.note_id,
            status=self.status,
            questions=self.questions,
            selections=dict(self.selections),
            celebrated=self.celebrated,
        )

    @classmethod
    def from_state(cls, state: QuizSessionState) -> "QuizSession":
        session = cls(state.note_id, state.questions)
        session.selections = dict(state.selections)
        session.celebrated = state.celebrated
        return session


def restore(state) -> Optional[object]:
    """Rebuild a live session from a stored state; loading states have none"""
    if state.status == "loading":
        return None
    if state.kind == "flashcards":
        return FlashcardSession.from_state(state)
    return QuizSession.from_state(state)
