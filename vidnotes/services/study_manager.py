import json
import logging
import uuid
from typing import Optional, Union

from vidnotes.core.config import AI_MAX_TEXT_LENGTH, STUDY_SESSION_EXPIRY_MINUTES
from vidnotes.models.note import Note, format_time
from vidnotes.models.study import FlashcardSessionState, QuizSessionState, SelectOptionResponse
from vidnotes.services.ai_gateway import (
    AIGateway,
    AIGatewayError,
    AIInputError,
    ContentParseError,
    parse_flashcards,
    parse_quiz,
)
from vidnotes.services.notifier import Notifier
from vidnotes.services.study_session import FlashcardSession, QuizSession, StudySessionError, restore

logger = logging.getLogger(__name__)

SessionState = Union[FlashcardSessionState, QuizSessionState]
STATE_MODELS = {"flashcards": FlashcardSessionState, "quiz": QuizSessionState}


class StudyStartError(Exception):
    """No study session could be opened for the requested note."""

    def __init__(self, message: str, status_code: int = 422):
        super().__init__(message)
        self.status_code = status_code


def build_study_source(note: Note) -> str:
    """Flatten a note's prose and timestamp labels into one generation prompt"""
    parts = []
    if note.content.strip():
        parts.append(note.content.strip())
    if note.timestamps:
        lines = [f"[{format_time(ts.time)}] {ts.label}" for ts in note.timestamps]
        parts.append("Timestamps:\n" + "\n".join(lines))
    return "\n\n".join(parts)[:AI_MAX_TEXT_LENGTH]


class StudySessionManager:
    """Drives flashcard and quiz sessions and keeps their state in Redis.

    Each user has at most one session per kind, stored in the hash
    ``study:{user_id}:{kind}``. The ``generation`` field is rewritten on every
    (re)generation so that a response arriving after the session was closed or
    regenerated is recognised as stale and dropped.
    """

    def __init__(self, redis=None, gateway: Optional[AIGateway] = None):
        if redis is None:
            from vidnotes.core.database import redis_client
            redis = redis_client
        self.redis = redis
        self.gateway = gateway or AIGateway()
        self.expiry_seconds = STUDY_SESSION_EXPIRY_MINUTES * 60

    @staticmethod
    def _key(user_id: str, kind: str) -> str:
        return f"study:{user_id}:{kind}"

    # ── Storage ──────────────────────────────────────────────────────

    async def _read(self, user_id: str, kind: str) -> Optional[dict]:
        data = await self.redis.hgetall(self._key(user_id, kind))
        return data or None

    async def _write(self, user_id: str, kind: str, state: SessionState, generation: str):
        key = self._key(user_id, kind)
        await self.redis.hset(key, mapping={
            "note_id": state.note_id,
            "status": state.status,
            "generation": generation,
            "state": state.model_dump_json(),
        })
        await self.redis.expire(key, self.expiry_seconds)

    async def get_state(self, user_id: str, kind: str) -> Optional[SessionState]:
        data = await self._read(user_id, kind)
        if not data:
            return None
        return STATE_MODELS[kind].model_validate(json.loads(data["state"]))

    async def _load(self, user_id: str, kind: str):
        data = await self._read(user_id, kind)
        if not data:
            raise StudySessionError("No active study session")
        state = STATE_MODELS[kind].model_validate(json.loads(data["state"]))
        session = restore(state)
        if session is None:
            raise StudySessionError("Study session is still loading")
        return session, data["generation"]

    async def _save(self, user_id: str, kind: str, session, generation: str) -> SessionState:
        state = session.to_state()
        await self._write(user_id, kind, state, generation)
        return state

    # ── Lifecycle ────────────────────────────────────────────────────

    async def start(self, user_id: str, kind: str, note: Note, notifier: Notifier,
                    regenerate: bool = False) -> SessionState:
        """Enter a study session for ``note``, generating content if needed.

        Raises ``StudyStartError`` when no session could be opened.
        """
        existing = await self._read(user_id, kind)
        if existing and existing.get("note_id") == note.id and not regenerate:
            if existing.get("status") == "loading":
                logger.info(f"⏳ {kind} for note {note.id} already generating for user {user_id}")
            else:
                logger.info(f"📚 Reusing {kind} session for user {user_id}, note {note.id}")
            return await self.get_state(user_id, kind)

        source = build_study_source(note)
        if not source:
            logger.warning(f"⚠️ Refusing {kind} generation for empty note {note.id}")
            notifier.error("Nothing to study", "Add some notes or timestamps first.")
            raise StudyStartError("Nothing to study: add some notes or timestamps first.")

        generation = uuid.uuid4().hex
        state_model = STATE_MODELS[kind]
        await self._write(user_id, kind, state_model(note_id=note.id, status="loading"), generation)
        logger.info(f"⏳ Generating {kind} for user {user_id}, note {note.id}")

        try:
            if kind == "flashcards":
                raw = await self.gateway.flashcards(source)
                session = FlashcardSession(note.id, parse_flashcards(raw, note.id))
            else:
                raw = await self.gateway.quiz(source)
                session = QuizSession(note.id, parse_quiz(raw))
        except ContentParseError as e:
            logger.error(f"❌ Could not parse generated {kind}: {e}")
            await self._discard_if_current(user_id, kind, generation)
            notifier.error(f"Failed to generate {kind}", "The AI response could not be read. Please try again.")
            raise StudyStartError(f"Failed to generate {kind}: the AI response could not be read.") from e
        except AIGatewayError as e:
            logger.error(f"❌ {kind} generation failed: {e}")
            await self._discard_if_current(user_id, kind, generation)
            notifier.error(f"Failed to generate {kind}", str(e))
            raise StudyStartError(f"Failed to generate {kind}: {e}", status_code=e.status_code) from e
        except AIInputError as e:
            logger.error(f"❌ {kind} generation rejected: {e}")
            await self._discard_if_current(user_id, kind, generation)
            notifier.error(f"Failed to generate {kind}", str(e))
            raise StudyStartError(f"Failed to generate {kind}: {e}") from e

        current = await self.redis.hget(self._key(user_id, kind), "generation")
        if current != generation:
            logger.info(f"🚮 Discarding stale {kind} response for user {user_id}")
            raise StudyStartError(f"This {kind} session was closed or regenerated", status_code=409)

        logger.info(f"✅ {kind} session ready for user {user_id}")
        return await self._save(user_id, kind, session, generation)

    async def _discard_if_current(self, user_id: str, kind: str, generation: str):
        key = self._key(user_id, kind)
        if await self.redis.hget(key, "generation") == generation:
            await self.redis.delete(key)

    async def close(self, user_id: str, kind: str) -> bool:
        deleted = await self.redis.delete(self._key(user_id, kind))
        return bool(deleted)

    # ── Flashcards ───────────────────────────────────────────────────

    async def flip(self, user_id: str) -> FlashcardSessionState:
        session, generation = await self._load(user_id, "flashcards")
        session.flip()
        return await self._save(user_id, "flashcards", session, generation)

    async def answer(self, user_id: str, correct: bool) -> FlashcardSessionState:
        session, generation = await self._load(user_id, "flashcards")
        session.answer(correct)
        if session.is_finished:
            logger.info(
                f"🏁 Flashcards finished for {user_id}: "
                f"{session.score.correct} correct, {session.score.incorrect} incorrect"
            )
        return await self._save(user_id, "flashcards", session, generation)

    async def next_card(self, user_id: str) -> FlashcardSessionState:
        session, generation = await self._load(user_id, "flashcards")
        session.next()
        return await self._save(user_id, "flashcards", session, generation)

    async def prev_card(self, user_id: str) -> FlashcardSessionState:
        session, generation = await self._load(user_id, "flashcards")
        session.prev()
        return await self._save(user_id, "flashcards", session, generation)

    # ── Quiz ─────────────────────────────────────────────────────────

    async def select_option(self, user_id: str, question_index: int, option: str) -> SelectOptionResponse:
        session, generation = await self._load(user_id, "quiz")
        result = session.select(question_index, option)
        await self._save(user_id, "quiz", session, generation)
        return result
