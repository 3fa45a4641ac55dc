"""Tests for study session generation and Redis-backed state."""

import asyncio

import pytest

from vidnotes.models.note import Note, Timestamp
from vidnotes.services.ai_gateway import AIGatewayError
from vidnotes.services.study_manager import StudyStartError, build_study_source
from vidnotes.services.study_session import StudySessionError

from conftest import FLASHCARDS, QUIZ


def _note(note_id="n1", content="Closures capture variables.", timestamps=None):
    return Note(
        id=note_id,
        user_id="user-1",
        video_id="vid",
        video_title="Python tips",
        video_url="https://youtu.be/vid",
        content=content,
        timestamps=timestamps or [],
    )


def test_build_study_source_includes_timestamps():
    note = _note(content="", timestamps=[Timestamp(time=65, label="Decorators")])
    assert build_study_source(note) == "Timestamps:\n[1:05] Decorators"


def test_empty_note_never_reaches_ready(study_manager, notifier, fake_ai, fake_redis):
    with pytest.raises(StudyStartError) as exc:
        asyncio.run(study_manager.start("user-1", "flashcards", _note(content="   "), notifier))

    assert exc.value.status_code == 422
    assert len(notifier.pending()) == 1
    assert fake_ai.completions.requests == []
    assert fake_redis.hashes == {}


def test_flashcards_full_session(study_manager, notifier, fake_ai):
    fake_ai.reply_json(FLASHCARDS)

    async def scenario():
        state = await study_manager.start("user-1", "flashcards", _note(), notifier)
        assert state.status == "ready"
        assert len(state.cards) == 3
        await study_manager.flip("user-1")
        await study_manager.answer("user-1", True)
        await study_manager.answer("user-1", False)
        return await study_manager.answer("user-1", True)

    final = asyncio.run(scenario())
    assert final.status == "finished"
    assert final.score.correct == 2
    assert final.score.incorrect == 1


def test_generation_fires_once_per_note(study_manager, notifier, fake_ai):
    fake_ai.reply_json(FLASHCARDS)

    async def scenario():
        await study_manager.start("user-1", "flashcards", _note(), notifier)
        await study_manager.answer("user-1", True)
        return await study_manager.start("user-1", "flashcards", _note(), notifier)

    state = asyncio.run(scenario())
    assert len(fake_ai.completions.requests) == 1
    assert state.score.correct == 1


def test_start_while_loading_returns_loading_state(study_manager, notifier, fake_ai):
    fake_ai.reply_json(FLASHCARDS)
    repeated = []

    async def start_again():
        repeated.append(await study_manager.start("user-1", "flashcards", _note(), notifier))

    fake_ai.completions.before_return = start_again

    state = asyncio.run(study_manager.start("user-1", "flashcards", _note(), notifier))
    assert state.status == "ready"
    assert repeated[0].status == "loading"
    assert len(fake_ai.completions.requests) == 1


def test_regenerate_discards_progress(study_manager, notifier, fake_ai):
    fake_ai.reply_json(FLASHCARDS)
    fake_ai.reply_json(FLASHCARDS[:2])

    async def scenario():
        await study_manager.start("user-1", "flashcards", _note(), notifier)
        await study_manager.answer("user-1", True)
        return await study_manager.start("user-1", "flashcards", _note(), notifier, regenerate=True)

    state = asyncio.run(scenario())
    assert len(state.cards) == 2
    assert state.index == 0
    assert state.score.correct == 0


def test_parse_failure_leaves_no_session(study_manager, notifier, fake_ai, fake_redis):
    fake_ai.reply_with('{"question": "not an array"}')

    with pytest.raises(StudyStartError):
        asyncio.run(study_manager.start("user-1", "flashcards", _note(), notifier))
    assert fake_redis.hashes == {}
    assert notifier.latest.variant == "destructive"
    with pytest.raises(StudySessionError):
        asyncio.run(study_manager.flip("user-1"))


def test_gateway_failure_reported(study_manager, notifier, fake_ai):
    fake_ai.completions.error = AIGatewayError("boom")
    with pytest.raises(StudyStartError) as exc:
        asyncio.run(study_manager.start("user-1", "quiz", _note(), notifier))
    assert exc.value.status_code == 502
    assert notifier.latest.title == "Failed to generate quiz"


def test_response_after_close_is_discarded(study_manager, notifier, fake_ai, fake_redis):
    fake_ai.reply_json(FLASHCARDS)

    async def close_mid_flight():
        await study_manager.close("user-1", "flashcards")

    fake_ai.completions.before_return = close_mid_flight

    sent = notifier.mark()
    with pytest.raises(StudyStartError) as exc:
        asyncio.run(study_manager.start("user-1", "flashcards", _note(), notifier))
    assert exc.value.status_code == 409
    assert fake_redis.hashes == {}
    assert notifier.since(sent) == []


def test_quiz_session_locks_answers(study_manager, notifier, fake_ai):
    fake_ai.reply_json(QUIZ)

    async def scenario():
        await study_manager.start("user-1", "quiz", _note(), notifier)
        first = await study_manager.select_option("user-1", 0, "5")
        again = await study_manager.select_option("user-1", 0, "4")
        last = await study_manager.select_option("user-1", 1, "Paris")
        state = await study_manager.get_state("user-1", "quiz")
        return first, again, last, state

    first, again, last, state = asyncio.run(scenario())
    assert first.is_correct is False
    assert again.selected == "5"
    assert last.celebrate is True
    assert state.status == "finished"
    assert state.selections == {0: "5", 1: "Paris"}


def test_sessions_expire(study_manager, notifier, fake_ai, fake_redis):
    fake_ai.reply_json(QUIZ)
    asyncio.run(study_manager.start("user-1", "quiz", _note(), notifier))
    assert fake_redis.expiries["study:user-1:quiz"] == study_manager.expiry_seconds
