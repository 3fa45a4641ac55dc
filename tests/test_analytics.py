import asyncio
from datetime import datetime, timedelta, timezone

from vidnotes.services.analytics import StudyAnalytics


def _record(collection, note_id, studied, correct, minutes=0, user_id="user-1", seconds=60):
    collection.docs.append({
        "user_id": user_id,
        "note_id": note_id,
        "cards_studied": studied,
        "correct_answers": correct,
        "duration_seconds": seconds,
        "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=minutes),
    })


def test_summary_aggregates_per_note(notes_collection):
    _record(notes_collection, "a", 10, 7, minutes=1)
    _record(notes_collection, "b", 4, 4, minutes=2)
    _record(notes_collection, "a", 6, 3, minutes=3)
    _record(notes_collection, "a", 50, 50, user_id="someone-else")

    summary = asyncio.run(StudyAnalytics(notes_collection).summarize("user-1"))

    assert summary.total_sessions == 3
    assert summary.total_cards_studied == 20
    assert summary.total_correct_answers == 14
    assert summary.total_duration_seconds == 180
    assert summary.accuracy == 70.0
    assert [s.note_id for s in summary.by_note] == ["a", "b"]
    assert summary.by_note[0].sessions == 2
    assert summary.by_note[0].accuracy == 62.5


def test_summary_without_sessions(notes_collection):
    summary = asyncio.run(StudyAnalytics(notes_collection).summarize("user-1"))
    assert summary.total_sessions == 0
    assert summary.accuracy == 0.0
    assert summary.by_note == []
