import logging
from typing import Any, Dict, List

from vidnotes.models.study import NoteStudyStats, StudyAnalyticsSummary

logger = logging.getLogger(__name__)


def _accuracy(correct: int, studied: int) -> float:
    if not studied:
        return 0.0
    return round((correct / studied) * 100, 1)


class StudyAnalytics:
    """Read-side aggregation over the append-only ``study_sessions`` records"""

    def __init__(self, collection=None):
        if collection is None:
            from vidnotes.core.database import study_sessions_collection
            collection = study_sessions_collection
        self.collection = collection

    async def summarize(self, user_id: str) -> StudyAnalyticsSummary:
        cursor = self.collection.find({"user_id": user_id}).sort("created_at", -1)
        records = await cursor.to_list(length=None)

        by_note: Dict[Any, Dict[str, int]] = {}
        for record in records:
            stats = by_note.setdefault(record.get("note_id"), {"sessions": 0, "cards_studied": 0, "correct_answers": 0})
            stats["sessions"] += 1
            stats["cards_studied"] += record.get("cards_studied", 0)
            stats["correct_answers"] += record.get("correct_answers", 0)

        total_cards = sum(r.get("cards_studied", 0) for r in records)
        total_correct = sum(r.get("correct_answers", 0) for r in records)

        note_stats: List[NoteStudyStats] = [
            NoteStudyStats(
                note_id=note_id,
                sessions=stats["sessions"],
                cards_studied=stats["cards_studied"],
                correct_answers=stats["correct_answers"],
                accuracy=_accuracy(stats["correct_answers"], stats["cards_studied"]),
            )
            for note_id, stats in by_note.items()
        ]
        # Most studied first
        note_stats.sort(key=lambda s: (-s.cards_studied, s.note_id or ""))

        logger.info(f"📊 Study analytics for {user_id}: {len(records)} sessions")

        return StudyAnalyticsSummary(
            success=True,
            total_sessions=len(records),
            total_cards_studied=total_cards,
            total_correct_answers=total_correct,
            total_duration_seconds=sum(r.get("duration_seconds", 0) for r in records),
            accuracy=_accuracy(total_correct, total_cards),
            by_note=note_stats,
        )
