from fastapi import APIRouter, HTTPException
from pymongo.errors import PyMongoError
import logging

from vidnotes.models.study import StudyAnalyticsSummary
from vidnotes.services.analytics import StudyAnalytics

router = APIRouter(prefix="/analytics", tags=["analytics"])
logger = logging.getLogger(__name__)

study_analytics = StudyAnalytics()


@router.get("/{user_id}", response_model=StudyAnalyticsSummary, summary="Aggregate a user's study sessions")
async def get_study_analytics(user_id: str):
    try:
        return await study_analytics.summarize(user_id)
    except PyMongoError as e:
        logger.error(f"❌ Error loading study analytics for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Error loading study analytics")
