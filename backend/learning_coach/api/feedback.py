"""
Feedback and usage stats endpoints.
"""

from fastapi import APIRouter, Depends, status

from ..models import FeedbackCreate, StatsResponse, StorageStatus
from ..core import FeedbackStore, SessionStats
from .deps import get_feedback_store, get_stats

router = APIRouter(tags=["feedback"])


@router.post("/feedback", response_model=StorageStatus, status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    feedback: FeedbackCreate,
    store: FeedbackStore = Depends(get_feedback_store),
):
    """Store feedback from the feedback widget."""
    result = await store.add(feedback)
    return StorageStatus(ok=result.ok, failure=result.failure.value if result.failure else None)


@router.get("/stats", response_model=StatsResponse)
async def get_usage_stats(stats: SessionStats = Depends(get_stats)):
    """Usage counters across all sessions."""
    return StatsResponse(
        total_conversations=stats.total_conversations,
        total_messages=stats.total_messages,
        total_recommendations=stats.total_recommendations,
        last_active_date=stats.last_active_date,
    )
