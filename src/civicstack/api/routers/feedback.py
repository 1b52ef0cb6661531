"""
Feedback Router

Ratings of the complaint submission experience and their aggregate.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from src.civicstack.api.auth import get_current_user_id, get_optional_user_id
from src.civicstack.api.dependencies import get_feedback_service
from src.civicstack.api.schemas import FeedbackOut, FeedbackRequest, FeedbackResponse, FeedbackStatsResponse
from src.civicstack.services.feedback import FeedbackService

router = APIRouter(prefix="/api/feedback", tags=["feedback"])


@router.post("/submit", response_model=FeedbackResponse, status_code=201)
def submit_feedback(
    payload: FeedbackRequest,
    user_id: Optional[str] = Depends(get_optional_user_id),
    service: FeedbackService = Depends(get_feedback_service),
):
    """
    Rate the submission of a complaint from 1 to 5.

    Guests may submit; a valid token attaches the user id.
    """
    entry = service.submit(
        payload.complaint_id,
        payload.rating,
        feedback_text=payload.feedback,
        improvements=payload.improvements,
        user_id=user_id,
        submitted_at=payload.submitted_at,
    )
    return FeedbackResponse(data=FeedbackOut(
        feedback_id=entry.id,
        complaint_id=entry.complaint_id,
        rating=entry.rating,
        submitted_at=entry.submitted_at,
    ))


@router.get("/stats", response_model=FeedbackStatsResponse)
def feedback_statistics(
    actor: str = Depends(get_current_user_id),
    service: FeedbackService = Depends(get_feedback_service),
):
    """Total, average, star distribution and the ten newest written comments."""
    return FeedbackStatsResponse(data=service.stats())
