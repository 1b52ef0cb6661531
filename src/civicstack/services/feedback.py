"""
Submission feedback: a 1 to 5 rating of the reporting experience,
attached to an existing complaint.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.civicstack.db.models import ComplaintFeedback
from src.civicstack.db.repository import ComplaintRepository, FeedbackRepository
from src.civicstack.db.utils import ensure_aware, utcnow
from src.civicstack.errors import ComplaintNotFound, PersistenceError, ValidationFailed
from src.civicstack.utils.logger import get_logger

logger = get_logger(__name__)

MIN_RATING = 1
MAX_RATING = 5
RECENT_FEEDBACK_LIMIT = 10


def feedback_stats(ratings: List[int]) -> Dict[str, Any]:
    """Count, mean and per-star distribution of the given ratings."""
    series = pd.Series(ratings, dtype="int64")
    counts = series.value_counts()
    return {
        "totalFeedback": int(len(series)),
        "averageRating": round(float(series.mean()), 2) if len(series) else 0,
        "ratingDistribution": {
            str(star): int(counts.get(star, 0)) for star in range(MIN_RATING, MAX_RATING + 1)
        },
    }


class FeedbackService:

    def __init__(self, session: Session):
        self.session = session
        self.complaints = ComplaintRepository()
        self.feedback = FeedbackRepository()

    def submit(
        self,
        complaint_id: str,
        rating: Optional[int],
        feedback_text: Optional[str] = None,
        improvements: Optional[str] = None,
        user_id: Optional[str] = None,
        submitted_at: Optional[datetime] = None,
    ) -> ComplaintFeedback:
        """
        Store one feedback entry.

        Raises:
            ValidationFailed: Rating missing or outside 1-5
            ComplaintNotFound: Unknown complaint
            PersistenceError: Insert failed
        """
        if rating is None or not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationFailed(
                f"Rating must be between {MIN_RATING} and {MAX_RATING}",
                code="INVALID_RATING",
            )
        if self.complaints.get_by_id(self.session, complaint_id) is None:
            raise ComplaintNotFound(complaint_id)

        entry = ComplaintFeedback(
            complaint_id=complaint_id,
            user_id=user_id,
            rating=rating,
            feedback_text=feedback_text or None,
            improvement_suggestions=improvements or None,
            submitted_at=ensure_aware(submitted_at) or utcnow(),
        )
        try:
            self.session.add(entry)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError.from_exception("Failed to submit feedback", e)

        logger.info("feedback_submitted", complaint_id=complaint_id, rating=rating, guest=user_id is None)
        return entry

    def stats(self) -> Dict[str, Any]:
        stats = feedback_stats(self.feedback.ratings(self.session))
        stats["recentFeedback"] = [
            {
                "rating": entry.rating,
                "feedbackText": entry.feedback_text,
                "improvementSuggestions": entry.improvement_suggestions,
                "createdAt": ensure_aware(entry.created_at).isoformat(),
            }
            for entry in self.feedback.recent_with_text(self.session, RECENT_FEEDBACK_LIMIT)
        ]
        return stats
