"""
Tests for submission feedback.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from src.civicstack.db.models import ComplaintFeedback
from src.civicstack.errors import ComplaintNotFound, PersistenceError, ValidationFailed
from src.civicstack.services.feedback import FeedbackService, feedback_stats


class TestFeedbackStats:

    def test_distribution_and_mean(self):
        """Average is rounded to two places, every star is listed."""
        stats = feedback_stats([5, 4, 4, 1, 5, 5])

        assert stats == {
            "totalFeedback": 6,
            "averageRating": 4.0,
            "ratingDistribution": {"1": 1, "2": 0, "3": 0, "4": 2, "5": 3},
        }

    def test_rounding(self):
        """Two decimal places."""
        assert feedback_stats([5, 4, 4])["averageRating"] == 4.33

    def test_empty(self):
        """No feedback yet."""
        stats = feedback_stats([])

        assert stats["totalFeedback"] == 0
        assert stats["averageRating"] == 0
        assert set(stats["ratingDistribution"].values()) == {0}


class TestFeedbackService:

    def test_submit(self, session, make_complaint):
        """Entry is stored against the complaint with an aware timestamp."""
        complaint = make_complaint()
        submitted = datetime(2026, 10, 18, 9, 30, tzinfo=timezone(timedelta(hours=5, minutes=30)))

        entry = FeedbackService(session).submit(
            complaint.id, 4, feedback_text="Easy", improvements="", user_id="user-1", submitted_at=submitted,
        )

        stored = session.get(ComplaintFeedback, entry.id)
        assert (stored.complaint_id, stored.rating, stored.user_id) == (complaint.id, 4, "user-1")
        assert stored.feedback_text == "Easy"
        assert stored.improvement_suggestions is None
        assert entry.submitted_at == submitted

    def test_submit_defaults_timestamp(self, session, make_complaint):
        """Guests may omit the submission time."""
        entry = FeedbackService(session).submit(make_complaint().id, 3)

        assert entry.user_id is None
        assert entry.submitted_at is not None

    @pytest.mark.parametrize("rating", [0, 6, -1, None])
    def test_rating_bounds(self, session, make_complaint, rating):
        """Ratings must fall in 1-5."""
        with pytest.raises(ValidationFailed) as exc_info:
            FeedbackService(session).submit(make_complaint().id, rating)

        assert exc_info.value.code == "INVALID_RATING"
        assert exc_info.value.status_code == 400

    def test_unknown_complaint(self, session):
        """404 before anything is written."""
        with pytest.raises(ComplaintNotFound):
            FeedbackService(session).submit("missing", 5)
        assert session.query(ComplaintFeedback).count() == 0

    def test_insert_failure(self, session, make_complaint):
        """Database errors surface as a persistence error and roll back."""
        complaint = make_complaint()
        service = FeedbackService(session)
        failure = OperationalError("INSERT INTO complaint_feedback", {}, Exception("disk I/O error"))

        with patch.object(session, "commit", side_effect=failure):
            with pytest.raises(PersistenceError) as exc_info:
                service.submit(complaint.id, 5)

        assert exc_info.value.status_code == 500
        assert session.query(ComplaintFeedback).count() == 0

    def test_stats_include_recent_text(self, session, make_complaint):
        """Only entries with written feedback appear in the recent list."""
        complaint = make_complaint()
        service = FeedbackService(session)
        service.submit(complaint.id, 5, feedback_text="Great")
        service.submit(complaint.id, 3)

        stats = service.stats()

        assert stats["totalFeedback"] == 2
        assert stats["averageRating"] == 4.0
        assert [f["feedbackText"] for f in stats["recentFeedback"]] == ["Great"]
        assert stats["recentFeedback"][0]["rating"] == 5
