"""
Tests for ComplaintService: submission, listing, rescoring and deletion.
"""
import pytest

from src.civicstack.db.models import ComplaintFeedback, ComplaintStage, ComplaintUpdate, ComplaintVote
from src.civicstack.errors import CollaboratorError, ComplaintNotFound, ValidationFailed
from src.civicstack.models.complaint import ImageValidation, LocationData
from src.civicstack.services.complaints import ComplaintService, validate_category
from src.civicstack.services.workflow import WorkflowService

LOCATION = LocationData(latitude=13.0827, longitude=80.2707)


@pytest.fixture
def service(session, priority_engine, image_client):
    return ComplaintService(session, priority_engine, image_client)


def submit(service, **overrides):
    values = {
        "title": "Flooded road near hospital",
        "description": "Road flooded, dangerous for patients",
        "category": "flooding",
        "location": LOCATION,
    }
    values.update(overrides)
    return service.submit(**values)


class TestValidateCategory:

    def test_known_category(self):
        """Known categories pass through."""
        assert validate_category("pothole") == "pothole"

    @pytest.mark.parametrize("category", ["potholes", "", None])
    def test_unknown_category(self, category):
        """Unknown or empty categories are rejected."""
        with pytest.raises(ValidationFailed) as exc_info:
            validate_category(category)
        assert exc_info.value.code == "INVALID_CATEGORY"


class TestSubmit:

    def test_persists_scores_and_stages(self, service, session, facility_client, facility):
        """Submission stores rounded scores, three stages and a timeline entry."""
        facility_client.facilities = [facility("hospital", 100.0)]

        complaint, analysis = submit(service)

        assert complaint.status == "pending"
        assert complaint.priority_score == 0.62
        assert complaint.priority_level == "HIGH"
        assert complaint.location_score == 1.0
        assert complaint.emotion_score == 0.16
        assert complaint.location_address == "13.0827, 80.2707"
        assert complaint.verification_status == "unverified"
        assert complaint.image_urls == []
        assert analysis.total_score == pytest.approx(0.616)

        stages = WorkflowService(session).stages.for_complaint(session, complaint.id)
        assert [(s.stage_order, s.status) for s in stages] == [
            (1, "pending"), (2, "pending"), (3, "pending"),
        ]
        timeline = session.query(ComplaintUpdate).filter_by(complaint_id=complaint.id).all()
        assert [(t.old_status, t.new_status) for t in timeline] == [(None, "pending")]

    def test_authenticated_reporter_gets_creator_vote(self, service, session):
        """Signed-in reporters upvote their own complaint."""
        complaint, _ = submit(service, user_id="user-1")

        assert complaint.vote_count == 1
        vote = session.query(ComplaintVote).filter_by(complaint_id=complaint.id).one()
        assert vote.voter_id == "user-1"

    def test_anonymous_submission_has_no_votes(self, service):
        """Anonymous complaints start at zero votes."""
        complaint, _ = submit(service)
        assert complaint.vote_count == 0
        assert complaint.user_id is None

    @pytest.mark.parametrize("overrides", [
        {"title": "   "},
        {"description": None},
        {"category": None},
        {"location": None},
        {"location": LocationData(address="Somewhere")},
    ])
    def test_missing_fields(self, service, overrides):
        """Title, description, category and coordinates are required."""
        with pytest.raises(ValidationFailed) as exc_info:
            submit(service, **overrides)
        assert exc_info.value.code == "MISSING_REQUIRED_FIELDS"

    def test_unknown_category(self, service):
        """Unknown categories are rejected before scoring."""
        with pytest.raises(ValidationFailed) as exc_info:
            submit(service, category="volcano")
        assert exc_info.value.code == "INVALID_CATEGORY"

    def test_image_validated_by_service(self, service, image_client):
        """Image URLs are validated and verified when valid."""
        image_client.result = ImageValidation(is_valid_civic_issue=True, confidence=0.876)

        complaint, analysis = submit(service, image_url="https://img.example/flood.jpg")

        assert complaint.verification_status == "verified"
        assert complaint.image_confidence == 0.88
        assert complaint.image_urls == ["https://img.example/flood.jpg"]
        assert analysis.breakdown.image_score == pytest.approx(0.876)

    def test_image_service_failure_is_not_fatal(self, service, image_client):
        """A failing vision service leaves the complaint unverified."""
        image_client.error = CollaboratorError("image_validation", "timeout")

        complaint, _ = submit(service, image_url="https://img.example/flood.jpg")

        assert complaint.verification_status == "unverified"
        assert complaint.image_confidence is None

    def test_client_supplied_validation_skips_service(self, service, image_client):
        """Client validation results are trusted as sent."""
        image_client.error = AssertionError("image service must not be called")
        validation = ImageValidation(is_valid_civic_issue=False, confidence=0.3)

        complaint, _ = submit(service, image_url="https://img.example/x.jpg", image_validation=validation)

        assert complaint.verification_status == "unverified"
        assert complaint.image_confidence == 0.3


class TestQueries:

    def test_list_paginates_and_filters(self, service):
        """Listing pages and filters by category."""
        submit(service, category="pothole", title="Pothole 1", description="Big pothole")
        submit(service, category="pothole", title="Pothole 2", description="Another pothole")
        submit(service, category="garbage", title="Garbage", description="Overflowing bins")

        page = service.list_complaints(page=1, limit=2)
        assert page["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}
        assert len(page["complaints"]) == 2

        potholes = service.list_complaints(category="pothole")
        assert {c.title for c in potholes["complaints"]} == {"Pothole 1", "Pothole 2"}

    def test_limit_is_capped(self, service):
        """Page size is capped at 100."""
        assert service.list_complaints(limit=1000)["pagination"]["limit"] == 100

    def test_radius_filter(self, service):
        """Radius search keeps nearby complaints only."""
        submit(service, title="Near")
        submit(service, title="Far", location=LocationData(latitude=12.9716, longitude=77.5946))

        nearby = service.list_complaints(latitude=13.08, longitude=80.27, radius=2000)

        assert [c.title for c in nearby["complaints"]] == ["Near"]

    def test_viewer_vote_flags(self, service):
        """Viewers see which complaints they upvoted."""
        mine, _ = submit(service, user_id="user-1")
        other, _ = submit(service, user_id="user-2")

        page = service.list_complaints(viewer_id="user-1")

        assert page["user_voted"] == {mine.id: True, other.id: False}

    def test_sort_by_votes(self, service):
        """Sorting by vote count."""
        low, _ = submit(service, title="Low")
        high, _ = submit(service, title="High", user_id="user-1")

        page = service.list_complaints(sort_by="vote_count", sort_order="desc")

        assert [c.id for c in page["complaints"]] == [high.id, low.id]

    def test_personal_reports(self, service, session):
        """Reports cover the reporter's own complaints with stages."""
        first, _ = submit(service, user_id="user-1")
        submit(service, user_id="user-1")
        submit(service, user_id="user-2")
        WorkflowService(session).override_status(first.id, "resolved")

        reports = service.personal_reports("user-1")

        assert reports["summary"] == {
            "total": 2, "pending": 1, "in_progress": 0, "resolved": 1, "cancelled": 0,
        }
        assert all(len(r["stages"]) == 3 for r in reports["reports"])

    def test_priority_queue_skips_closed(self, service, session, facility_client, facility):
        """Cancelled complaints leave the queue."""
        calm, _ = submit(service, category="other", description="Bench needs paint")
        facility_client.facilities = [facility("hospital", 100.0)]
        urgent, _ = submit(service)
        closed, _ = submit(service)
        WorkflowService(session).override_status(closed.id, "cancelled")

        queue = service.priority_queue()

        assert [c.id for c in queue] == [urgent.id, calm.id]

    def test_get_unknown(self, service):
        """Unknown ids are 404s."""
        with pytest.raises(ComplaintNotFound):
            service.get("missing")


class TestMutations:

    def test_recalculate_persists_new_scores(self, service, facility_client, facility):
        """Rescoring writes the new scores back."""
        complaint, _ = submit(service)
        assert complaint.priority_level == "LOW"

        facility_client.facilities = [facility("hospital", 100.0)]
        analysis = service.recalculate(complaint.id)

        assert analysis.priority_level.value == "HIGH"
        assert complaint.priority_level == "HIGH"
        assert complaint.location_score == 1.0

    def test_delete_removes_dependents(self, service, session):
        """Votes, feedback, timeline and stages go with the complaint."""
        complaint, _ = submit(service, user_id="user-1")
        session.add(ComplaintFeedback(complaint_id=complaint.id, rating=4))
        session.commit()

        deleted = service.delete(complaint.id)

        assert deleted == {
            "complaint_votes": 1,
            "complaint_feedback": 1,
            "complaint_updates": 1,
            "complaint_stages": 3,
            "complaints": 1,
        }
        assert session.query(ComplaintStage).filter_by(complaint_id=complaint.id).count() == 0
        with pytest.raises(ComplaintNotFound):
            service.get(complaint.id)

    def test_delete_unknown(self, service):
        """Deleting an unknown complaint is a 404."""
        with pytest.raises(ComplaintNotFound):
            service.delete("missing")
