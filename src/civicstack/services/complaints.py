"""
Complaint submission and retrieval.

Submission scores the complaint once through the priority fusion engine,
clamps every score for storage, creates the three workflow stages, the
first timeline entry and the reporter's own upvote.
"""
from __future__ import annotations

from collections import Counter
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.civicstack.clients.image_validation import ImageValidationClient
from src.civicstack.db.models import Complaint
from src.civicstack.db.repository import ComplaintRepository, StageRepository
from src.civicstack.errors import CollaboratorError, ComplaintNotFound, PersistenceError, ValidationFailed
from src.civicstack.models.complaint import (
    ComplaintCategory,
    ComplaintStatus,
    ImageValidation,
    LocationData,
    VerificationStatus,
)
from src.civicstack.scoring.priority_engine import PriorityAnalysis, PriorityFusionEngine, to_storage_score
from src.civicstack.services.votes import VoteLedger
from src.civicstack.services.workflow import WorkflowService
from src.civicstack.utils.geo_utils import bounding_box
from src.civicstack.utils.logger import get_logger

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100


def validate_category(category: Optional[str]) -> str:
    try:
        return ComplaintCategory(category).value
    except ValueError:
        raise ValidationFailed(f"Unknown category: {category}", code="INVALID_CATEGORY")


def default_address(location: LocationData) -> str:
    return f"{location.latitude:.4f}, {location.longitude:.4f}"


class ComplaintService:
    """Complaint lifecycle outside of votes and workflow stages."""

    def __init__(
        self,
        session: Session,
        engine: PriorityFusionEngine,
        image_client: Optional[ImageValidationClient] = None,
    ):
        self.session = session
        self.engine = engine
        self.image_client = image_client
        self.complaints = ComplaintRepository()
        self.stages = StageRepository()

    def calculate_priority(
        self,
        description: Optional[str],
        category: str,
        location: Optional[LocationData],
        image_validation: Optional[ImageValidation] = None,
    ) -> PriorityAnalysis:
        """Pre-submission preview; nothing is persisted."""
        category = validate_category(category)
        return self.engine.fuse(image_validation, location, category, description)

    def submit(
        self,
        title: Optional[str],
        description: Optional[str],
        category: Optional[str],
        location: Optional[LocationData],
        image_url: Optional[str] = None,
        image_validation: Optional[ImageValidation] = None,
        user_id: Optional[str] = None,
    ):
        """
        Create a complaint.

        Returns:
            (Complaint, PriorityAnalysis)

        Raises:
            ValidationFailed: Missing fields or unknown category
            PersistenceError: Database write failed
        """
        title = (title or "").strip()
        description = (description or "").strip()
        if not title or not description or not category or location is None or not location.has_coordinates():
            raise ValidationFailed(
                "Title, description, category, and location are required",
                code="MISSING_REQUIRED_FIELDS",
            )
        category = validate_category(category)

        if image_url and image_validation is None:
            image_validation = self._validate_image(image_url, category)

        analysis = self.engine.fuse(image_validation, location, category, description)

        is_verified = image_validation is not None and image_validation.is_valid_civic_issue
        complaint = Complaint(
            title=title,
            description=description,
            category=category,
            status=ComplaintStatus.PENDING.value,
            location_latitude=location.latitude,
            location_longitude=location.longitude,
            location_address=location.address or default_address(location),
            image_urls=[image_url] if image_url else [],
            verification_status=(VerificationStatus.VERIFIED if is_verified else VerificationStatus.UNVERIFIED).value,
            priority_score=to_storage_score(analysis.total_score),
            priority_level=analysis.priority_level.value,
            priority_reasoning=analysis.reasoning,
            location_score=to_storage_score(analysis.breakdown.location_score),
            emotion_score=to_storage_score(analysis.breakdown.adjusted_emotion_score),
            image_confidence=to_storage_score(image_validation.confidence) if image_validation else None,
            vote_count=0,
            user_id=user_id,
        )

        workflow = WorkflowService(self.session)
        try:
            self.session.add(complaint)
            self.session.flush()
            workflow.create_stages(complaint)
            workflow.record_update(
                complaint.id, None, ComplaintStatus.PENDING.value, user_id or "citizen", "Complaint submitted"
            )
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("complaint_persist_failed", error=str(e), error_type=type(e).__name__)
            raise PersistenceError.from_exception("Failed to save complaint", e)

        if user_id:
            VoteLedger(self.session).record_creator_vote(complaint.id, user_id)
            self.session.refresh(complaint)

        logger.info(
            "complaint_submitted",
            complaint_id=complaint.id,
            category=category,
            priority_score=complaint.priority_score,
            priority_level=analysis.priority_level.value,
            method=analysis.method,
            degraded=analysis.degraded
        )
        return complaint, analysis

    def get(self, complaint_id: str) -> Complaint:
        complaint = self.complaints.get_by_id(self.session, complaint_id)
        if complaint is None:
            raise ComplaintNotFound(complaint_id)
        return complaint

    def list_complaints(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        category: Optional[str] = None,
        user_id: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        radius: Optional[float] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        viewer_id: Optional[str] = None,
    ) -> dict:
        """
        Paginated complaint listing with optional radius filter.

        Returns:
            complaints, per-complaint userVoted flags and pagination info
        """
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)

        bbox = None
        if latitude is not None and longitude is not None and radius:
            bbox = bounding_box(latitude, longitude, radius)

        rows, total = self.complaints.list_filtered(
            self.session,
            status=status,
            category=category,
            user_id=user_id,
            bbox=bbox,
            sort_by=sort_by,
            sort_order=sort_order,
            limit=limit,
            offset=(page - 1) * limit,
        )

        voted = {}
        if viewer_id and rows:
            voted = VoteLedger(self.session).vote_status(viewer_id, [c.id for c in rows])

        return {
            "complaints": rows,
            "user_voted": voted,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": (total + limit - 1) // limit,
            },
        }

    def personal_reports(self, user_id: str) -> dict:
        """Reporter's own complaints with stage tracking and status counts."""
        complaints = self.complaints.get_all(self.session, user_id=user_id)
        workflow = WorkflowService(self.session)
        reports = [
            {"complaint": complaint, "stages": workflow.ensure_stages(complaint)}
            for complaint in complaints
        ]
        self.session.commit()

        counts = Counter(c.status for c in complaints)
        return {
            "reports": reports,
            "summary": {
                "total": len(complaints),
                "pending": counts.get("pending", 0),
                "in_progress": counts.get("in_progress", 0),
                "resolved": counts.get("resolved", 0),
                "cancelled": counts.get("cancelled", 0),
            },
        }

    def recalculate(self, complaint_id: str) -> PriorityAnalysis:
        """Rescore a stored complaint and persist the new scores."""
        complaint = self.get(complaint_id)
        analysis = self.engine.recalculate(complaint)

        complaint.priority_score = to_storage_score(analysis.total_score)
        complaint.priority_level = analysis.priority_level.value
        complaint.priority_reasoning = analysis.reasoning
        complaint.location_score = to_storage_score(analysis.breakdown.location_score)
        complaint.emotion_score = to_storage_score(analysis.breakdown.adjusted_emotion_score)
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError.from_exception("Failed to update priority", e)

        logger.info(
            "complaint_priority_recalculated",
            complaint_id=complaint.id,
            priority_score=complaint.priority_score,
            priority_level=complaint.priority_level
        )
        return analysis

    def delete(self, complaint_id: str) -> dict:
        """Admin hard delete, dependents first."""
        self.get(complaint_id)
        try:
            deleted = self.complaints.delete_cascade(self.session, complaint_id)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError.from_exception("Failed to delete complaint", e)
        return deleted

    def priority_queue(self, limit: int = 50) -> List[Complaint]:
        return self.complaints.get_priority_queue(self.session, limit=limit)

    def _validate_image(self, image_url: str, category: str) -> Optional[ImageValidation]:
        if self.image_client is None or not self.image_client.is_configured():
            return None
        try:
            return self.image_client.validate(image_url, category)
        except CollaboratorError as e:
            logger.warning("image_validation_skipped", error=e.message)
            return None
