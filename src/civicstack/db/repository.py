"""
Repository Pattern for Data Access

Provides CRUD operations and domain-specific queries for complaint models.
"""
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type, TypeVar

from sqlalchemy import asc, case, delete, desc, func, select, update
from sqlalchemy.orm import Session

from src.civicstack.db.models import (
    Complaint,
    ComplaintFeedback,
    ComplaintStage,
    ComplaintUpdate,
    ComplaintVote,
)
from src.civicstack.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar('T')

SORTABLE_COLUMNS = {
    "created_at": Complaint.created_at,
    "priority_score": Complaint.priority_score,
    "vote_count": Complaint.vote_count,
}


class BaseRepository:
    """
    Base repository with common CRUD operations.

    Generic repository that can be extended for specific models.
    """

    def __init__(self, model: Type[T]):
        """
        Initialize repository with model class.

        Args:
            model: SQLAlchemy model class
        """
        self.model = model
        logger.debug("repository_initialized", model=model.__name__)

    def get_by_id(self, session: Session, id_value: Any) -> Optional[T]:
        """
        Get single record by primary key.

        Args:
            session: Database session
            id_value: Primary key value

        Returns:
            Model instance or None
        """
        result = session.get(self.model, id_value)
        logger.debug(
            "repository_get_by_id",
            model=self.model.__name__,
            id=id_value,
            found=result is not None
        )
        return result


class ComplaintRepository(BaseRepository):
    """Repository for complaint rows."""

    def __init__(self):
        super().__init__(Complaint)

    def list_filtered(
        self,
        session: Session,
        status: Optional[str] = None,
        category: Optional[str] = None,
        user_id: Optional[str] = None,
        bbox: Optional[Tuple[float, float, float, float]] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Complaint], int]:
        """
        Filter, sort and paginate complaints.

        Args:
            session: Database session
            status: Exact status filter
            category: Exact category filter
            user_id: Reporter filter
            bbox: (min_lat, max_lat, min_lon, max_lon) bounding box
            sort_by: created_at, priority_score or vote_count
            sort_order: asc or desc
            limit: Page size
            offset: Rows to skip

        Returns:
            (page of complaints, total matching rows)
        """
        conditions = []
        if status:
            conditions.append(Complaint.status == status)
        if category:
            conditions.append(Complaint.category == category)
        if user_id:
            conditions.append(Complaint.user_id == user_id)
        if bbox:
            min_lat, max_lat, min_lon, max_lon = bbox
            conditions.append(Complaint.location_latitude.between(min_lat, max_lat))
            conditions.append(Complaint.location_longitude.between(min_lon, max_lon))

        column = SORTABLE_COLUMNS.get(sort_by, Complaint.created_at)
        ordering = asc(column) if sort_order == "asc" else desc(column)

        query = select(Complaint).where(*conditions).order_by(ordering, Complaint.id)
        total = session.execute(
            select(func.count()).select_from(Complaint).where(*conditions)
        ).scalar_one()
        rows = session.execute(query.offset(offset).limit(limit)).scalars().all()

        logger.debug(
            "complaints_listed",
            count=len(rows),
            total=total,
            sort_by=sort_by,
            sort_order=sort_order
        )
        return list(rows), total

    def get_all(self, session: Session, user_id: Optional[str] = None) -> List[Complaint]:
        query = select(Complaint).order_by(desc(Complaint.created_at))
        if user_id:
            query = query.where(Complaint.user_id == user_id)
        return list(session.execute(query).scalars().all())

    def get_priority_queue(self, session: Session, limit: int = 50) -> List[Complaint]:
        """
        Open complaints ordered by priority score, then votes.
        """
        query = (
            select(Complaint)
            .where(Complaint.status.in_(["pending", "in_progress"]))
            .order_by(
                desc(func.coalesce(Complaint.priority_score, 0)),
                desc(Complaint.vote_count),
                asc(Complaint.created_at),
            )
            .limit(limit)
        )
        return list(session.execute(query).scalars().all())

    def increment_vote_count(self, session: Session, complaint_id: str) -> None:
        """Atomic vote_count + 1."""
        session.execute(
            update(Complaint)
            .where(Complaint.id == complaint_id)
            .values(vote_count=Complaint.vote_count + 1)
        )

    def decrement_vote_count(self, session: Session, complaint_id: str) -> None:
        """Atomic vote_count - 1, floored at zero."""
        session.execute(
            update(Complaint)
            .where(Complaint.id == complaint_id)
            .values(
                vote_count=case(
                    (Complaint.vote_count > 0, Complaint.vote_count - 1),
                    else_=0,
                )
            )
        )

    def set_vote_count(self, session: Session, complaint_id: str, vote_count: int) -> None:
        session.execute(
            update(Complaint)
            .where(Complaint.id == complaint_id)
            .values(vote_count=vote_count)
        )

    def read_vote_count(self, session: Session, complaint_id: str) -> Optional[int]:
        """Read the authoritative count straight from the row."""
        return session.execute(
            select(Complaint.vote_count).where(Complaint.id == complaint_id)
        ).scalar_one_or_none()

    def delete_cascade(self, session: Session, complaint_id: str) -> Dict[str, int]:
        """
        Delete a complaint and its dependents in foreign-key order.

        Votes, feedback, timeline updates and stages, then the complaint.

        Returns:
            Rows deleted per table
        """
        deleted = {}
        for model in (ComplaintVote, ComplaintFeedback, ComplaintUpdate, ComplaintStage):
            result = session.execute(delete(model).where(model.complaint_id == complaint_id))
            deleted[model.__tablename__] = result.rowcount
        result = session.execute(delete(Complaint).where(Complaint.id == complaint_id))
        deleted[Complaint.__tablename__] = result.rowcount

        logger.info("complaint_cascade_deleted", complaint_id=complaint_id, **deleted)
        return deleted


class VoteRepository(BaseRepository):
    """Repository for complaint votes."""

    def __init__(self):
        super().__init__(ComplaintVote)

    def get_vote(self, session: Session, complaint_id: str, voter_id: str) -> Optional[ComplaintVote]:
        return session.execute(
            select(ComplaintVote).where(
                ComplaintVote.complaint_id == complaint_id,
                ComplaintVote.voter_id == voter_id,
            )
        ).scalar_one_or_none()

    def count_upvotes(self, session: Session, complaint_id: str) -> int:
        return session.execute(
            select(func.count())
            .select_from(ComplaintVote)
            .where(
                ComplaintVote.complaint_id == complaint_id,
                ComplaintVote.vote_type == "upvote",
            )
        ).scalar_one()

    def upvoted_complaint_ids(
        self,
        session: Session,
        voter_id: str,
        complaint_ids: Iterable[str],
    ) -> set:
        """Subset of complaint_ids the voter currently upvotes."""
        complaint_ids = list(complaint_ids)
        if not complaint_ids:
            return set()
        rows = session.execute(
            select(ComplaintVote.complaint_id).where(
                ComplaintVote.voter_id == voter_id,
                ComplaintVote.vote_type == "upvote",
                ComplaintVote.complaint_id.in_(complaint_ids),
            )
        ).scalars().all()
        return set(rows)


class StageRepository(BaseRepository):
    """Repository for workflow stages."""

    def __init__(self):
        super().__init__(ComplaintStage)

    def for_complaint(self, session: Session, complaint_id: str) -> List[ComplaintStage]:
        return list(
            session.execute(
                select(ComplaintStage)
                .where(ComplaintStage.complaint_id == complaint_id)
                .order_by(ComplaintStage.stage_order)
            ).scalars().all()
        )


class UpdateRepository(BaseRepository):
    """Repository for the append-only status timeline."""

    def __init__(self):
        super().__init__(ComplaintUpdate)

    def for_complaint(self, session: Session, complaint_id: str) -> List[ComplaintUpdate]:
        return list(
            session.execute(
                select(ComplaintUpdate)
                .where(ComplaintUpdate.complaint_id == complaint_id)
                .order_by(ComplaintUpdate.created_at, ComplaintUpdate.id)
            ).scalars().all()
        )


class FeedbackRepository(BaseRepository):
    """Repository for submission feedback."""

    def __init__(self):
        super().__init__(ComplaintFeedback)

    def ratings(self, session: Session) -> List[int]:
        return list(session.execute(select(ComplaintFeedback.rating)).scalars().all())

    def recent_with_text(self, session: Session, limit: int = 10) -> List[ComplaintFeedback]:
        """Newest feedback entries that carry free text."""
        return list(
            session.execute(
                select(ComplaintFeedback)
                .where(ComplaintFeedback.feedback_text.is_not(None))
                .order_by(desc(ComplaintFeedback.created_at))
                .limit(limit)
            ).scalars().all()
        )
