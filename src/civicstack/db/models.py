"""
SQLAlchemy ORM Models

Persisted complaint entities: complaints, votes, workflow stages and
the status timeline. Every column is declared explicitly; nothing is
filtered against a live-introspected schema.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    String, Integer, Numeric, DateTime, Text, JSON,
    ForeignKey, CheckConstraint, UniqueConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.civicstack.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.civicstack.db.utils import utcnow


# Numeric(3, 2) holds at most 9.99; scores are clamped before write.
ScoreColumn = Numeric(3, 2, asdecimal=False)


class Complaint(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """
    Citizen complaint.

    status is derived from the three workflow stages; vote_count is a
    denormalized count of upvote rows in complaint_votes.
    """
    __tablename__ = "complaints"

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Short complaint title"
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Free-text description (any supported language)"
    )
    category: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Civic issue category"
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        comment="pending, in_progress, resolved or cancelled"
    )

    # Location
    location_latitude: Mapped[Optional[float]] = mapped_column(
        Numeric(10, 7, asdecimal=False),
        nullable=True,
        comment="Latitude"
    )
    location_longitude: Mapped[Optional[float]] = mapped_column(
        Numeric(10, 7, asdecimal=False),
        nullable=True,
        comment="Longitude"
    )
    location_address: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        comment="Human readable address"
    )

    # Evidence
    image_urls: Mapped[Optional[list]] = mapped_column(
        JSON,
        nullable=True,
        comment="Uploaded image references"
    )
    verification_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="unverified",
        comment="verified when image validation confirmed a civic issue"
    )

    # Scores (0-1 scale, stored with 2 fractional digits)
    priority_score: Mapped[Optional[float]] = mapped_column(
        ScoreColumn,
        nullable=True,
        comment="Fused priority score"
    )
    priority_level: Mapped[Optional[str]] = mapped_column(
        String(10),
        nullable=True,
        comment="LOW, MEDIUM, HIGH or CRITICAL"
    )
    priority_reasoning: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Generated priority justification"
    )
    location_score: Mapped[Optional[float]] = mapped_column(ScoreColumn, nullable=True)
    emotion_score: Mapped[Optional[float]] = mapped_column(ScoreColumn, nullable=True)
    image_confidence: Mapped[Optional[float]] = mapped_column(ScoreColumn, nullable=True)

    vote_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Denormalized upvote count"
    )

    user_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        comment="Reporter (external auth subject), null for anonymous"
    )
    resolved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the complaint reached resolved"
    )

    # Relationships (deletes are ordered explicitly by the service layer)
    votes: Mapped[list["ComplaintVote"]] = relationship(
        "ComplaintVote",
        back_populates="complaint",
        passive_deletes=True,
    )
    stages: Mapped[list["ComplaintStage"]] = relationship(
        "ComplaintStage",
        back_populates="complaint",
        order_by="ComplaintStage.stage_order",
        passive_deletes=True,
    )
    updates: Mapped[list["ComplaintUpdate"]] = relationship(
        "ComplaintUpdate",
        back_populates="complaint",
        order_by="ComplaintUpdate.created_at",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(
            "priority_score IS NULL OR (priority_score >= 0 AND priority_score < 10)",
            name="check_priority_score_range"
        ),
        CheckConstraint("vote_count >= 0", name="check_vote_count_non_negative"),
        CheckConstraint(
            "status IN ('pending', 'in_progress', 'resolved', 'cancelled')",
            name="check_complaint_status"
        ),
        Index("idx_complaints_status", "status"),
        Index("idx_complaints_category", "category"),
        Index("idx_complaints_user_id", "user_id"),
        Index("idx_complaints_priority_score", "priority_score"),
        Index("idx_complaints_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Complaint(id={self.id}, category={self.category}, status={self.status})>"


class ComplaintVote(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """
    One vote per (complaint, voter).

    voter_id is an authenticated user id or a derived guest id.
    """
    __tablename__ = "complaint_votes"

    complaint_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("complaints.id", ondelete="CASCADE"),
        nullable=False,
        comment="References complaints table"
    )
    voter_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        comment="User id or guest pseudo-id"
    )
    vote_type: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default="upvote",
        comment="upvote, or legacy downvote"
    )
    is_guest: Mapped[bool] = mapped_column(
        default=False,
        nullable=False,
        comment="Vote cast by an anonymous device"
    )

    complaint: Mapped["Complaint"] = relationship("Complaint", back_populates="votes")

    __table_args__ = (
        UniqueConstraint("complaint_id", "voter_id", name="uq_complaint_votes_complaint_voter"),
        CheckConstraint("vote_type IN ('upvote', 'downvote')", name="check_vote_type"),
        Index("idx_complaint_votes_voter_id", "voter_id"),
    )

    def __repr__(self) -> str:
        return f"<ComplaintVote(complaint_id={self.complaint_id}, voter_id={self.voter_id}, type={self.vote_type})>"


class ComplaintStage(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """
    Workflow stage (Initial Review, Assessment, Resolution).
    """
    __tablename__ = "complaint_stages"

    complaint_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("complaints.id", ondelete="CASCADE"),
        nullable=False,
        comment="References complaints table"
    )
    stage_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="1-based position in the workflow"
    )
    stage_name: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        comment="pending, in_progress, completed or cancelled"
    )
    assigned_to: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    estimated_cost: Mapped[Optional[float]] = mapped_column(
        Numeric(12, 2, asdecimal=False),
        nullable=True,
        comment="Cost estimate for the stage"
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    complaint: Mapped["Complaint"] = relationship("Complaint", back_populates="stages")

    __table_args__ = (
        UniqueConstraint("complaint_id", "stage_order", name="uq_complaint_stages_order"),
        CheckConstraint("stage_order BETWEEN 1 AND 3", name="check_stage_order"),
        CheckConstraint(
            "status IN ('pending', 'in_progress', 'completed', 'cancelled')",
            name="check_stage_status"
        ),
    )

    def __repr__(self) -> str:
        return f"<ComplaintStage(complaint_id={self.complaint_id}, order={self.stage_order}, status={self.status})>"


class ComplaintUpdate(Base, UUIDPrimaryKeyMixin):
    """
    Immutable status timeline entry.
    """
    __tablename__ = "complaint_updates"

    complaint_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("complaints.id", ondelete="CASCADE"),
        nullable=False,
        comment="References complaints table"
    )
    old_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    new_status: Mapped[str] = mapped_column(String(20), nullable=False)
    updated_by: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Actor that made the change"
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        comment="Timestamp when the entry was recorded"
    )

    complaint: Mapped["Complaint"] = relationship("Complaint", back_populates="updates")

    __table_args__ = (
        Index("idx_complaint_updates_complaint_id", "complaint_id"),
    )


class ComplaintFeedback(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """
    Reporter rating of the submission experience for one complaint.
    """
    __tablename__ = "complaint_feedback"

    complaint_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("complaints.id", ondelete="CASCADE"),
        nullable=False,
        comment="References complaints table"
    )
    user_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        comment="Authenticated subject, null for guests"
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False, comment="1 to 5")
    feedback_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    improvement_suggestions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        comment="Client-reported submission time"
    )

    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="check_feedback_rating"),
        Index("idx_complaint_feedback_complaint_id", "complaint_id"),
        Index("idx_complaint_feedback_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ComplaintFeedback(complaint_id={self.complaint_id}, rating={self.rating})>"
