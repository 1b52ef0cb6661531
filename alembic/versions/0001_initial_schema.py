"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False, comment='Timestamp when record was created'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False, comment='Timestamp when record was last updated'),
    ]


def upgrade() -> None:
    # Create complaints table
    op.create_table(
        'complaints',
        sa.Column('id', sa.String(length=36), nullable=False, comment='Record UUID'),
        sa.Column('title', sa.String(length=255), nullable=False, comment='Short complaint title'),
        sa.Column('description', sa.Text(), nullable=False, comment='Free-text description (any supported language)'),
        sa.Column('category', sa.String(length=50), nullable=False, comment='Civic issue category'),
        sa.Column('status', sa.String(length=20), nullable=False, comment='pending, in_progress, resolved or cancelled'),
        sa.Column('location_latitude', sa.Numeric(precision=10, scale=7), nullable=True, comment='Latitude'),
        sa.Column('location_longitude', sa.Numeric(precision=10, scale=7), nullable=True, comment='Longitude'),
        sa.Column('location_address', sa.String(length=500), nullable=True, comment='Human readable address'),
        sa.Column('image_urls', sa.JSON(), nullable=True, comment='Uploaded image references'),
        sa.Column('verification_status', sa.String(length=20), nullable=False, comment='verified when image validation confirmed a civic issue'),
        sa.Column('priority_score', sa.Numeric(precision=3, scale=2), nullable=True, comment='Fused priority score'),
        sa.Column('priority_level', sa.String(length=10), nullable=True, comment='LOW, MEDIUM, HIGH or CRITICAL'),
        sa.Column('priority_reasoning', sa.Text(), nullable=True, comment='Generated priority justification'),
        sa.Column('location_score', sa.Numeric(precision=3, scale=2), nullable=True),
        sa.Column('emotion_score', sa.Numeric(precision=3, scale=2), nullable=True),
        sa.Column('image_confidence', sa.Numeric(precision=3, scale=2), nullable=True),
        sa.Column('vote_count', sa.Integer(), nullable=False, comment='Denormalized upvote count'),
        sa.Column('user_id', sa.String(length=36), nullable=True, comment='Reporter (external auth subject), null for anonymous'),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True, comment='When the complaint reached resolved'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('priority_score IS NULL OR (priority_score >= 0 AND priority_score < 10)', name='check_priority_score_range'),
        sa.CheckConstraint('vote_count >= 0', name='check_vote_count_non_negative'),
        sa.CheckConstraint("status IN ('pending', 'in_progress', 'resolved', 'cancelled')", name='check_complaint_status'),
    )
    op.create_index('idx_complaints_status', 'complaints', ['status'], unique=False)
    op.create_index('idx_complaints_category', 'complaints', ['category'], unique=False)
    op.create_index('idx_complaints_user_id', 'complaints', ['user_id'], unique=False)
    op.create_index('idx_complaints_priority_score', 'complaints', ['priority_score'], unique=False)
    op.create_index('idx_complaints_created_at', 'complaints', ['created_at'], unique=False)

    # Create complaint_votes table
    op.create_table(
        'complaint_votes',
        sa.Column('id', sa.String(length=36), nullable=False, comment='Record UUID'),
        sa.Column('complaint_id', sa.String(length=36), nullable=False, comment='References complaints table'),
        sa.Column('voter_id', sa.String(length=36), nullable=False, comment='User id or guest pseudo-id'),
        sa.Column('vote_type', sa.String(length=10), nullable=False, comment='upvote, or legacy downvote'),
        sa.Column('is_guest', sa.Boolean(), nullable=False, comment='Vote cast by an anonymous device'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['complaint_id'], ['complaints.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('complaint_id', 'voter_id', name='uq_complaint_votes_complaint_voter'),
        sa.CheckConstraint("vote_type IN ('upvote', 'downvote')", name='check_vote_type'),
    )
    op.create_index('idx_complaint_votes_voter_id', 'complaint_votes', ['voter_id'], unique=False)

    # Create complaint_stages table
    op.create_table(
        'complaint_stages',
        sa.Column('id', sa.String(length=36), nullable=False, comment='Record UUID'),
        sa.Column('complaint_id', sa.String(length=36), nullable=False, comment='References complaints table'),
        sa.Column('stage_order', sa.Integer(), nullable=False, comment='1-based position in the workflow'),
        sa.Column('stage_name', sa.String(length=50), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, comment='pending, in_progress, completed or cancelled'),
        sa.Column('assigned_to', sa.String(length=255), nullable=True),
        sa.Column('estimated_cost', sa.Numeric(precision=12, scale=2), nullable=True, comment='Cost estimate for the stage'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['complaint_id'], ['complaints.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('complaint_id', 'stage_order', name='uq_complaint_stages_order'),
        sa.CheckConstraint('stage_order BETWEEN 1 AND 3', name='check_stage_order'),
        sa.CheckConstraint("status IN ('pending', 'in_progress', 'completed', 'cancelled')", name='check_stage_status'),
    )

    # Create complaint_updates table
    op.create_table(
        'complaint_updates',
        sa.Column('id', sa.String(length=36), nullable=False, comment='Record UUID'),
        sa.Column('complaint_id', sa.String(length=36), nullable=False, comment='References complaints table'),
        sa.Column('old_status', sa.String(length=20), nullable=True),
        sa.Column('new_status', sa.String(length=20), nullable=False),
        sa.Column('updated_by', sa.String(length=255), nullable=True, comment='Actor that made the change'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='Timestamp when the entry was recorded'),
        sa.ForeignKeyConstraint(['complaint_id'], ['complaints.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_complaint_updates_complaint_id', 'complaint_updates', ['complaint_id'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_complaint_updates_complaint_id', table_name='complaint_updates')
    op.drop_table('complaint_updates')
    op.drop_table('complaint_stages')
    op.drop_index('idx_complaint_votes_voter_id', table_name='complaint_votes')
    op.drop_table('complaint_votes')
    op.drop_index('idx_complaints_created_at', table_name='complaints')
    op.drop_index('idx_complaints_priority_score', table_name='complaints')
    op.drop_index('idx_complaints_user_id', table_name='complaints')
    op.drop_index('idx_complaints_category', table_name='complaints')
    op.drop_index('idx_complaints_status', table_name='complaints')
    op.drop_table('complaints')
