"""complaint_feedback

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-18 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0002'
down_revision: Union[str, Sequence[str], None] = '0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'complaint_feedback',
        sa.Column('id', sa.String(length=36), nullable=False, comment='Record UUID'),
        sa.Column('complaint_id', sa.String(length=36), nullable=False, comment='References complaints table'),
        sa.Column('user_id', sa.String(length=36), nullable=True, comment='Authenticated subject, null for guests'),
        sa.Column('rating', sa.Integer(), nullable=False, comment='1 to 5'),
        sa.Column('feedback_text', sa.Text(), nullable=True),
        sa.Column('improvement_suggestions', sa.Text(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False, comment='Client-reported submission time'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False, comment='Timestamp when record was created'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False, comment='Timestamp when record was last updated'),
        sa.ForeignKeyConstraint(['complaint_id'], ['complaints.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='check_feedback_rating'),
    )
    op.create_index('idx_complaint_feedback_complaint_id', 'complaint_feedback', ['complaint_id'], unique=False)
    op.create_index('idx_complaint_feedback_created_at', 'complaint_feedback', ['created_at'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_complaint_feedback_created_at', table_name='complaint_feedback')
    op.drop_index('idx_complaint_feedback_complaint_id', table_name='complaint_feedback')
    op.drop_table('complaint_feedback')
