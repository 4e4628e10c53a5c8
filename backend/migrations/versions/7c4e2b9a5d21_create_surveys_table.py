"""create surveys table

Revision ID: 7c4e2b9a5d21
Revises: 3a1f0c2d9b10
Create Date: 2026-09-28 09:30:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from backend.migrations.util import get_json_type, get_timestamp_default, get_uuid_type


# revision identifiers, used by Alembic.
revision: str = '7c4e2b9a5d21'
down_revision: Union[str, None] = '3a1f0c2d9b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create surveys with embedded questions and audience targeting."""
    uuid_type = get_uuid_type()
    json_type = get_json_type()

    op.create_table(
        'surveys',
        sa.Column('survey_id', uuid_type, nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=20), nullable=False),
        sa.Column('questions', json_type, nullable=False),
        sa.Column('target_departments', json_type, nullable=False),
        sa.Column('target_roles', json_type, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_anonymous', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('settings', json_type, nullable=False),
        sa.Column('created_by', uuid_type, nullable=True),
        sa.Column('estimated_time', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('tags', json_type, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=get_timestamp_default()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=get_timestamp_default()),
        sa.ForeignKeyConstraint(['created_by'], ['users.user_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('survey_id'),
    )
    op.create_index(
        'ix_surveys_category_active_end', 'surveys', ['category', 'is_active', 'end_date'], unique=False
    )


def downgrade() -> None:
    """Drop surveys."""
    op.drop_index('ix_surveys_category_active_end', table_name='surveys')
    op.drop_table('surveys')
