"""create departments and users tables

Revision ID: 3a1f0c2d9b10
Revises:
Create Date: 2026-09-28 09:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from backend.migrations.util import get_timestamp_default, get_uuid_type


# revision identifiers, used by Alembic.
revision: str = '3a1f0c2d9b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the account tables consumed by audience targeting."""
    uuid_type = get_uuid_type()

    op.create_table(
        'departments',
        sa.Column('department_id', uuid_type, nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=get_timestamp_default()),
        sa.PrimaryKeyConstraint('department_id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'users',
        sa.Column('user_id', uuid_type, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=80), nullable=False, server_default=''),
        sa.Column('last_name', sa.String(length=80), nullable=False, server_default=''),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='employee'),
        sa.Column('department_id', uuid_type, nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=get_timestamp_default()),
        sa.ForeignKeyConstraint(['department_id'], ['departments.department_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('user_id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_users_department_id', 'users', ['department_id'], unique=False)


def downgrade() -> None:
    """Drop users and departments."""
    op.drop_index('ix_users_department_id', table_name='users')
    op.drop_table('users')
    op.drop_table('departments')
