"""create survey responses and submission receipts

Revision ID: b5d81f3c6e47
Revises: 7c4e2b9a5d21
Create Date: 2026-09-28 10:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from backend.migrations.util import get_json_type, get_timestamp_default, get_uuid_type


# revision identifiers, used by Alembic.
revision: str = 'b5d81f3c6e47'
down_revision: Union[str, None] = '7c4e2b9a5d21'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create survey_responses and survey_submission_receipts with indices.

    The unique receipt index is the storage-level guard against a user
    submitting a single-submission survey twice, including anonymously.
    """
    uuid_type = get_uuid_type()
    json_type = get_json_type()

    op.create_table(
        'survey_responses',
        sa.Column('response_id', uuid_type, nullable=False),
        sa.Column('survey_id', uuid_type, nullable=False),
        sa.Column('respondent_id', uuid_type, nullable=True),
        sa.Column('is_anonymous', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('answers', json_type, nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False, server_default=get_timestamp_default()),
        sa.Column('time_spent', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('submitter_department_id', uuid_type, nullable=True),
        sa.Column('submitter_role', sa.String(length=20), nullable=True),
        sa.ForeignKeyConstraint(['survey_id'], ['surveys.survey_id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['respondent_id'], ['users.user_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('response_id'),
    )
    op.create_index('ix_survey_responses_respondent_id', 'survey_responses', ['respondent_id'], unique=False)
    op.create_index(
        'ix_survey_responses_survey_submitted', 'survey_responses', ['survey_id', 'submitted_at'], unique=False
    )
    op.create_index(
        'ix_survey_responses_department_submitted',
        'survey_responses',
        ['submitter_department_id', 'submitted_at'],
        unique=False,
    )

    op.create_table(
        'survey_submission_receipts',
        sa.Column('receipt_id', uuid_type, nullable=False),
        sa.Column('user_id', uuid_type, nullable=False),
        sa.Column('survey_id', uuid_type, nullable=False),
        sa.Column('submission_slot', sa.String(length=36), nullable=False, server_default='single'),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False, server_default=get_timestamp_default()),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['survey_id'], ['surveys.survey_id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('receipt_id'),
    )
    op.create_index(
        'ix_survey_submission_receipts_survey_id', 'survey_submission_receipts', ['survey_id'], unique=False
    )
    op.create_index(
        'uq_submission_receipts_user_survey_slot',
        'survey_submission_receipts',
        ['user_id', 'survey_id', 'submission_slot'],
        unique=True,
    )


def downgrade() -> None:
    """Drop receipts and responses."""
    op.drop_index('uq_submission_receipts_user_survey_slot', table_name='survey_submission_receipts')
    op.drop_index('ix_survey_submission_receipts_survey_id', table_name='survey_submission_receipts')
    op.drop_table('survey_submission_receipts')
    op.drop_index('ix_survey_responses_department_submitted', table_name='survey_responses')
    op.drop_index('ix_survey_responses_survey_submitted', table_name='survey_responses')
    op.drop_index('ix_survey_responses_respondent_id', table_name='survey_responses')
    op.drop_table('survey_responses')
