"""Survey response and submission receipt models."""
from __future__ import annotations

import uuid
from datetime import datetime, UTC

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, JSON, String

from backend.database import Base
from backend.models.base import get_uuid_column

SINGLE_SUBMISSION_SLOT = "single"


class SurveyResponse(Base):
    """Persisted answers for one accepted submission.

    ``respondent_id`` is only set when the submission was not effectively
    anonymous. ``submitter_department_id`` and ``submitter_role`` are always
    recorded for aggregate analytics, including on anonymous responses.
    """

    __tablename__ = "survey_responses"

    response_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    survey_id = get_uuid_column(
        ForeignKey("surveys.survey_id", ondelete="RESTRICT"), nullable=False
    )
    respondent_id = get_uuid_column(
        ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True, index=True
    )
    is_anonymous = Column(Boolean, default=False, nullable=False)
    answers = Column(JSON, nullable=False)
    submitted_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
    time_spent = Column(Integer, default=0, nullable=False)  # seconds
    submitter_department_id = get_uuid_column(nullable=True)
    submitter_role = Column(String(20), nullable=True)

    __table_args__ = (
        Index("ix_survey_responses_survey_submitted", "survey_id", "submitted_at"),
        Index("ix_survey_responses_department_submitted", "submitter_department_id", "submitted_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<SurveyResponse(response_id={self.response_id}, survey_id={self.survey_id}, "
            f"is_anonymous={self.is_anonymous})>"
        )


class SurveySubmissionReceipt(Base):
    """Records that a user submitted a survey, without pointing at the response.

    The unique index on (user_id, survey_id, submission_slot) is what keeps a
    user to one response per survey: single-submission surveys always use the
    ``SINGLE_SUBMISSION_SLOT`` slot, so a second insert collides. Other surveys
    get a random slot per submission, unrelated to the response id.
    """

    __tablename__ = "survey_submission_receipts"

    receipt_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    user_id = get_uuid_column(
        ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False
    )
    survey_id = get_uuid_column(
        ForeignKey("surveys.survey_id", ondelete="RESTRICT"), nullable=False, index=True
    )
    submission_slot = Column(String(36), nullable=False, default=SINGLE_SUBMISSION_SLOT)
    submitted_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        Index(
            "uq_submission_receipts_user_survey_slot",
            "user_id",
            "survey_id",
            "submission_slot",
            unique=True,
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<SurveySubmissionReceipt(user_id={self.user_id}, survey_id={self.survey_id}, "
            f"slot={self.submission_slot})>"
        )
