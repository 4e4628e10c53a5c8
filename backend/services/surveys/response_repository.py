"""Storage access for surveys, responses and submission receipts."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.models.survey import Survey
from backend.models.survey_response import SurveyResponse, SurveySubmissionReceipt

logger = logging.getLogger(__name__)

RECEIPT_UNIQUE_INDEX = "uq_submission_receipts_user_survey_slot"


class DuplicateSubmissionError(RuntimeError):
    """Raised when the receipt uniqueness constraint rejects an insert."""


def _is_receipt_conflict(exc: IntegrityError) -> bool:
    constraint_name = None
    if hasattr(exc.orig, "diag") and hasattr(exc.orig.diag, "constraint_name"):
        constraint_name = exc.orig.diag.constraint_name
    if constraint_name == RECEIPT_UNIQUE_INDEX:
        return True

    # SQLite and asyncpg report the columns or index name in the message instead
    error_message = str(exc).lower()
    return (
        RECEIPT_UNIQUE_INDEX in error_message
        or "survey_submission_receipts.user_id" in error_message
    )


class ResponseRepository:
    """Reads and writes used by the eligibility and submission services."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_survey_by_id(self, survey_id: UUID) -> Optional[Survey]:
        return await self.db.get(Survey, survey_id)

    async def find_latest_submission(self, user_id: UUID, survey_id: UUID) -> Optional[datetime]:
        """When the user last submitted the survey, or None."""
        result = await self.db.execute(
            select(func.max(SurveySubmissionReceipt.submitted_at)).where(
                SurveySubmissionReceipt.user_id == user_id,
                SurveySubmissionReceipt.survey_id == survey_id,
            )
        )
        return result.scalar_one_or_none()

    async def latest_submissions_for_user(
        self, user_id: UUID, survey_ids: Iterable[UUID] | None = None
    ) -> dict[UUID, datetime]:
        """Map of survey id to the user's latest submission time."""
        query = (
            select(SurveySubmissionReceipt.survey_id, func.max(SurveySubmissionReceipt.submitted_at))
            .where(SurveySubmissionReceipt.user_id == user_id)
            .group_by(SurveySubmissionReceipt.survey_id)
        )
        if survey_ids is not None:
            survey_ids = list(survey_ids)
            if not survey_ids:
                return {}
            query = query.where(SurveySubmissionReceipt.survey_id.in_(survey_ids))

        result = await self.db.execute(query)
        return {survey_id: submitted_at for survey_id, submitted_at in result.all()}

    async def count_responses(self, survey_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(SurveyResponse).where(SurveyResponse.survey_id == survey_id)
        )
        return int(result.scalar_one())

    async def insert_response(self, response: SurveyResponse, receipt: SurveySubmissionReceipt) -> UUID:
        """Write the response and its receipt in one transaction.

        Raises:
            DuplicateSubmissionError: the receipt already exists for this slot;
                nothing was written.
        """
        self.db.add(receipt)
        self.db.add(response)
        try:
            await self.db.flush()
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            if _is_receipt_conflict(exc):
                raise DuplicateSubmissionError("duplicate_write") from exc
            raise
        return response.response_id
