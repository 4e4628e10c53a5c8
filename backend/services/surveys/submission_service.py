"""Survey response submission."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import get_settings
from backend.models.survey import Survey, SurveyQuestion
from backend.models.survey_response import (
    SINGLE_SUBMISSION_SLOT,
    SurveyResponse,
    SurveySubmissionReceipt,
)
from backend.services.surveys.codes import SubmissionError
from backend.services.surveys.eligibility_service import (
    EligibilityService,
    SurveyParticipant,
)
from backend.services.surveys.question_validator import Violation, validate_answers
from backend.services.surveys.response_repository import (
    DuplicateSubmissionError,
    ResponseRepository,
)
from backend.utils.datetime_helpers import ensure_utc, start_of_utc_day, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionOutcome:
    """Either an accepted response id or the reason nothing was stored."""

    accepted: bool
    response_id: Optional[UUID] = None
    error: Optional[SubmissionError] = None
    violations: list[Violation] = field(default_factory=list)
    submitted_at: Optional[datetime] = None

    @classmethod
    def rejected(cls, error: SubmissionError, **kwargs: Any) -> "SubmissionOutcome":
        return cls(accepted=False, error=error, **kwargs)


def snapshot_answers(questions: Sequence[SurveyQuestion], values: Sequence[Any]) -> list[dict[str, Any]]:
    """Copy question wording and type next to each answer as they are now."""
    return [
        {"question": question.text, "questionType": question.type.value, "answer": value}
        for question, value in zip(questions, values)
    ]


class SubmissionService:
    """Validates and stores survey responses, all-or-nothing."""

    def __init__(
        self,
        db: AsyncSession,
        repository: ResponseRepository | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.repository = repository or ResponseRepository(db)
        self.clock = clock
        self.eligibility = EligibilityService(db, self.repository, clock=clock)
        self.settings = get_settings()

    async def submit_response(
        self,
        user: SurveyParticipant,
        survey_id: UUID,
        answers: Sequence[Any],
        requested_anonymous: bool = False,
        time_spent: int = 0,
    ) -> SubmissionOutcome:
        """Store a response for ``survey_id`` or explain why it was refused.

        Eligibility is resolved again here rather than trusted from page load.
        The receipt's unique index settles concurrent duplicate submissions:
        the losing write is reported as ``ALREADY_SUBMITTED`` and not retried.
        """
        user_id = user.user_id
        department_id = user.department_id
        role = user.role

        survey, verdict = await self.eligibility.resolve_by_id(user, survey_id)
        if not verdict.can_submit:
            return SubmissionOutcome.rejected(
                SubmissionError(verdict.reason.value),
                submitted_at=verdict.submitted_at,
            )

        questions = survey.ordered_questions()
        if len(answers) != len(questions) or time_spent is None or time_spent < 0:
            logger.info(
                f"Malformed submission for survey {survey_id}: "
                f"{len(answers)} answers for {len(questions)} questions"
            )
            return SubmissionOutcome.rejected(SubmissionError.MALFORMED_SUBMISSION)

        values, violations = validate_answers(
            questions,
            answers,
            rating_range=(self.settings.rating_min, self.settings.rating_max),
        )
        if violations:
            return SubmissionOutcome.rejected(SubmissionError.INVALID_ANSWERS, violations=violations)

        now = self.clock()
        response = self._build_response(
            survey, questions, values, requested_anonymous, time_spent, department_id, role, user_id, now
        )
        # Slot and time are drawn independently of the response row.
        receipt = SurveySubmissionReceipt(
            receipt_id=uuid.uuid4(),
            user_id=user_id,
            survey_id=survey.survey_id,
            submission_slot=uuid.uuid4().hex if survey.allow_multiple_submissions else SINGLE_SUBMISSION_SLOT,
            submitted_at=now,
        )

        try:
            response_id = await self.repository.insert_response(response, receipt)
        except DuplicateSubmissionError:
            logger.info(f"Rejected concurrent duplicate submission for survey {survey_id}")
            submitted_at = await self.repository.find_latest_submission(user_id, survey_id)
            return SubmissionOutcome.rejected(
                SubmissionError.ALREADY_SUBMITTED, submitted_at=ensure_utc(submitted_at)
            )

        if response.is_anonymous:
            logger.info(f"Stored anonymous response {response_id} for survey {survey_id}")
        else:
            logger.info(f"Stored response {response_id} for survey {survey_id} from user {user_id}")
        return SubmissionOutcome(accepted=True, response_id=response_id, submitted_at=now)

    def _build_response(
        self,
        survey: Survey,
        questions: Sequence[SurveyQuestion],
        values: Sequence[Any],
        requested_anonymous: bool,
        time_spent: int,
        department_id: Optional[UUID],
        role: Optional[str],
        user_id: UUID,
        now: datetime,
    ) -> SurveyResponse:
        effective_anonymous = bool(survey.is_anonymous or requested_anonymous)
        # Anonymous responses keep only the day so they cannot be matched to a receipt by time.
        submitted_at = start_of_utc_day(now) if effective_anonymous else now
        return SurveyResponse(
            response_id=uuid.uuid4(),
            survey_id=survey.survey_id,
            respondent_id=None if effective_anonymous else user_id,
            is_anonymous=effective_anonymous,
            answers=snapshot_answers(questions, values),
            submitted_at=submitted_at,
            time_spent=int(time_spent),
            # Kept on anonymous responses too, for department/role analytics.
            submitter_department_id=department_id,
            submitter_role=role,
        )
