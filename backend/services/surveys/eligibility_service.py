"""Single source of truth for whether a user can see or take a survey.

Listing, detail, take and submit all go through ``resolve_eligibility`` so the
four entry points cannot drift apart. Verdicts are never stored.

Two questions are answered separately:

* ``visible``: the survey may be shown to the user, including in their history
  after they completed it or after it closed.
* ``can_submit``: a new response would be accepted right now.

HR and admin users skip audience targeting but are held to the
one-response rule like everyone else.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional, Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import get_settings, role_in
from backend.models.survey import Survey
from backend.services.surveys.audience_matcher import matches_audience
from backend.services.surveys.codes import EligibilityReason
from backend.services.surveys.response_repository import ResponseRepository
from backend.services.surveys.submission_window import is_window_open
from backend.utils.datetime_helpers import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class SurveyParticipant(Protocol):
    user_id: UUID
    role: str
    department_id: Optional[UUID]


@dataclass(frozen=True)
class EligibilityVerdict:
    """Visibility and submission verdict for one (user, survey) pair."""

    visible: bool
    can_submit: bool = False
    reason: Optional[EligibilityReason] = None
    has_submitted: bool = False
    submitted_at: Optional[datetime] = None

    @classmethod
    def not_found(cls) -> "EligibilityVerdict":
        return cls(visible=False, reason=EligibilityReason.NOT_FOUND)


def resolve_eligibility(
    user: SurveyParticipant,
    survey: Optional[Survey],
    prior_submitted_at: Optional[datetime],
    now: datetime,
    *,
    elevated_roles: Iterable[str],
) -> EligibilityVerdict:
    """Compute the verdict from already-loaded facts. Pure."""
    if survey is None:
        return EligibilityVerdict.not_found()

    role = (user.role or "").strip().lower()
    if not role_in(role, elevated_roles) and not matches_audience(
        survey.target_departments, survey.target_roles, role, user.department_id
    ):
        return EligibilityVerdict(visible=False, reason=EligibilityReason.NOT_TARGETED)

    has_submitted = prior_submitted_at is not None
    submitted_at = ensure_utc(prior_submitted_at)

    if has_submitted and not survey.allow_multiple_submissions:
        return EligibilityVerdict(
            visible=True,
            can_submit=False,
            reason=EligibilityReason.ALREADY_SUBMITTED,
            has_submitted=True,
            submitted_at=submitted_at,
        )

    if not is_window_open(survey.start_date, survey.end_date, survey.is_active, now):
        return EligibilityVerdict(
            visible=True,
            can_submit=False,
            reason=EligibilityReason.NOT_OPEN,
            has_submitted=has_submitted,
            submitted_at=submitted_at,
        )

    return EligibilityVerdict(
        visible=True,
        can_submit=True,
        has_submitted=has_submitted,
        submitted_at=submitted_at,
    )


class EligibilityService:
    """Loads the facts a verdict needs and resolves it."""

    def __init__(
        self,
        db: AsyncSession,
        repository: ResponseRepository | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.repository = repository or ResponseRepository(db)
        self.clock = clock
        self.settings = get_settings()

    async def resolve(self, user: SurveyParticipant, survey: Optional[Survey]) -> EligibilityVerdict:
        if survey is None:
            return EligibilityVerdict.not_found()
        prior = await self.repository.find_latest_submission(user.user_id, survey.survey_id)
        return resolve_eligibility(
            user, survey, prior, self.clock(), elevated_roles=self.settings.elevated_roles
        )

    async def resolve_by_id(
        self, user: SurveyParticipant, survey_id: UUID
    ) -> tuple[Optional[Survey], EligibilityVerdict]:
        survey = await self.repository.find_survey_by_id(survey_id)
        if survey is None:
            logger.debug(f"Survey {survey_id} not found for eligibility check")
        verdict = await self.resolve(user, survey)
        return survey, verdict

    async def resolve_many(
        self, user: SurveyParticipant, surveys: Iterable[Survey]
    ) -> list[tuple[Survey, EligibilityVerdict]]:
        """Resolve a batch of surveys with a single submission lookup."""
        surveys = list(surveys)
        submitted = await self.repository.latest_submissions_for_user(
            user.user_id, [survey.survey_id for survey in surveys]
        )
        now = self.clock()
        return [
            (
                survey,
                resolve_eligibility(
                    user,
                    survey,
                    submitted.get(survey.survey_id),
                    now,
                    elevated_roles=self.settings.elevated_roles,
                ),
            )
            for survey in surveys
        ]
