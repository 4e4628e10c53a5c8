"""Survey listing for participants and survey authoring."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Iterable, Optional
from uuid import UUID

from sqlalchemy import and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import get_settings
from backend.models.base import QuestionType, SurveyCategory, UserRole
from backend.models.survey import Survey, SurveyQuestion
from backend.models.survey_response import SurveyResponse, SurveySubmissionReceipt
from backend.models.user import User
from backend.services.surveys.eligibility_service import (
    EligibilityService,
    EligibilityVerdict,
    SurveyParticipant,
)
from backend.services.surveys.response_repository import ResponseRepository
from backend.services.surveys.submission_window import is_window_open
from backend.services.user_service import UserService
from backend.utils.datetime_helpers import ensure_utc, utc_now

logger = logging.getLogger(__name__)

# Changing these after responses exist would change what stored answers mean.
STRUCTURAL_FIELDS = frozenset({"questions", "start_date", "end_date", "category"})
EDITABLE_FIELDS = STRUCTURAL_FIELDS | frozenset({
    "title",
    "description",
    "target_departments",
    "target_roles",
    "is_active",
    "is_anonymous",
    "settings",
    "estimated_time",
    "tags",
})


class SurveyServiceError(RuntimeError):
    """Raised when a survey authoring request is refused."""


def department_scope(viewer: User, department_id: Optional[UUID] = None):
    """Filter on the submitter department a viewer may report on, or None.

    Managers are held to their own department (responses recorded without one
    when they have none); hr and admin may pass any ``department_id``.
    """
    column = SurveyResponse.submitter_department_id
    if (viewer.role or "").lower() == UserRole.MANAGER.value:
        if viewer.department_id is None:
            return column.is_(None)
        return column == viewer.department_id
    if department_id is not None:
        return column == department_id
    return None


def build_questions(raw_questions: Iterable[Any]) -> list[dict[str, Any]]:
    """Validate question drafts and assign 1-based orders by position."""
    questions: list[dict[str, Any]] = []
    for index, raw in enumerate(raw_questions or [], start=1):
        data = raw if isinstance(raw, dict) else raw.model_dump()
        text = str(data.get("text") or "").strip()
        if not text:
            raise SurveyServiceError("question_text_required")
        try:
            question_type = QuestionType(data.get("type"))
        except ValueError as exc:
            raise SurveyServiceError("invalid_question_type") from exc

        options = [str(option) for option in data.get("options") or []]
        if question_type.uses_options:
            if not options:
                raise SurveyServiceError("options_required")
            if len(set(options)) != len(options):
                raise SurveyServiceError("duplicate_options")
        else:
            options = []

        question = SurveyQuestion(
            text=text,
            type=question_type,
            order=index,
            options=tuple(options),
            required=bool(data.get("required", False)),
        )
        questions.append(question.to_dict())

    if not questions:
        raise SurveyServiceError("questions_required")
    return questions


class SurveyService:
    """Participant-facing survey listing plus create/update/delete for authors."""

    def __init__(
        self,
        db: AsyncSession,
        repository: ResponseRepository | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.settings = get_settings()
        self.clock = clock
        self.repository = repository or ResponseRepository(db)
        self.eligibility = EligibilityService(db, self.repository, clock=clock)
        self.user_service = UserService(db)

    # ------------------------------------------------------------------
    # Participant views
    # ------------------------------------------------------------------
    async def list_surveys_for_user(
        self,
        user: SurveyParticipant,
        category: Optional[str] = None,
        open_only: bool = False,
    ) -> list[tuple[Survey, EligibilityVerdict]]:
        """Surveys the user can see, each with its verdict.

        Completed and closed surveys stay in the list so they can be shown as
        history; ``open_only`` keeps only surveys whose window is open now.
        """
        query = select(Survey).order_by(Survey.created_at.desc())
        if category:
            query = query.where(Survey.category == category)

        result = await self.db.execute(query)
        surveys = result.scalars().all()

        resolved = await self.eligibility.resolve_many(user, surveys)
        visible = [(survey, verdict) for survey, verdict in resolved if verdict.visible]
        if open_only:
            now = self.clock()
            visible = [
                (survey, verdict)
                for survey, verdict in visible
                if is_window_open(survey.start_date, survey.end_date, survey.is_active, now)
            ]
        return visible

    async def get_survey_for_user(
        self, user: SurveyParticipant, survey_id: UUID
    ) -> tuple[Optional[Survey], EligibilityVerdict]:
        """The survey and its verdict; the survey is None unless visible."""
        survey, verdict = await self.eligibility.resolve_by_id(user, survey_id)
        if not verdict.visible:
            return None, verdict
        return survey, verdict

    # ------------------------------------------------------------------
    # Authoring
    # ------------------------------------------------------------------
    def _require_author(self, author: User) -> None:
        if (author.role or "").lower() not in self.settings.survey_author_roles:
            raise SurveyServiceError("forbidden")

    async def _validate_audience(self, departments: Iterable | None, roles: Iterable | None) -> tuple[list, list]:
        department_ids: list[str] = []
        for value in departments or []:
            try:
                department_id = UUID(str(value))
            except ValueError as exc:
                raise SurveyServiceError("unknown_department") from exc
            if not await self.user_service.department_exists(department_id):
                raise SurveyServiceError("unknown_department")
            department_ids.append(str(department_id))

        valid_roles = {role.value for role in UserRole}
        role_tags: list[str] = []
        for value in roles or []:
            role = str(value).strip().lower()
            if role not in valid_roles:
                raise SurveyServiceError("invalid_role")
            if role not in role_tags:
                role_tags.append(role)
        return department_ids, role_tags

    @staticmethod
    def _validate_category(category: Any) -> str:
        try:
            return SurveyCategory(category).value
        except ValueError as exc:
            raise SurveyServiceError("invalid_category") from exc

    @staticmethod
    def _validate_dates(start_date: datetime, end_date: datetime) -> None:
        if ensure_utc(end_date) <= ensure_utc(start_date):
            raise SurveyServiceError("invalid_dates")

    async def create_survey(
        self,
        author: User,
        *,
        title: str,
        category: str,
        questions: Iterable[Any],
        start_date: datetime,
        end_date: datetime,
        description: Optional[str] = None,
        target_departments: Iterable | None = None,
        target_roles: Iterable | None = None,
        is_active: bool = True,
        is_anonymous: bool = False,
        settings: Optional[dict[str, Any]] = None,
        estimated_time: int = 5,
        tags: Iterable[str] | None = None,
    ) -> Survey:
        self._require_author(author)
        if not (title or "").strip():
            raise SurveyServiceError("title_required")
        self._validate_dates(start_date, end_date)
        department_ids, role_tags = await self._validate_audience(target_departments, target_roles)

        survey = Survey(
            survey_id=uuid.uuid4(),
            title=title.strip(),
            description=description,
            category=self._validate_category(category),
            questions=build_questions(questions),
            target_departments=department_ids,
            target_roles=role_tags,
            is_active=is_active,
            is_anonymous=is_anonymous,
            start_date=ensure_utc(start_date),
            end_date=ensure_utc(end_date),
            settings={"allowMultipleSubmissions": bool((settings or {}).get("allowMultipleSubmissions", False))},
            created_by=author.user_id,
            estimated_time=estimated_time,
            tags=[tag.strip() for tag in tags or [] if tag and tag.strip()],
        )
        self.db.add(survey)
        await self.db.commit()
        await self.db.refresh(survey)

        logger.info(
            f"Survey {survey.survey_id} created by {author.user_id} "
            f"with {len(survey.questions)} questions"
        )
        return survey

    async def update_survey(self, author: User, survey_id: UUID, changes: dict[str, Any]) -> Survey:
        """Apply ``changes`` to a survey.

        Only the creator or an admin may edit. Structural fields are frozen
        once any response exists.
        """
        survey = await self.repository.find_survey_by_id(survey_id)
        if survey is None:
            raise SurveyServiceError("not_found")
        self._require_author(author)
        if survey.created_by != author.user_id and author.role != UserRole.ADMIN.value:
            raise SurveyServiceError("forbidden")

        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise SurveyServiceError("invalid_fields")

        if STRUCTURAL_FIELDS & set(changes) and await self.repository.count_responses(survey.survey_id) > 0:
            raise SurveyServiceError("survey_has_responses")

        if "title" in changes:
            if not (changes["title"] or "").strip():
                raise SurveyServiceError("title_required")
            survey.title = changes["title"].strip()
        if "description" in changes:
            survey.description = changes["description"]
        if "category" in changes:
            survey.category = self._validate_category(changes["category"])
        if "questions" in changes:
            survey.questions = build_questions(changes["questions"])
        if "start_date" in changes or "end_date" in changes:
            start_date = changes.get("start_date", survey.start_date)
            end_date = changes.get("end_date", survey.end_date)
            self._validate_dates(start_date, end_date)
            survey.start_date = ensure_utc(start_date)
            survey.end_date = ensure_utc(end_date)
        if "target_departments" in changes or "target_roles" in changes:
            department_ids, role_tags = await self._validate_audience(
                changes.get("target_departments", survey.target_departments),
                changes.get("target_roles", survey.target_roles),
            )
            survey.target_departments = department_ids
            survey.target_roles = role_tags
        if "is_active" in changes:
            survey.is_active = bool(changes["is_active"])
        if "is_anonymous" in changes:
            survey.is_anonymous = bool(changes["is_anonymous"])
        if "settings" in changes:
            survey.settings = {
                "allowMultipleSubmissions": bool((changes["settings"] or {}).get("allowMultipleSubmissions", False))
            }
        if "estimated_time" in changes:
            survey.estimated_time = changes["estimated_time"]
        if "tags" in changes:
            survey.tags = [tag.strip() for tag in changes["tags"] or [] if tag and tag.strip()]

        await self.db.commit()
        await self.db.refresh(survey)
        logger.info(f"Survey {survey.survey_id} updated by {author.user_id}: {sorted(changes)}")
        return survey

    async def delete_survey(self, author: User, survey_id: UUID) -> None:
        if not self.settings.is_elevated_role(author.role):
            raise SurveyServiceError("forbidden")
        survey = await self.repository.find_survey_by_id(survey_id)
        if survey is None:
            raise SurveyServiceError("not_found")
        if await self.repository.count_responses(survey.survey_id) > 0:
            raise SurveyServiceError("survey_has_responses")

        await self.db.execute(
            delete(SurveySubmissionReceipt).where(SurveySubmissionReceipt.survey_id == survey.survey_id)
        )
        await self.db.delete(survey)
        await self.db.commit()
        logger.info(f"Survey {survey_id} deleted by {author.user_id}")

    # ------------------------------------------------------------------
    # Stored responses
    # ------------------------------------------------------------------
    async def list_survey_responses(
        self, viewer: User, survey_id: UUID
    ) -> tuple[Survey, list[SurveyResponse], int]:
        """Most recent responses to a survey and how many it has in total.

        Only the newest ``responses_page_limit`` rows are returned.
        """
        self._require_author(viewer)
        survey = await self.repository.find_survey_by_id(survey_id)
        if survey is None:
            raise SurveyServiceError("not_found")

        result = await self.db.execute(
            select(SurveyResponse)
            .where(SurveyResponse.survey_id == survey.survey_id)
            .order_by(SurveyResponse.submitted_at.desc())
            .limit(self.settings.responses_page_limit)
        )
        total = await self.repository.count_responses(survey.survey_id)
        return survey, list(result.scalars().all()), total

    async def list_all_responses(
        self,
        viewer: User,
        survey_id: Optional[UUID] = None,
        department_id: Optional[UUID] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[tuple[SurveyResponse, Survey]], int]:
        """Responses across surveys, newest first, for hr/admin/manager viewers."""
        self._require_author(viewer)
        page = max(1, page)
        limit = max(1, min(limit, self.settings.responses_page_limit))

        conditions = []
        scope = department_scope(viewer, department_id)
        if scope is not None:
            conditions.append(scope)
        if survey_id is not None:
            conditions.append(SurveyResponse.survey_id == survey_id)
        if start_date is not None:
            conditions.append(SurveyResponse.submitted_at >= ensure_utc(start_date))
        if end_date is not None:
            conditions.append(SurveyResponse.submitted_at <= ensure_utc(end_date))
        where = and_(*conditions) if conditions else None

        count_query = select(func.count()).select_from(SurveyResponse)
        query = (
            select(SurveyResponse, Survey)
            .join(Survey, SurveyResponse.survey_id == Survey.survey_id)
            .order_by(SurveyResponse.submitted_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        if where is not None:
            count_query = count_query.where(where)
            query = query.where(where)

        total = int((await self.db.execute(count_query)).scalar_one())
        result = await self.db.execute(query)
        return [(response, survey) for response, survey in result.all()], total

    async def list_my_responses(
        self, user: SurveyParticipant, page: int = 1, limit: int = 10
    ) -> tuple[list[tuple[SurveyResponse, Survey]], int]:
        """The user's own attributed responses, newest first.

        Anonymous responses carry no respondent and so never appear here.
        """
        page = max(1, page)
        limit = max(1, min(limit, self.settings.responses_page_limit))

        total_result = await self.db.execute(
            select(func.count()).select_from(SurveyResponse).where(SurveyResponse.respondent_id == user.user_id)
        )
        total = int(total_result.scalar_one())

        result = await self.db.execute(
            select(SurveyResponse, Survey)
            .join(Survey, SurveyResponse.survey_id == Survey.survey_id)
            .where(SurveyResponse.respondent_id == user.user_id)
            .order_by(SurveyResponse.submitted_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return [(response, survey) for response, survey in result.all()], total
