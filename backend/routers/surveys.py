"""Router for survey listing, taking and authoring."""
from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from backend.database import get_db
from backend.dependencies import get_current_user
from backend.models.base import SurveyCategory
from backend.models.survey import Survey
from backend.models.user import User
from backend.schemas.base import serialize_datetime_utc
from backend.schemas.feedback import Pagination, SurveyResponseList, SurveyResponseRecord
from backend.schemas.survey import (
    EligibilityRecord,
    SurveyCreate,
    SurveyListResponse,
    SurveyRecord,
    SurveyUpdate,
    SurveyWithEligibility,
)
from backend.services.surveys import (
    EligibilityReason,
    EligibilityVerdict,
    SurveyService,
    SurveyServiceError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/surveys")

SERVICE_ERROR_STATUS = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "survey_has_responses": status.HTTP_409_CONFLICT,
}


def raise_for_service_error(exc: SurveyServiceError) -> None:
    code = str(exc)
    raise HTTPException(
        status_code=SERVICE_ERROR_STATUS.get(code, status.HTTP_400_BAD_REQUEST), detail=code
    ) from exc


def eligibility_record(verdict: EligibilityVerdict) -> EligibilityRecord:
    return EligibilityRecord(
        visible=verdict.visible,
        can_submit=verdict.can_submit,
        reason=verdict.reason.value if verdict.reason else None,
        has_submitted=verdict.has_submitted,
        submitted_at=verdict.submitted_at,
    )


def survey_with_eligibility(survey: Survey, verdict: EligibilityVerdict) -> SurveyWithEligibility:
    return SurveyWithEligibility(
        survey=SurveyRecord.model_validate(survey),
        eligibility=eligibility_record(verdict),
    )


@router.get("", response_model=SurveyListResponse)
async def list_surveys(
    category: Optional[SurveyCategory] = Query(default=None),
    open_only: bool = Query(default=False),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SurveyListResponse:
    """Surveys visible to the current user, annotated with submission status, newest first."""
    results = await SurveyService(db).list_surveys_for_user(
        user, category=category.value if category else None, open_only=open_only
    )
    offset = (page - 1) * limit
    return SurveyListResponse(
        surveys=[survey_with_eligibility(survey, verdict) for survey, verdict in results[offset:offset + limit]],
        total=len(results),
        pagination=Pagination.for_page(page, limit, len(results)),
    )


@router.post("", response_model=SurveyRecord, status_code=status.HTTP_201_CREATED)
async def create_survey(
    payload: SurveyCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SurveyRecord:
    try:
        survey = await SurveyService(db).create_survey(
            user,
            title=payload.title,
            description=payload.description,
            category=payload.category.value,
            questions=[question.model_dump() for question in payload.questions],
            target_departments=payload.target_departments,
            target_roles=[role.value for role in payload.target_roles],
            is_active=payload.is_active,
            is_anonymous=payload.is_anonymous,
            start_date=payload.start_date,
            end_date=payload.end_date,
            settings=payload.settings.model_dump(),
            estimated_time=payload.estimated_time,
            tags=payload.tags,
        )
    except SurveyServiceError as exc:
        raise_for_service_error(exc)
    return SurveyRecord.model_validate(survey)


@router.get("/{survey_id}", response_model=SurveyWithEligibility)
async def get_survey(
    survey_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SurveyWithEligibility:
    """Survey detail, including completed or closed surveys the user can see."""
    survey, verdict = await SurveyService(db).get_survey_for_user(user, survey_id)
    if verdict.reason == EligibilityReason.NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="survey_not_found")
    if survey is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=verdict.reason.value)
    return survey_with_eligibility(survey, verdict)


@router.get("/{survey_id}/take", response_model=SurveyWithEligibility)
async def take_survey(
    survey_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Survey detail for answering; refused unless a new submission would be accepted."""
    survey, verdict = await SurveyService(db).get_survey_for_user(user, survey_id)
    if verdict.reason == EligibilityReason.NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="survey_not_found")
    if verdict.reason == EligibilityReason.ALREADY_SUBMITTED:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "detail": "already_submitted",
                "has_submitted": True,
                "submitted_at": serialize_datetime_utc(verdict.submitted_at) if verdict.submitted_at else None,
            },
        )
    if survey is None or not verdict.can_submit:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=verdict.reason.value)
    return survey_with_eligibility(survey, verdict)


@router.put("/{survey_id}", response_model=SurveyRecord)
async def update_survey(
    survey_id: UUID,
    payload: SurveyUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SurveyRecord:
    changes = payload.model_dump(exclude_unset=True, mode="python")
    if "category" in changes and changes["category"] is not None:
        changes["category"] = changes["category"].value
    if "target_roles" in changes and changes["target_roles"] is not None:
        changes["target_roles"] = [role.value for role in changes["target_roles"]]
    try:
        survey = await SurveyService(db).update_survey(user, survey_id, changes)
    except SurveyServiceError as exc:
        raise_for_service_error(exc)
    return SurveyRecord.model_validate(survey)


@router.delete("/{survey_id}")
async def delete_survey(
    survey_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    try:
        await SurveyService(db).delete_survey(user, survey_id)
    except SurveyServiceError as exc:
        raise_for_service_error(exc)
    return {"status": "deleted"}


@router.get("/{survey_id}/responses", response_model=SurveyResponseList)
async def list_survey_responses(
    survey_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SurveyResponseList:
    """Stored responses for a survey (hr/admin/manager only)."""
    try:
        survey, responses, total = await SurveyService(db).list_survey_responses(user, survey_id)
    except SurveyServiceError as exc:
        raise_for_service_error(exc)
    return SurveyResponseList(
        survey_id=survey.survey_id,
        title=survey.title,
        responses=[SurveyResponseRecord.model_validate(response) for response in responses],
        total_responses=total,
    )
