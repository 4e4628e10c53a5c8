"""Router handling survey feedback submission and reporting."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from backend.database import get_db
from backend.dependencies import get_current_user
from backend.models.base import SurveyCategory
from backend.models.user import User
from backend.schemas.base import serialize_datetime_utc
from backend.schemas.feedback import (
    FeedbackAnalytics,
    FeedbackSubmission,
    FeedbackSubmissionResponse,
    MyResponseList,
    MyResponseRecord,
    Pagination,
    ResponseWithSurveyList,
    ResponseWithSurveyRecord,
    SurveyResponseRecord,
    ViolationRecord,
)
from backend.services.surveys import (
    AnalyticsService,
    SubmissionError,
    SubmissionService,
    SurveyService,
    SurveyServiceError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/feedback")

REJECTION_STATUS = {
    SubmissionError.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    SubmissionError.NOT_TARGETED: status.HTTP_403_FORBIDDEN,
    SubmissionError.NOT_OPEN: status.HTTP_403_FORBIDDEN,
    SubmissionError.ALREADY_SUBMITTED: status.HTTP_409_CONFLICT,
    SubmissionError.MALFORMED_SUBMISSION: status.HTTP_400_BAD_REQUEST,
    SubmissionError.INVALID_ANSWERS: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


@router.post("", response_model=FeedbackSubmissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    submission: FeedbackSubmission,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Store a survey response for the authenticated user."""
    outcome = await SubmissionService(db).submit_response(
        user,
        submission.survey_id,
        [answer.value for answer in submission.answers],
        requested_anonymous=submission.is_anonymous,
        time_spent=submission.time_spent,
    )

    if outcome.accepted:
        return FeedbackSubmissionResponse(
            status="submitted",
            response_id=outcome.response_id,
            submitted_at=outcome.submitted_at,
        )

    detail = "survey_not_found" if outcome.error == SubmissionError.NOT_FOUND else outcome.error.value
    content: dict = {"detail": detail}
    if outcome.violations:
        content["violations"] = [
            ViolationRecord(
                question_index=violation.question_index,
                question_order=violation.question_order,
                question=violation.question,
                code=violation.code.value,
                message=violation.message,
            ).model_dump()
            for violation in outcome.violations
        ]
    if outcome.error == SubmissionError.ALREADY_SUBMITTED:
        content["has_submitted"] = True
        content["submitted_at"] = serialize_datetime_utc(outcome.submitted_at) if outcome.submitted_at else None

    return JSONResponse(
        status_code=REJECTION_STATUS.get(outcome.error, status.HTTP_400_BAD_REQUEST),
        content=content,
    )


@router.get("/my-responses", response_model=MyResponseList)
async def list_my_responses(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MyResponseList:
    """The caller's own attributed responses. Anonymous ones are not linked and never listed."""
    rows, total = await SurveyService(db).list_my_responses(user, page=page, limit=limit)
    return MyResponseList(
        responses=[
            MyResponseRecord(
                response_id=response.response_id,
                survey_id=survey.survey_id,
                survey_title=survey.title,
                survey_category=survey.category,
                answers=response.answers,
                submitted_at=response.submitted_at,
                time_spent=response.time_spent,
            )
            for response, survey in rows
        ],
        pagination=Pagination.for_page(page, limit, total),
    )


@router.get("/all-responses", response_model=ResponseWithSurveyList)
async def list_all_responses(
    survey_id: Optional[UUID] = Query(default=None),
    department_id: Optional[UUID] = Query(default=None),
    start_date: Optional[datetime] = Query(default=None),
    end_date: Optional[datetime] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ResponseWithSurveyList:
    """Responses across all surveys (hr/admin/manager only, managers see their department)."""
    try:
        rows, total = await SurveyService(db).list_all_responses(
            user,
            survey_id=survey_id,
            department_id=department_id,
            start_date=start_date,
            end_date=end_date,
            page=page,
            limit=limit,
        )
    except SurveyServiceError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    return ResponseWithSurveyList(
        responses=[
            ResponseWithSurveyRecord(
                **SurveyResponseRecord.model_validate(response).model_dump(),
                survey_title=survey.title,
                survey_category=survey.category,
            )
            for response, survey in rows
        ],
        pagination=Pagination.for_page(page, limit, total),
    )


@router.get("/analytics", response_model=FeedbackAnalytics)
async def get_analytics(
    department_id: Optional[UUID] = Query(default=None),
    category: Optional[SurveyCategory] = Query(default=None),
    start_date: Optional[datetime] = Query(default=None),
    end_date: Optional[datetime] = Query(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> FeedbackAnalytics:
    """Response counts by category and month (hr/admin/manager only)."""
    try:
        return await AnalyticsService(db).get_feedback_analytics(
            user,
            department_id=department_id,
            category=category.value if category else None,
            start_date=start_date,
            end_date=end_date,
        )
    except SurveyServiceError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
