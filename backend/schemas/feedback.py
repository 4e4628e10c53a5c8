"""Pydantic schemas for feedback submission and reporting endpoints."""
from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import ConfigDict, Field

from backend.schemas.base import BaseSchema


class SubmittedAnswer(BaseSchema):
    """One answer, positionally aligned with the survey's questions."""

    value: Any = None


class FeedbackSubmission(BaseSchema):
    """Survey submission payload from the frontend."""

    survey_id: UUID
    answers: list[SubmittedAnswer]
    time_spent: int = Field(0, ge=0)
    is_anonymous: bool = False


class FeedbackSubmissionResponse(BaseSchema):
    """Response returned after an accepted submission."""

    status: str
    response_id: UUID
    submitted_at: datetime


class ViolationRecord(BaseSchema):
    question_index: int
    question_order: int
    question: str
    code: str
    message: str


class StoredAnswer(BaseSchema):
    """Answer as stored, with the question wording captured at submission."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    question: str
    question_type: str = Field(..., alias="questionType")
    answer: Any = None


class SurveyResponseRecord(BaseSchema):
    """Representation of a stored survey response."""

    response_id: UUID
    survey_id: UUID
    respondent_id: Optional[UUID] = None
    is_anonymous: bool
    answers: list[StoredAnswer]
    submitted_at: datetime
    time_spent: int
    submitter_department_id: Optional[UUID] = None
    submitter_role: Optional[str] = None


class SurveyResponseList(BaseSchema):
    """Envelope for the survey responses endpoint."""

    survey_id: UUID
    title: str
    responses: list[SurveyResponseRecord]
    total_responses: int


class MyResponseRecord(BaseSchema):
    response_id: UUID
    survey_id: UUID
    survey_title: str
    survey_category: str
    answers: list[StoredAnswer]
    submitted_at: datetime
    time_spent: int


class Pagination(BaseSchema):
    current: int
    pages: int
    total: int

    @classmethod
    def for_page(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(current=page, pages=max(1, math.ceil(total / limit)), total=total)


class MyResponseList(BaseSchema):
    responses: list[MyResponseRecord]
    pagination: Pagination


class ResponseWithSurveyRecord(SurveyResponseRecord):
    """A stored response listed across surveys."""

    survey_title: str
    survey_category: str


class ResponseWithSurveyList(BaseSchema):
    responses: list[ResponseWithSurveyRecord]
    pagination: Pagination


class CategoryCount(BaseSchema):
    category: str
    count: int


class MonthlyCategoryBucket(BaseSchema):
    category: str
    month: str
    count: int
    avg_time_spent: float


class FeedbackAnalytics(BaseSchema):
    """Aggregate response counts for hr/admin/manager dashboards."""

    total_responses: int
    by_category: list[CategoryCount]
    by_month: list[MonthlyCategoryBucket]
