"""Pydantic schemas for survey endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import Field

from backend.models.base import QuestionType, SurveyCategory, UserRole
from backend.schemas.base import BaseSchema
from backend.schemas.feedback import Pagination


class SurveySettingsPayload(BaseSchema):
    """Per-survey behaviour switches."""

    allowMultipleSubmissions: bool = False


class QuestionDraft(BaseSchema):
    """Question as written by a survey author; order comes from position."""

    text: str = Field(..., min_length=1, max_length=1000)
    type: QuestionType
    options: list[str] = Field(default_factory=list)
    required: bool = False


class QuestionRecord(BaseSchema):
    text: str
    type: QuestionType
    options: list[str] = Field(default_factory=list)
    required: bool = False
    order: int


class SurveyCreate(BaseSchema):
    """Survey authoring payload."""

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    category: SurveyCategory
    questions: list[QuestionDraft] = Field(..., min_length=1)
    target_departments: list[UUID] = Field(default_factory=list)
    target_roles: list[UserRole] = Field(default_factory=list)
    is_active: bool = True
    is_anonymous: bool = False
    start_date: datetime
    end_date: datetime
    settings: SurveySettingsPayload = Field(default_factory=SurveySettingsPayload)
    estimated_time: int = Field(5, ge=1, le=600)
    tags: list[str] = Field(default_factory=list)


class SurveyUpdate(BaseSchema):
    """Partial survey update; only fields that are sent are applied."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[SurveyCategory] = None
    questions: Optional[list[QuestionDraft]] = Field(None, min_length=1)
    target_departments: Optional[list[UUID]] = None
    target_roles: Optional[list[UserRole]] = None
    is_active: Optional[bool] = None
    is_anonymous: Optional[bool] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    settings: Optional[SurveySettingsPayload] = None
    estimated_time: Optional[int] = Field(None, ge=1, le=600)
    tags: Optional[list[str]] = None


class SurveyRecord(BaseSchema):
    """Survey as returned to clients."""

    survey_id: UUID
    title: str
    description: Optional[str] = None
    category: str
    questions: list[QuestionRecord]
    target_departments: list[UUID] = Field(default_factory=list)
    target_roles: list[str] = Field(default_factory=list)
    is_active: bool
    is_anonymous: bool
    start_date: datetime
    end_date: datetime
    settings: dict[str, Any] = Field(default_factory=dict)
    created_by: Optional[UUID] = None
    estimated_time: int
    tags: list[str] = Field(default_factory=list)
    created_at: datetime


class EligibilityRecord(BaseSchema):
    """Visibility and submission verdict for the current user."""

    visible: bool
    can_submit: bool
    reason: Optional[str] = None
    has_submitted: bool
    submitted_at: Optional[datetime] = None


class SurveyWithEligibility(BaseSchema):
    survey: SurveyRecord
    eligibility: EligibilityRecord


class SurveyListResponse(BaseSchema):
    """Envelope for the survey listing endpoint."""

    surveys: list[SurveyWithEligibility]
    total: int
    pagination: Pagination
