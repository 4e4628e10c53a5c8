"""Database models."""
from backend.models.department import Department
from backend.models.user import User
from backend.models.survey import Survey, SurveyQuestion
from backend.models.survey_response import (
    SINGLE_SUBMISSION_SLOT,
    SurveyResponse,
    SurveySubmissionReceipt,
)

__all__ = [
    "Department",
    "User",
    "Survey",
    "SurveyQuestion",
    "SurveyResponse",
    "SurveySubmissionReceipt",
    "SINGLE_SUBMISSION_SLOT",
]
