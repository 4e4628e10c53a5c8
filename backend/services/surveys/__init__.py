"""Survey eligibility, submission and authoring services."""
from backend.services.surveys.analytics_service import AnalyticsService
from backend.services.surveys.audience_matcher import matches_audience
from backend.services.surveys.codes import EligibilityReason, SubmissionError, ViolationCode
from backend.services.surveys.eligibility_service import (
    EligibilityService,
    EligibilityVerdict,
    resolve_eligibility,
)
from backend.services.surveys.question_validator import (
    AnswerCheck,
    Violation,
    validate_answer,
    validate_answers,
)
from backend.services.surveys.response_repository import DuplicateSubmissionError, ResponseRepository
from backend.services.surveys.submission_service import SubmissionOutcome, SubmissionService
from backend.services.surveys.submission_window import is_window_open
from backend.services.surveys.survey_service import SurveyService, SurveyServiceError

__all__ = [
    "AnalyticsService",
    "AnswerCheck",
    "DuplicateSubmissionError",
    "EligibilityReason",
    "EligibilityService",
    "EligibilityVerdict",
    "ResponseRepository",
    "SubmissionError",
    "SubmissionOutcome",
    "SubmissionService",
    "SurveyService",
    "SurveyServiceError",
    "Violation",
    "ViolationCode",
    "is_window_open",
    "matches_audience",
    "resolve_eligibility",
    "validate_answer",
    "validate_answers",
]
