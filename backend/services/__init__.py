from backend.services.auth_service import AuthService, AuthError
from backend.services.user_service import UserService, UserServiceError

# Survey services
from backend.services.surveys import (
    AnalyticsService,
    EligibilityService,
    SubmissionService,
    SurveyService,
    SurveyServiceError,
)

__all__ = [
    "AuthService",
    "AuthError",
    "UserService",
    "UserServiceError",
    "AnalyticsService",
    "EligibilityService",
    "SubmissionService",
    "SurveyService",
    "SurveyServiceError",
]
