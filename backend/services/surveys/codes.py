"""Outcome codes shared by the eligibility and submission services.

Every code here is returned as data. ``DUPLICATE_WRITE`` only exists between the
repository and the submission service; callers see ``ALREADY_SUBMITTED``.
"""
from enum import Enum


class EligibilityReason(str, Enum):
    """Why a survey is hidden from a user or closed to a new submission."""
    NOT_FOUND = "not_found"
    NOT_TARGETED = "not_targeted"
    NOT_OPEN = "not_open"
    ALREADY_SUBMITTED = "already_submitted"


class SubmissionError(str, Enum):
    """Whole-submission rejection codes."""
    NOT_FOUND = "not_found"
    NOT_TARGETED = "not_targeted"
    NOT_OPEN = "not_open"
    ALREADY_SUBMITTED = "already_submitted"
    MALFORMED_SUBMISSION = "malformed_submission"
    INVALID_ANSWERS = "invalid_answers"
    DUPLICATE_WRITE = "duplicate_write"


class ViolationCode(str, Enum):
    """Per-answer validation failures."""
    MISSING_REQUIRED = "missing_required"
    INVALID_OPTION = "invalid_option"
    INVALID_FORMAT = "invalid_format"
