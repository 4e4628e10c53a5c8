"""Validation of submitted answers against survey question definitions.

``validate_answer`` never raises: malformed input of any shape comes back as a
failed ``AnswerCheck`` with a ``ViolationCode``. Successful checks carry the
value to store, normalized per question type (checkbox selections are
de-duplicated, integral strings for rating/scale become ints).

Scale questions are only checked for being integers. The 1-10 range shown by
the survey UI is not enforced here.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Sequence

from pydantic import HttpUrl, TypeAdapter, ValidationError

from backend.models.base import QuestionType
from backend.models.survey import SurveyQuestion
from backend.services.surveys.codes import ViolationCode

DEFAULT_RATING_RANGE = (1, 5)

EMAIL_PATTERN = re.compile(
    r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)+$"
)
INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
MAX_EMAIL_LENGTH = 254

_http_url_adapter = TypeAdapter(HttpUrl)


@dataclass(frozen=True)
class AnswerCheck:
    """Result of checking one answer."""

    ok: bool
    value: Any = None
    code: ViolationCode | None = None
    message: str = ""


@dataclass(frozen=True)
class Violation:
    """A failed answer, positioned by question."""

    question_index: int
    question_order: int
    question: str
    code: ViolationCode
    message: str


def _passed(value: Any) -> AnswerCheck:
    return AnswerCheck(ok=True, value=value)


def _failed(code: ViolationCode, message: str) -> AnswerCheck:
    return AnswerCheck(ok=False, code=code, message=message)


def is_blank(value: Any) -> bool:
    """Whether an answer counts as not provided."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def _coerce_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and INTEGER_PATTERN.match(value.strip()):
        return int(value.strip())
    return None


def _check_text(question: SurveyQuestion, value: Any, **_: Any) -> AnswerCheck:
    if not isinstance(value, str):
        return _failed(ViolationCode.INVALID_FORMAT, "Answer must be text")
    return _passed(value)


def _check_multiple(question: SurveyQuestion, value: Any, **_: Any) -> AnswerCheck:
    if not isinstance(value, str) or value not in question.options:
        return _failed(ViolationCode.INVALID_OPTION, "Answer must be one of the listed options")
    return _passed(value)


def _check_checkbox(question: SurveyQuestion, value: Any, **_: Any) -> AnswerCheck:
    if not isinstance(value, (list, tuple)):
        return _failed(ViolationCode.INVALID_OPTION, "Answer must be a list of options")

    selected: list[str] = []
    for item in value:
        if not isinstance(item, str) or item not in question.options:
            return _failed(ViolationCode.INVALID_OPTION, f"{item!r} is not one of the listed options")
        if item not in selected:
            selected.append(item)
    return _passed(selected)


def _check_rating(question: SurveyQuestion, value: Any, *, rating_range: tuple[int, int], **_: Any) -> AnswerCheck:
    number = _coerce_int(value)
    low, high = rating_range
    if number is None or not low <= number <= high:
        return _failed(ViolationCode.INVALID_FORMAT, f"Rating must be a whole number from {low} to {high}")
    return _passed(number)


def _check_scale(question: SurveyQuestion, value: Any, **_: Any) -> AnswerCheck:
    number = _coerce_int(value)
    if number is None:
        return _failed(ViolationCode.INVALID_FORMAT, "Scale answer must be a whole number")
    return _passed(number)


def _check_number(question: SurveyQuestion, value: Any, **_: Any) -> AnswerCheck:
    if isinstance(value, bool):
        return _failed(ViolationCode.INVALID_FORMAT, "Answer must be a number")
    if isinstance(value, str):
        text = value.strip()
        if INTEGER_PATTERN.match(text):
            return _passed(int(text))
        try:
            value = float(text)
        except ValueError:
            return _failed(ViolationCode.INVALID_FORMAT, "Answer must be a number")
    if isinstance(value, int):
        return _passed(value)
    if isinstance(value, float) and math.isfinite(value):
        return _passed(value)
    return _failed(ViolationCode.INVALID_FORMAT, "Answer must be a number")


def _check_date(question: SurveyQuestion, value: Any, **_: Any) -> AnswerCheck:
    if isinstance(value, (date, datetime)):
        return _passed(value.isoformat())
    if not isinstance(value, str):
        return _failed(ViolationCode.INVALID_FORMAT, "Answer must be an ISO 8601 date")

    text = value.strip()
    for parser in (date.fromisoformat, datetime.fromisoformat):
        try:
            parser(text)
        except ValueError:
            continue
        return _passed(text)
    return _failed(ViolationCode.INVALID_FORMAT, "Answer must be an ISO 8601 date")


def _check_email(question: SurveyQuestion, value: Any, **_: Any) -> AnswerCheck:
    if not isinstance(value, str):
        return _failed(ViolationCode.INVALID_FORMAT, "Answer must be an email address")
    text = value.strip()
    if len(text) > MAX_EMAIL_LENGTH or not EMAIL_PATTERN.match(text):
        return _failed(ViolationCode.INVALID_FORMAT, "Answer must be an email address")
    return _passed(text)


def _check_url(question: SurveyQuestion, value: Any, **_: Any) -> AnswerCheck:
    if not isinstance(value, str):
        return _failed(ViolationCode.INVALID_FORMAT, "Answer must be a URL")
    text = value.strip()
    try:
        _http_url_adapter.validate_python(text)
    except ValidationError:
        return _failed(ViolationCode.INVALID_FORMAT, "Answer must be a URL")
    return _passed(text)


ANSWER_CHECKERS: dict[QuestionType, Callable[..., AnswerCheck]] = {
    QuestionType.TEXT: _check_text,
    QuestionType.TEXTAREA: _check_text,
    QuestionType.MULTIPLE: _check_multiple,
    QuestionType.CHECKBOX: _check_checkbox,
    QuestionType.RATING: _check_rating,
    QuestionType.SCALE: _check_scale,
    QuestionType.NUMBER: _check_number,
    QuestionType.DATE: _check_date,
    QuestionType.EMAIL: _check_email,
    QuestionType.URL: _check_url,
}


def validate_answer(
    question: SurveyQuestion,
    value: Any,
    *,
    rating_range: tuple[int, int] = DEFAULT_RATING_RANGE,
) -> AnswerCheck:
    """Check one answer against its question."""
    if is_blank(value):
        if question.required:
            return _failed(ViolationCode.MISSING_REQUIRED, "An answer is required")
        return _passed(value)

    checker = ANSWER_CHECKERS[question.type]
    try:
        return checker(question, value, rating_range=rating_range)
    except (TypeError, ValueError, OverflowError):
        return _failed(ViolationCode.INVALID_FORMAT, "Answer could not be read")


def validate_answers(
    questions: Sequence[SurveyQuestion],
    answers: Sequence[Any],
    *,
    rating_range: tuple[int, int] = DEFAULT_RATING_RANGE,
) -> tuple[list[Any], list[Violation]]:
    """Check positionally aligned answers, collecting every violation.

    Returns the normalized values alongside the violations; the values are
    only meaningful when the violation list is empty.
    """
    values: list[Any] = []
    violations: list[Violation] = []
    for index, (question, answer) in enumerate(zip(questions, answers)):
        check = validate_answer(question, answer, rating_range=rating_range)
        if check.ok:
            values.append(check.value)
            continue
        values.append(None)
        violations.append(
            Violation(
                question_index=index,
                question_order=question.order,
                question=question.text,
                code=check.code,
                message=check.message,
            )
        )
    return values, violations
