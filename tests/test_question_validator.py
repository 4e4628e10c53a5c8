"""Tests for answer validation against question definitions."""
import pytest

from backend.models.base import QuestionType
from backend.models.survey import SurveyQuestion
from backend.services.surveys import ViolationCode, validate_answer, validate_answers


def make_question(question_type: QuestionType, *, options=(), required=False, order=1, text="Question"):
    return SurveyQuestion(text=text, type=question_type, order=order, options=tuple(options), required=required)


class TestBlankAnswers:
    @pytest.mark.parametrize("blank", [None, "", "   ", []])
    def test_required_question_rejects_blank(self, blank):
        check = validate_answer(make_question(QuestionType.TEXT, required=True), blank)

        assert not check.ok
        assert check.code == ViolationCode.MISSING_REQUIRED

    @pytest.mark.parametrize("blank", [None, "", []])
    def test_optional_question_accepts_blank(self, blank):
        check = validate_answer(make_question(QuestionType.RATING), blank)

        assert check.ok

    def test_empty_checkbox_selection_counts_as_missing(self):
        question = make_question(QuestionType.CHECKBOX, options=["a", "b"], required=True)

        assert validate_answer(question, []).code == ViolationCode.MISSING_REQUIRED


class TestOptions:
    def test_multiple_choice_requires_exact_option(self):
        question = make_question(QuestionType.MULTIPLE, options=["Yes", "No"])

        assert validate_answer(question, "Yes").ok
        assert validate_answer(question, "yes").code == ViolationCode.INVALID_OPTION
        assert validate_answer(question, "Maybe").code == ViolationCode.INVALID_OPTION

    def test_checkbox_accepts_subset_and_deduplicates(self):
        question = make_question(QuestionType.CHECKBOX, options=["a", "b", "c"])

        check = validate_answer(question, ["a", "c", "a"])

        assert check.ok
        assert check.value == ["a", "c"]

    def test_checkbox_rejects_unknown_option(self):
        question = make_question(QuestionType.CHECKBOX, options=["a", "b"])

        assert validate_answer(question, ["a", "z"]).code == ViolationCode.INVALID_OPTION

    def test_checkbox_rejects_single_string(self):
        question = make_question(QuestionType.CHECKBOX, options=["a", "b"])

        assert validate_answer(question, "a").code == ViolationCode.INVALID_OPTION


class TestNumericTypes:
    @pytest.mark.parametrize("value,expected", [(1, 1), (5, 5), ("3", 3), (4.0, 4)])
    def test_rating_accepts_integers_in_range(self, value, expected):
        check = validate_answer(make_question(QuestionType.RATING), value)

        assert check.ok
        assert check.value == expected

    @pytest.mark.parametrize("value", [0, 6, 3.5, "three", True])
    def test_rating_rejects_out_of_range_or_non_integer(self, value):
        check = validate_answer(make_question(QuestionType.RATING), value)

        assert check.code == ViolationCode.INVALID_FORMAT

    def test_rating_respects_configured_range(self):
        question = make_question(QuestionType.RATING)

        assert validate_answer(question, 10, rating_range=(1, 10)).ok
        assert not validate_answer(question, 10).ok

    def test_scale_accepts_any_integer(self):
        question = make_question(QuestionType.SCALE)

        assert validate_answer(question, 42).value == 42
        assert validate_answer(question, "-3").value == -3
        assert validate_answer(question, 2.5).code == ViolationCode.INVALID_FORMAT

    @pytest.mark.parametrize("value", [3, -1.25, "12", "1e3"])
    def test_number_accepts_finite_numbers(self, value):
        assert validate_answer(make_question(QuestionType.NUMBER), value).ok

    @pytest.mark.parametrize("value", ["abc", float("nan"), float("inf"), "inf", False])
    def test_number_rejects_non_numbers(self, value):
        assert validate_answer(make_question(QuestionType.NUMBER), value).code == ViolationCode.INVALID_FORMAT


class TestFormattedText:
    @pytest.mark.parametrize("value", ["2026-03-01", "2026-03-01T09:30:00"])
    def test_date_accepts_iso_8601(self, value):
        assert validate_answer(make_question(QuestionType.DATE), value).ok

    @pytest.mark.parametrize("value", ["01/03/2026", "2026-13-01", 20260301])
    def test_date_rejects_other_formats(self, value):
        assert validate_answer(make_question(QuestionType.DATE), value).code == ViolationCode.INVALID_FORMAT

    def test_email(self):
        question = make_question(QuestionType.EMAIL)

        assert validate_answer(question, "jo.doe@example.com").ok
        assert validate_answer(question, "not-an-email").code == ViolationCode.INVALID_FORMAT
        assert validate_answer(question, "a@b").code == ViolationCode.INVALID_FORMAT

    def test_url(self):
        question = make_question(QuestionType.URL)

        assert validate_answer(question, "https://example.com/path?q=1").ok
        assert validate_answer(question, "example dot com").code == ViolationCode.INVALID_FORMAT

    def test_text_must_be_a_string(self):
        question = make_question(QuestionType.TEXTAREA)

        assert validate_answer(question, "Long answer\nover lines").ok
        assert validate_answer(question, {"nested": "object"}).code == ViolationCode.INVALID_FORMAT


def test_validate_answers_collects_every_violation_in_position_order():
    questions = [
        make_question(QuestionType.RATING, required=True, order=1, text="Rate us"),
        make_question(QuestionType.TEXT, order=2, text="Comments"),
        make_question(QuestionType.MULTIPLE, options=["x", "y"], required=True, order=3, text="Pick"),
    ]

    values, violations = validate_answers(questions, [None, "fine", "z"])

    assert [violation.question_index for violation in violations] == [0, 2]
    assert violations[0].code == ViolationCode.MISSING_REQUIRED
    assert violations[0].question == "Rate us"
    assert violations[1].code == ViolationCode.INVALID_OPTION
    assert violations[1].question_order == 3
    assert values[1] == "fine"


def test_question_type_accepts_legacy_multiple_choice_spelling():
    assert QuestionType("multiple-choice") is QuestionType.MULTIPLE
