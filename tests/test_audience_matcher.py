"""Tests for audience targeting."""
import uuid

from backend.services.surveys import matches_audience


ENGINEERING = uuid.uuid4()
SALES = uuid.uuid4()


def test_untargeted_survey_matches_everyone():
    assert matches_audience([], [], "employee", None)
    assert matches_audience(None, None, "manager", ENGINEERING)


def test_department_match():
    assert matches_audience([str(ENGINEERING)], [], "employee", ENGINEERING)
    assert not matches_audience([str(ENGINEERING)], [], "employee", SALES)


def test_department_ids_compare_regardless_of_format():
    assert matches_audience([ENGINEERING.hex], [], "employee", str(ENGINEERING))


def test_role_match_is_case_insensitive():
    assert matches_audience([], ["Manager"], "manager", None)
    assert not matches_audience([], ["manager"], "employee", None)


def test_departments_and_roles_are_ored():
    targets = ([str(ENGINEERING)], ["manager"])

    assert matches_audience(*targets, "employee", ENGINEERING)
    assert matches_audience(*targets, "manager", SALES)
    assert not matches_audience(*targets, "employee", SALES)


def test_user_without_department_only_matches_by_role():
    assert not matches_audience([str(ENGINEERING)], [], "employee", None)
    assert matches_audience([str(ENGINEERING)], ["employee"], "employee", None)
