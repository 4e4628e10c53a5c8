"""Tests for feedback analytics aggregation."""
import uuid
from datetime import UTC, datetime

import pytest

from backend.models.survey_response import SurveyResponse
from backend.services.surveys import AnalyticsService, SurveyServiceError


async def add_response(db_session, survey, submitted_at, time_spent=60, department_id=None, anonymous=False):
    db_session.add(
        SurveyResponse(
            response_id=uuid.uuid4(),
            survey_id=survey.survey_id,
            respondent_id=None,
            is_anonymous=anonymous,
            answers=[],
            submitted_at=submitted_at,
            time_spent=time_spent,
            submitter_department_id=department_id,
            submitter_role="employee",
        )
    )
    await db_session.commit()


@pytest.mark.asyncio
async def test_counts_by_category_and_month(db_session, user_factory, survey_factory):
    hr = await user_factory(role="hr")
    workplace = await survey_factory(category="workplace")
    training = await survey_factory(category="training")
    await add_response(db_session, workplace, datetime(2026, 1, 10, tzinfo=UTC), time_spent=30)
    await add_response(db_session, workplace, datetime(2026, 1, 20, tzinfo=UTC), time_spent=90, anonymous=True)
    await add_response(db_session, workplace, datetime(2026, 2, 3, tzinfo=UTC), time_spent=45)
    await add_response(db_session, training, datetime(2026, 2, 5, tzinfo=UTC), time_spent=120)

    analytics = await AnalyticsService(db_session).get_feedback_analytics(hr)

    assert analytics.total_responses == 4
    assert {(item.category, item.count) for item in analytics.by_category} == {("workplace", 3), ("training", 1)}
    assert [(bucket.month, bucket.category) for bucket in analytics.by_month] == [
        ("2026-02", "workplace"),
        ("2026-02", "training"),
        ("2026-01", "workplace"),
    ]
    january = analytics.by_month[-1]
    assert january.count == 2
    assert january.avg_time_spent == 60


@pytest.mark.asyncio
async def test_filters_by_date_range_and_category(db_session, user_factory, survey_factory):
    admin = await user_factory(role="admin")
    workplace = await survey_factory(category="workplace")
    training = await survey_factory(category="training")
    await add_response(db_session, workplace, datetime(2026, 1, 10, tzinfo=UTC))
    await add_response(db_session, workplace, datetime(2026, 3, 10, tzinfo=UTC))
    await add_response(db_session, training, datetime(2026, 3, 11, tzinfo=UTC))

    analytics = await AnalyticsService(db_session).get_feedback_analytics(
        admin,
        category="workplace",
        start_date=datetime(2026, 2, 1, tzinfo=UTC),
        end_date=datetime(2026, 3, 31, tzinfo=UTC),
    )

    assert analytics.total_responses == 1
    assert analytics.by_month[0].month == "2026-03"


@pytest.mark.asyncio
async def test_managers_only_see_their_department(db_session, user_factory, survey_factory, department_factory):
    own = await department_factory()
    other = await department_factory()
    manager = await user_factory(role="manager", department_id=own.department_id)
    survey = await survey_factory()
    await add_response(db_session, survey, datetime(2026, 1, 5, tzinfo=UTC), department_id=own.department_id)
    await add_response(db_session, survey, datetime(2026, 1, 6, tzinfo=UTC), department_id=other.department_id)

    analytics = await AnalyticsService(db_session).get_feedback_analytics(
        manager, department_id=other.department_id
    )

    assert analytics.total_responses == 1


@pytest.mark.asyncio
async def test_employees_cannot_read_analytics(db_session, user_factory):
    employee = await user_factory()

    with pytest.raises(SurveyServiceError, match="forbidden"):
        await AnalyticsService(db_session).get_feedback_analytics(employee)


@pytest.mark.asyncio
async def test_manager_without_department_is_not_unscoped(
    db_session, user_factory, survey_factory, department_factory
):
    other = await department_factory()
    manager = await user_factory(role="manager", department_id=None)
    survey = await survey_factory()
    await add_response(db_session, survey, datetime(2026, 1, 5, tzinfo=UTC), department_id=other.department_id)

    analytics = await AnalyticsService(db_session).get_feedback_analytics(
        manager, department_id=other.department_id
    )

    assert analytics.total_responses == 0
    assert analytics.by_month == []

    await add_response(db_session, survey, datetime(2026, 1, 7, tzinfo=UTC), department_id=None)
    analytics = await AnalyticsService(db_session).get_feedback_analytics(manager)

    assert analytics.total_responses == 1


@pytest.mark.asyncio
async def test_hr_can_filter_by_department(db_session, user_factory, survey_factory, department_factory):
    hr = await user_factory(role="hr")
    wanted = await department_factory()
    other = await department_factory()
    survey = await survey_factory(category="training")
    await add_response(db_session, survey, datetime(2026, 4, 1, tzinfo=UTC), time_spent=10, department_id=wanted.department_id)
    await add_response(db_session, survey, datetime(2026, 4, 2, tzinfo=UTC), time_spent=25, department_id=wanted.department_id)
    await add_response(db_session, survey, datetime(2026, 4, 3, tzinfo=UTC), department_id=other.department_id)

    analytics = await AnalyticsService(db_session).get_feedback_analytics(hr, department_id=wanted.department_id)

    assert analytics.total_responses == 2
    assert analytics.by_month[0].avg_time_spent == 17.5
