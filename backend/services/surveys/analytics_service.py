"""Aggregate response analytics for survey administrators."""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import get_settings
from backend.models.survey import Survey
from backend.models.survey_response import SurveyResponse
from backend.models.user import User
from backend.schemas.feedback import CategoryCount, FeedbackAnalytics, MonthlyCategoryBucket
from backend.services.surveys.survey_service import SurveyServiceError, department_scope
from backend.utils.datetime_helpers import ensure_utc

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Counts responses by category and month.

    Anonymous responses are included: the analytics only read the category,
    submission time, time spent and the submitter department/role snapshot.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()

    def _month_expression(self):
        dialect = self.db.bind.dialect.name if self.db.bind else ""
        if dialect == "postgresql":
            return func.to_char(func.timezone("UTC", SurveyResponse.submitted_at), "YYYY-MM")
        return func.strftime("%Y-%m", SurveyResponse.submitted_at)

    async def get_feedback_analytics(
        self,
        viewer: User,
        department_id: Optional[UUID] = None,
        category: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> FeedbackAnalytics:
        """
        Summarize responses visible to ``viewer``.

        Managers only ever see their own department, whatever filter they pass.
        A manager without a department sees responses recorded without one.
        """
        if (viewer.role or "").lower() not in self.settings.survey_author_roles:
            raise SurveyServiceError("forbidden")

        conditions = []
        scope = department_scope(viewer, department_id)
        if scope is not None:
            conditions.append(scope)
        if category:
            conditions.append(Survey.category == category)
        if start_date is not None:
            conditions.append(SurveyResponse.submitted_at >= ensure_utc(start_date))
        if end_date is not None:
            conditions.append(SurveyResponse.submitted_at <= ensure_utc(end_date))

        month = self._month_expression().label("month")
        query = (
            select(
                Survey.category.label("category"),
                month,
                func.count(SurveyResponse.response_id).label("count"),
                func.avg(func.coalesce(SurveyResponse.time_spent, 0)).label("avg_time_spent"),
            )
            .join(Survey, SurveyResponse.survey_id == Survey.survey_id)
            .group_by(Survey.category, month)
            .order_by(month.desc(), Survey.category.desc())
        )
        if conditions:
            query = query.where(and_(*conditions))

        result = await self.db.execute(query)
        rows = result.all()

        by_month = []
        category_counts: dict[str, int] = defaultdict(int)
        for row in rows:
            by_month.append(
                MonthlyCategoryBucket(
                    category=row.category,
                    month=row.month,
                    count=row.count,
                    avg_time_spent=round(float(row.avg_time_spent or 0), 2),
                )
            )
            category_counts[row.category] += row.count

        total_responses = sum(category_counts.values())
        logger.debug(f"Analytics computed over {total_responses} responses for viewer {viewer.user_id}")
        return FeedbackAnalytics(
            total_responses=total_responses,
            by_category=[
                CategoryCount(category=name, count=count)
                for name, count in sorted(category_counts.items())
            ],
            by_month=by_month,
        )
