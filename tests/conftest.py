"""Pytest configuration and fixtures."""
import os
import uuid
from datetime import timedelta

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Point the application at a throwaway SQLite database before anything imports settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_feedback.db"
os.environ["ENVIRONMENT"] = "test"

from backend.config import get_settings
from backend.database import Base
import backend.models  # noqa: F401  (registers tables on Base.metadata)
from backend.models.base import QuestionType
from backend.models.survey import Survey, SurveyQuestion
from backend.services.auth_service import AuthService
from backend.services.user_service import UserService
from backend.utils.datetime_helpers import utc_now

settings = get_settings()


def default_questions() -> list[dict]:
    """A required rating question followed by an optional free-text one."""
    return [
        SurveyQuestion(text="How satisfied are you?", type=QuestionType.RATING, order=1, required=True).to_dict(),
        SurveyQuestion(text="Anything else?", type=QuestionType.TEXT, order=2).to_dict(),
    ]


@pytest.fixture
async def test_engine(tmp_path):
    """Fresh SQLite database per test, schema built from the models."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'feedback_test.db'}",
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def test_app(session_factory):
    """Create test app with database override."""
    from backend.main import app
    from backend.database import get_db

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(test_app):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as http_client:
        yield http_client


@pytest.fixture
def department_factory(db_session):
    """Factory for departments with unique names."""
    user_service = UserService(db_session)

    async def _create_department(name: str | None = None):
        return await user_service.create_department(name or f"Department {uuid.uuid4().hex[:8]}")

    return _create_department


@pytest.fixture
def user_factory(db_session):
    """Factory for users; email defaults to something unique."""
    user_service = UserService(db_session)

    async def _create_user(role: str = "employee", department_id=None, email: str | None = None):
        return await user_service.create_user(
            email=email or f"user{uuid.uuid4().hex[:8]}@example.com",
            role=role,
            department_id=department_id,
        )

    return _create_user


@pytest.fixture
def survey_factory(db_session):
    """Factory for surveys stored directly, open for a week by default."""

    async def _create_survey(**overrides):
        now = utc_now()
        values = {
            "survey_id": uuid.uuid4(),
            "title": "Quarterly pulse",
            "category": "workplace",
            "questions": default_questions(),
            "target_departments": [],
            "target_roles": [],
            "is_active": True,
            "is_anonymous": False,
            "start_date": now - timedelta(days=1),
            "end_date": now + timedelta(days=7),
            "settings": {"allowMultipleSubmissions": False},
            "tags": [],
        }
        values.update(overrides)
        if "target_departments" in overrides:
            values["target_departments"] = [str(item) for item in overrides["target_departments"]]
        survey = Survey(**values)
        db_session.add(survey)
        await db_session.commit()
        await db_session.refresh(survey)
        return survey

    return _create_survey


@pytest.fixture
def auth_headers():
    """Bearer header for a user, minted with the configured secret."""

    def _headers(user) -> dict[str, str]:
        token, _ = AuthService().create_access_token(user)
        return {"Authorization": f"Bearer {token}"}

    return _headers
