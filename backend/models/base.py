"""Base utilities for SQLAlchemy models."""
from enum import Enum
import uuid
from sqlalchemy import Column, String
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.sql import sqltypes


class UserRole(str, Enum):
    """Role tags carried by user accounts."""
    EMPLOYEE = "employee"
    MANAGER = "manager"
    HR = "hr"
    ADMIN = "admin"


class SurveyCategory(str, Enum):
    """Survey category enumeration for type safety."""
    PROJECT = "project"
    MANAGER = "manager"
    WORKPLACE = "workplace"
    GENERAL = "general"
    TRAINING = "training"
    CUSTOM = "custom"


class QuestionType(str, Enum):
    """Answer shapes a survey question can declare."""
    TEXT = "text"
    TEXTAREA = "textarea"
    MULTIPLE = "multiple"
    CHECKBOX = "checkbox"
    RATING = "rating"
    SCALE = "scale"
    NUMBER = "number"
    DATE = "date"
    EMAIL = "email"
    URL = "url"

    @classmethod
    def _missing_(cls, value):
        # Older survey payloads spell the single-choice type out in full.
        if isinstance(value, str) and value.strip().lower() == "multiple-choice":
            return cls.MULTIPLE
        return None

    @property
    def uses_options(self) -> bool:
        return self in (QuestionType.MULTIPLE, QuestionType.CHECKBOX)


class AdaptiveUUID(sqltypes.TypeDecorator):
    """UUID stored natively on PostgreSQL and as hex text everywhere else."""

    impl = sqltypes.String
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PGUUID(as_uuid=True))
        return dialect.type_descriptor(String(36))

    @staticmethod
    def _coerce_uuid(value):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))

    def process_bind_param(self, value, dialect):
        value = self._coerce_uuid(value)
        if value is None:
            return None
        if dialect.name == "postgresql":
            return value
        return value.hex

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return self._coerce_uuid(value)


def get_uuid_column(*args, **kwargs):
    """Get a UUID column that adapts to the database dialect.

    Example:
        user_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
        department_id = get_uuid_column(ForeignKey("departments.department_id"), nullable=True)
    """
    return Column(AdaptiveUUID(), *args, **kwargs)
