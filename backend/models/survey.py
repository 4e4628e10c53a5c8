"""Survey model and its embedded question definitions."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, JSON, String, Text

from backend.database import Base
from backend.models.base import QuestionType, get_uuid_column


@dataclass(frozen=True)
class SurveyQuestion:
    """One question of a survey. Not independently addressable."""

    text: str
    type: QuestionType
    order: int
    options: tuple[str, ...] = field(default_factory=tuple)
    required: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SurveyQuestion":
        return cls(
            text=str(data.get("text") or data.get("question") or ""),
            type=QuestionType(data.get("type")),
            order=int(data["order"]),
            options=tuple(str(option) for option in data.get("options") or ()),
            required=bool(data.get("required", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "type": self.type.value,
            "order": self.order,
            "options": list(self.options),
            "required": self.required,
        }


class Survey(Base):
    """A survey authored for some audience and open during a date window."""

    __tablename__ = "surveys"

    survey_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(20), nullable=False)
    questions = Column(JSON, nullable=False, default=list)
    target_departments = Column(JSON, nullable=False, default=list)
    target_roles = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, default=True, nullable=False)
    is_anonymous = Column(Boolean, default=False, nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    settings = Column(JSON, nullable=False, default=dict)
    created_by = get_uuid_column(ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    estimated_time = Column(Integer, default=5, nullable=False)  # minutes
    tags = Column(JSON, nullable=False, default=list)
    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_surveys_category_active_end", "category", "is_active", "end_date"),
    )

    @property
    def allow_multiple_submissions(self) -> bool:
        return bool((self.settings or {}).get("allowMultipleSubmissions", False))

    def ordered_questions(self) -> list[SurveyQuestion]:
        """Questions sorted by their 1-based order."""
        parsed = [SurveyQuestion.from_dict(item) for item in self.questions or []]
        return sorted(parsed, key=lambda question: question.order)

    def __repr__(self):
        return f"<Survey(survey_id={self.survey_id}, title={self.title}, category={self.category})>"
