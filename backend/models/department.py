"""Department record consumed by audience targeting."""
import uuid
from datetime import datetime, UTC

from sqlalchemy import Column, DateTime, String

from backend.database import Base
from backend.models.base import get_uuid_column


class Department(Base):
    """Organizational department. Managed outside the feedback engine."""

    __tablename__ = "departments"

    department_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    name = Column(String(120), unique=True, nullable=False)
    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self):
        return f"<Department(department_id={self.department_id}, name={self.name})>"
