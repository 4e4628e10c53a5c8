"""User account model."""
from sqlalchemy import (
    Column,
    String,
    DateTime,
    Boolean,
    ForeignKey,
)
import uuid
from datetime import datetime, UTC
from backend.database import Base
from backend.models.base import UserRole, get_uuid_column


class User(Base):
    """Account fields the feedback engine reads: identity, role and department."""

    __tablename__ = "users"

    user_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False)
    first_name = Column(String(80), nullable=False, default="")
    last_name = Column(String(80), nullable=False, default="")
    role = Column(String(20), nullable=False, default=UserRole.EMPLOYEE.value)
    department_id = get_uuid_column(
        ForeignKey("departments.department_id", ondelete="SET NULL"), nullable=True, index=True
    )
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self):
        return f"<User(user_id={self.user_id}, role={self.role}, department_id={self.department_id})>"
