"""Read access to user accounts and departments.

Account and department management live elsewhere; the survey services only
need to look a user up and to check that a department exists.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from backend.config import get_settings
from backend.models.base import UserRole
from backend.models.department import Department
from backend.models.user import User

logger = logging.getLogger(__name__)


class UserServiceError(RuntimeError):
    """Raised when a user record cannot be created."""


class UserService:
    """Lookups for users and departments."""

    def __init__(self, db: AsyncSession):
        """Initialize user service.

        Args:
            db: Database session
        """
        self.db = db
        self.settings = get_settings()

    async def get_user(self, user_id: uuid.UUID) -> Optional[User]:
        """Return the active user with ``user_id``, or None."""
        result = await self.db.execute(
            select(User).where(User.user_id == user_id, User.is_active.is_(True))
        )
        return result.scalar_one_or_none()

    async def department_exists(self, department_id: uuid.UUID) -> bool:
        result = await self.db.execute(
            select(Department.department_id).where(Department.department_id == department_id)
        )
        return result.scalar_one_or_none() is not None

    async def create_department(self, name: str) -> Department:
        department = Department(department_id=uuid.uuid4(), name=name.strip())
        self.db.add(department)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise UserServiceError("department_name_taken") from exc
        await self.db.refresh(department)
        return department

    async def create_user(
        self,
        email: str,
        role: str = UserRole.EMPLOYEE.value,
        department_id: Optional[uuid.UUID] = None,
        first_name: str = "",
        last_name: str = "",
    ) -> User:
        """Create a user record. Used by seeding scripts and tests."""
        normalized_email = email.strip().lower()
        if not normalized_email:
            raise UserServiceError("invalid_email")
        try:
            role = UserRole(role.strip().lower()).value
        except ValueError as exc:
            raise UserServiceError("invalid_role") from exc

        user = User(
            user_id=uuid.uuid4(),
            email=normalized_email,
            first_name=first_name,
            last_name=last_name,
            role=role,
            department_id=department_id,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise UserServiceError("email_taken") from exc
        await self.db.refresh(user)
        logger.info(f"Created {role} user {user.user_id}")
        return user
