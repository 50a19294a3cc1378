"""
User Repository

Database operations for staff accounts.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hold_tracker.modules.users.models import User, UserRole

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        name: str,
        role: UserRole = UserRole.STAFF,
        password_hash: str | None = None,
        is_active: bool = True,
    ) -> User:
        """
        Create a new user record.

        Args:
            db: Database session
            email: User's email address (unique, stored lower-cased)
            name: Display name
            role: ADMIN or STAFF
            password_hash: bcrypt hash, or None for Google-only accounts
            is_active: Whether the account may sign in

        Returns:
            Created User instance
        """
        user = User(
            email=email.strip().lower(),
            name=name,
            role=role,
            password_hash=password_hash,
            is_active=is_active,
        )

        db.add(user)
        await db.commit()
        await db.refresh(user)

        logger.info(f"Created user: {user.id} ({user.role.value})")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: UUID) -> User | None:
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def list_all(db: AsyncSession) -> list[User]:
        result = await db.execute(select(User).order_by(User.name))
        return list(result.scalars().all())

    @staticmethod
    async def set_role(db: AsyncSession, user: User, role: UserRole) -> User:
        user.role = role
        await db.commit()
        await db.refresh(user)
        logger.info(f"User {user.id} role set to {role.value}")
        return user
