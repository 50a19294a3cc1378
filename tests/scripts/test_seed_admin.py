"""
Tests for the seed_admin script.
"""

from unittest.mock import patch

import pytest

from hold_tracker.core.security import verify_password
from hold_tracker.modules.users.models import UserRole
from hold_tracker.modules.users.repository import UserRepository
from scripts.seed_admin import seed_admin


class TestSeedAdmin:
    @pytest.mark.asyncio
    async def test_creates_admin_with_password(self, session_maker, db_session):
        with patch("scripts.seed_admin.async_session_maker", session_maker):
            await seed_admin("Ops@Example.com", "Ops Admin", "s3cret-password")

        user = await UserRepository.get_by_email(db_session, "ops@example.com")
        assert user.role == UserRole.ADMIN
        assert verify_password("s3cret-password", user.password_hash)

    @pytest.mark.asyncio
    async def test_promotes_existing_staff(self, session_maker, db_session):
        staff = await UserRepository.create(db_session, email="ops@example.com", name="Ops")

        with patch("scripts.seed_admin.async_session_maker", session_maker):
            await seed_admin("ops@example.com", "Ops Admin", "s3cret-password")

        await db_session.refresh(staff)
        assert staff.role == UserRole.ADMIN
        assert staff.password_hash is None
