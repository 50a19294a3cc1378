"""
Shared test fixtures.

Database tests run against a throwaway SQLite file (aiosqlite) created per
test. API tests drive the FastAPI app in-process through httpx with the
database session, field cipher, mail transport and retry sleep overridden.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from hold_tracker.core.crypto import FieldCipher, parse_key
from hold_tracker.core.database import Base, get_db
from hold_tracker.core.deps import get_field_cipher, get_mail_transport
from hold_tracker.core.rate_limit import reset_memory_store
from hold_tracker.main import app
from hold_tracker.modules.activities.models import Activity  # noqa: F401
from hold_tracker.modules.records.models import OnHoldRecord  # noqa: F401
from hold_tracker.modules.reminders.jobs import get_batch_sleep
from hold_tracker.modules.users.models import User  # noqa: F401
from tests.helpers import (
    ADMIN_EMAIL,
    ADMIN_NAME,
    STAFF_EMAIL,
    STAFF_NAME,
    TEST_KEY_HEX,
    FakeMailTransport,
    SleepRecorder,
    auth_headers,
)


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def cipher() -> FieldCipher:
    return FieldCipher(parse_key(TEST_KEY_HEX))


@pytest.fixture
def transport() -> FakeMailTransport:
    return FakeMailTransport()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
async def engine(tmp_path):
    """Fresh SQLite database with all tables."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    reset_memory_store()
    yield
    reset_memory_store()


@pytest.fixture
async def client(session_maker, cipher, transport, sleep_recorder):
    """HTTP client for the app with all external collaborators replaced."""

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_field_cipher] = lambda: cipher
    app.dependency_overrides[get_mail_transport] = lambda: transport
    app.dependency_overrides[get_batch_sleep] = lambda: sleep_recorder

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def staff_headers() -> dict[str, str]:
    return auth_headers(STAFF_EMAIL, "staff", STAFF_NAME)


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return auth_headers(ADMIN_EMAIL, "admin", ADMIN_NAME)
