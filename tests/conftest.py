"""
Shared test fixtures for the Community Hub test suite.

Every test gets a fresh in-memory aiosqlite database; the app's ``get_db``
dependency is pointed at it for the duration of the test.
"""

import os
import sys
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-the-suite"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from community_hub.api.v1.deps import get_db
from community_hub.core.security import create_access_token
from community_hub.db.base import Base
from community_hub.main import app
from community_hub.models.user import AccountRole, User
from community_hub.services.accounts import create_account

ADMIN_PASSWORD = "admin-pass-123"
MEMBER_PASSWORD = "member-pass-123"


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create all tables on a private in-memory engine, drop them after."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    yield factory
    app.dependency_overrides.pop(get_db, None)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct service calls in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await create_account(
        db_session,
        {
            "email": "admin@example.com",
            "password": ADMIN_PASSWORD,
            "full_name": "Platform Admin",
            "role": AccountRole.PLATFORM_ADMIN,
        },
    )


@pytest.fixture
async def member_user(db_session: AsyncSession) -> User:
    return await create_account(
        db_session,
        {
            "email": "member@example.com",
            "password": MEMBER_PASSWORD,
            "full_name": "Mia Member",
            "community_id": 7,
        },
    )


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return auth_headers(admin_user)


@pytest.fixture
def member_headers(member_user: User) -> dict[str, str]:
    return auth_headers(member_user)
