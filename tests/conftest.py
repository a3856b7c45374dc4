"""
Pytest configuration and fixtures.
Provides an in-memory database, seeded users and a test app client.
"""

import os

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from careflow.db import session as session_module
from careflow.db.init_db import create_tables, drop_tables
from careflow.db.session import get_db
from careflow.main import app
from careflow.models.client import Client
from careflow.models.user import User, UserRole
from careflow.services.notification_broker import NotificationBroker


# Test database URL (in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def test_engine():
    """Create an in-memory engine with all tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine)
    yield engine
    await drop_tables(engine)
    await engine.dispose()


@pytest.fixture(scope="function")
def test_session_maker(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture(scope="function")
async def test_db_session(test_session_maker):
    """
    Create a test database session.
    Uses in-memory SQLite for fast tests.
    """
    async with test_session_maker() as session:
        yield session


@pytest.fixture
def org_id():
    return uuid.uuid4()


@pytest.fixture
def make_user(test_db_session, org_id):
    """Factory for committed users in the test organization."""
    async def _make_user(
        name: str = "Staff Member",
        role: UserRole = UserRole.MARKETER,
        organization_id=None,
        preferences=None,
        is_active: bool = True,
    ) -> User:
        user = User(
            organization_id=organization_id or org_id,
            name=name,
            email=f"{uuid.uuid4().hex[:12]}@careflow.test",
            role=role,
            is_active=is_active,
            notification_preferences=preferences or {},
        )
        test_db_session.add(user)
        await test_db_session.commit()
        return user
    return _make_user


@pytest.fixture
async def admin(make_user):
    return await make_user(name="Alice Admin", role=UserRole.ADMIN)


@pytest.fixture
async def marketer(make_user):
    return await make_user(name="Mark Marketer")


@pytest.fixture
def make_client(test_db_session, org_id):
    """Factory for committed clients; keyword arguments become columns."""
    async def _make_client(**fields) -> Client:
        fields.setdefault("client_name", "Jane Doe")
        client = Client(organization_id=org_id, **fields)
        test_db_session.add(client)
        await test_db_session.commit()
        return client
    return _make_client


@pytest.fixture
def broker():
    return NotificationBroker(queue_size=10)


@pytest.fixture(scope="function")
async def test_client(test_session_maker, monkeypatch):
    """
    Create a test HTTP client bound to the in-memory database.
    """
    async def _get_test_db():
        async with test_session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    monkeypatch.setattr(session_module, "async_session_maker", test_session_maker)
    app.dependency_overrides[get_db] = _get_test_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Identity header for requests made as a given user."""
    def _headers(user: User) -> dict:
        return {"X-User-Id": str(user.id)}
    return _headers
