"""
Pytest fixtures for test database, client, and authentication.

Each test gets a fresh SQLite database file, so tests are isolated and
need no running PostgreSQL or Redis.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["REDIS_ENABLED"] = "false"
os.environ["RATE_LIMIT_BACKEND"] = "memory"
os.environ["ADMIN_BOOTSTRAP_SECRET"] = "test-bootstrap-secret"

from datetime import date, datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from studio_booking.main import app
from studio_booking.db.base import Base, utcnow
from studio_booking.db.session import get_db
from studio_booking.core.security import create_access_token, hash_password
from studio_booking.models import Role, Session, User
from studio_booking.services.interfaces.memory_rate_limit import InMemoryRateLimiter
from studio_booking.services.strategy_factory import get_rate_limiter

ADMIN_PASSWORD = "adminpassword123"


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh SQLite database per test."""
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
        # concurrent writers wait for the file lock instead of failing
        connect_args={"timeout": 30},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def rate_limiter() -> InMemoryRateLimiter:
    return InMemoryRateLimiter(max_requests=100, window_seconds=900)


@pytest_asyncio.fixture
async def client(db_session: AsyncSession, rate_limiter) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB session and the rate limiter."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def create_user(db: AsyncSession, email: str, role: Role, is_active: bool = True) -> User:
    user = User(
        email=email,
        name=email.split("@")[0].title(),
        hashed_password=hash_password(ADMIN_PASSWORD),
        role=role,
        is_active=is_active,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def issue_token(db: AsyncSession, user: User, expires_in: timedelta = timedelta(days=1)) -> str:
    token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
    db.add(Session(token=token, user_id=user.id, expires_at=utcnow() + expires_in))
    await db.commit()
    return token


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "admin@example.com", Role.ADMIN)


@pytest_asyncio.fixture
async def moderator_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "moderator@example.com", Role.MODERATOR)


@pytest_asyncio.fixture
async def regular_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "member@example.com", Role.USER)


@pytest_asyncio.fixture
async def admin_headers(db_session: AsyncSession, admin_user: User) -> dict:
    token = await issue_token(db_session, admin_user)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def moderator_headers(db_session: AsyncSession, moderator_user: User) -> dict:
    token = await issue_token(db_session, moderator_user)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def user_headers(db_session: AsyncSession, regular_user: User) -> dict:
    token = await issue_token(db_session, regular_user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def future_day() -> date:
    return date.today() + timedelta(days=30)


@pytest.fixture
def booking_payload(future_day):
    """Factory for POST /api/bookings bodies on a future date."""

    def make(start="10:00", end="12:00", type="studio", day=None, **overrides):
        when = datetime.combine(day or future_day, datetime.min.time()).replace(hour=12, tzinfo=timezone.utc)
        payload = {
            "name": "Jane Doe",
            "email": "jane@example.com",
            "phone": "+15551234567",
            "type": type,
            "date": when.isoformat(),
            "start_time": start,
            "end_time": end,
        }
        payload.update(overrides)
        return payload

    return make
