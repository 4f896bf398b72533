"""
FTW Community Backend — Test Configuration (conftest.py)
=========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets a fresh in-memory SQLite database (aiosqlite +
       StaticPool, so every session shares the one connection), a
       ServiceContainer built with cheap bcrypt rounds, and, for API tests,
       an httpx AsyncClient talking to the app over ASGITransport.

Fixture Hierarchy:
    Function-scoped:
    ├── engine / session_factory / db_session: the in-memory database
    ├── container: repositories + resolver + services
    ├── make_user / make_college: committed seed rows
    ├── login: issue a bearer token for a user
    ├── mock_db_session / assignments_repo: mocks for pure unit tests
    └── client: HTTPX AsyncClient with the DB dependency overridden
"""

import os

# Override settings BEFORE any ftw_community import reads them
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SEED_ON_STARTUP"] = "false"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import Optional
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ftw_community.config import settings
from ftw_community.container import build_container
from ftw_community.database import Base, get_db_session
from ftw_community.domain.roles import Actor, Role
import ftw_community.models  # noqa: F401  registers every table
from ftw_community.models.college import College
from ftw_community.models.user import User
from ftw_community.services.identity_service import actor_from_user

DEFAULT_PASSKEY = "correct-horse-battery"


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def container():
    return build_container(settings)


# ══════════════════════════════════════════════════════════════════════════
# Seed helpers
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_user(db_session, container):
    """
    Factory: insert and commit a user.

    Usage:
        lead = await make_user(Role.COLLEGE_LEAD, college_id=college.id)
    """
    counter = {"n": 0}

    async def _make(
        role: Role = Role.MEMBER,
        college_id: Optional[UUID] = None,
        team_id: Optional[str] = None,
        passkey: str = DEFAULT_PASSKEY,
        is_active: bool = True,
        is_first_login: bool = False,
    ) -> User:
        counter["n"] += 1
        user = User(
            team_id=team_id or f"FTW{role.value[:4].upper()}{counter['n']:03d}",
            name=f"{role.value.replace('_', ' ').title()} {counter['n']}",
            passkey_hash=container.hasher.hash(passkey),
            role=role.value,
            college_id=college_id,
            is_active=is_active,
            is_first_login=is_first_login,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_college(db_session):
    async def _make(name: str, created_by: User, lead: Optional[User] = None) -> College:
        college = College(
            name=name,
            created_by_id=created_by.id,
            college_lead_id=lead.id if lead else None,
        )
        db_session.add(college)
        await db_session.commit()
        return college

    return _make


@pytest.fixture
def actor_for():
    def _actor(user: User) -> Actor:
        return actor_from_user(user)

    return _actor


@pytest.fixture
def login(container):
    """Bearer headers for `user`, without going through /api/login."""
    def _headers(user: User) -> dict:
        token = container.identity.issue_session(actor_from_user(user))
        return {"Authorization": f"Bearer {token}"}

    return _headers


# ══════════════════════════════════════════════════════════════════════════
# Mocks for pure unit tests
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """A stand-in AsyncSession for code paths that only pass it through."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def assignments_repo():
    """
    AssignmentRepository mock; by default nobody holds an assignment.

    Usage:
        assignments_repo.assigned_college_ids.return_value = frozenset({c1})
    """
    repo = MagicMock()
    repo.assigned_college_ids = AsyncMock(return_value=None)
    return repo


# ══════════════════════════════════════════════════════════════════════════
# HTTP client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def client(session_factory, container):
    """
    HTTPX AsyncClient bound to a fresh app that uses the test database.

    Usage:
        async def test_stats(client):
            response = await client.get("/api/stats")
            assert response.status_code == 200
    """
    from ftw_community.main import create_app

    app = create_app(container)

    async def _test_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _test_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
