"""Pytest configuration and shared fixtures"""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./taskhub_test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from taskhub.backend import BackendClient
from taskhub.config import settings
from taskhub.database import Base, create_engine_for, get_session_factory
from taskhub.main import app
from taskhub.models import MemberRole, Organization, OrganizationMember, Profile, Project, Task
from taskhub.schemas.auth import Identity
from taskhub.services.auth_service import AuthService
from taskhub.services.redis_service import RedisService

TEST_PASSWORD = "TestPassword123!"


class FakeRedis:
    """In-memory stand-in for the handful of Redis commands the app uses"""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, seconds, value):
        self.store[key] = str(value)
        self.ttls[key] = seconds
        return True

    async def incr(self, key):
        value = int(self.store.get(key, 0)) + 1
        self.store[key] = str(value)
        return value

    async def expire(self, key, seconds):
        self.ttls[key] = seconds
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def ping(self):
        return True

    async def aclose(self):
        pass


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch) -> FakeRedis:
    """Every test gets a fresh, empty Redis"""
    client = FakeRedis()
    monkeypatch.setattr(RedisService, "_client", client)
    return client


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create a test database engine backed by a throwaway SQLite file"""
    engine = create_engine_for(
        f"sqlite+aiosqlite:///{tmp_path / 'taskhub.db'}",
        echo=False,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for arranging test data"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def sample_profile(db_session: AsyncSession) -> Profile:
    """Create a sample profile that can sign in with TEST_PASSWORD"""
    profile = Profile(
        email="test@example.com",
        full_name="Test User",
        password_hash=AuthService.hash_password(TEST_PASSWORD),
    )
    db_session.add(profile)
    await db_session.commit()
    await db_session.refresh(profile)
    return profile


@pytest_asyncio.fixture
async def other_profile(db_session: AsyncSession) -> Profile:
    """A second profile with no organizations"""
    profile = Profile(
        email="other@example.com",
        full_name="Other User",
        password_hash=AuthService.hash_password(TEST_PASSWORD),
    )
    db_session.add(profile)
    await db_session.commit()
    await db_session.refresh(profile)
    return profile


@pytest.fixture
def identity(sample_profile: Profile) -> Identity:
    return Identity(id=sample_profile.id, email=sample_profile.email)


@pytest.fixture
def backend(session_factory, identity: Identity) -> BackendClient:
    """Backend client bound to the sample profile"""
    return BackendClient(session_factory, identity)


@pytest_asyncio.fixture
async def sample_organization(db_session: AsyncSession, sample_profile: Profile) -> Organization:
    """Create an organization owned by the sample profile"""
    org = Organization(name="Test Organization")
    db_session.add(org)
    await db_session.flush()
    db_session.add(
        OrganizationMember(
            organization_id=org.id,
            user_id=sample_profile.id,
            role=MemberRole.OWNER.value,
        )
    )
    await db_session.commit()
    await db_session.refresh(org)
    return org


@pytest_asyncio.fixture
async def sample_project(db_session: AsyncSession, sample_profile: Profile) -> Project:
    """Create a sample project managed by the sample profile"""
    project = Project(
        name="Test Project",
        description="A test project",
        status="planning",
        manager_id=sample_profile.id,
    )
    db_session.add(project)
    await db_session.commit()
    await db_session.refresh(project)
    return project


@pytest_asyncio.fixture
async def sample_task(
    db_session: AsyncSession,
    sample_profile: Profile,
    sample_organization: Organization,
    sample_project: Project,
) -> Task:
    """Create a sample task in the todo column"""
    task = Task(
        title="Test Task",
        status="todo",
        priority="medium",
        project_id=sample_project.id,
        assignee_id=sample_profile.id,
        creator_id=sample_profile.id,
        organization_id=sample_organization.id,
    )
    db_session.add(task)
    await db_session.commit()
    await db_session.refresh(task)
    return task


@pytest_asyncio.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client with the test database"""
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def signed_in_client(async_client: AsyncClient, sample_profile: Profile) -> AsyncClient:
    """Client carrying a session cookie for the sample profile"""
    token = AuthService.create_access_token(str(sample_profile.id), sample_profile.email)
    async_client.cookies.set(settings.session_cookie_name, token)
    return async_client
