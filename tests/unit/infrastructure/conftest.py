"""
Pytest fixtures for infrastructure tests that need a database.

These fixtures provide isolated database sessions for testing.
Each test gets a freshly created schema that is dropped afterwards.

By default, uses an in-memory SQLite database shared by every session of
the test (StaticPool). Set TEST_DATABASE_URL=postgresql+asyncpg://... to
run the same tests against PostgreSQL.
"""

import os
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from ledgerflow.infrastructure.persistence.sqlalchemy.models import Base
from tests.shared.fakes import TEST_HOUSEHOLD_ID, TEST_USER_ID, TEST_USER_ID_2


TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "")


@dataclass(frozen=True)
class MockUserContext:
    """Mock UserContext for testing."""

    user_id: UUID
    household_id: Optional[UUID] = None


@pytest.fixture
def user_context():
    """Provide a test UserContext for repository tests."""
    return MockUserContext(user_id=TEST_USER_ID, household_id=TEST_HOUSEHOLD_ID)


@pytest.fixture
def other_user_context():
    return MockUserContext(user_id=TEST_USER_ID_2)


@pytest_asyncio.fixture
async def async_engine():
    """
    Create an async engine with a fresh schema.

    SQLite runs in memory on a single shared connection so that separate
    sessions (as used by the job scheduler) see each other's commits.
    """
    if TEST_DATABASE_URL:
        engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
    else:
        engine = create_async_engine(
            "sqlite+aiosqlite:///:memory:",
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_maker(async_engine):
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def async_session(session_maker):
    """
    Create a database session for each test.

    Uncommitted changes are rolled back after the test.
    """
    async with session_maker() as session:
        yield session
        await session.rollback()
