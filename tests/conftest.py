"""Pytest configuration and shared fixtures.

Organization:
    - Record Fixtures: In-memory people used by unit tests
    - Database Fixtures: SQLAlchemy async engine, session, and user factories
    - Settings Fixtures: Cache isolation for environment-driven settings
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from keyset_connection.settings import get_keyset_settings
from tests.utils import Base, Person, User, generic_rows, make_people, with_inserted_at

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


# ============================================================================
# Record Fixtures
# ============================================================================


@pytest.fixture
def generic_people() -> list[Person]:
    """Ten people with distinct names, ids 1..10."""
    return make_people(generic_rows(10))


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """Create async SQLAlchemy engine with in-memory SQLite.

    Yields:
        Async SQLAlchemy engine connected to in-memory SQLite.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create async database session with the users table in place.

    Args:
        db_engine: Async SQLAlchemy engine fixture.

    Yields:
        Async database session for testing.
    """
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def insert_users(db_session: AsyncSession):
    """Insert users from partial attribute maps and return them ordered by id.

    Example:
        async def test_page(insert_users):
            users = await insert_users([{"id": 1, "first_name": "Abe"}])
    """

    async def _insert(rows: list[dict[str, Any]]) -> list[User]:
        users = [User(**with_inserted_at(row)) for row in rows]
        db_session.add_all(users)
        await db_session.flush()
        return sorted(users, key=lambda user: user.id)

    return _insert


@pytest.fixture
def fetch_scalars(db_session: AsyncSession):
    """Async fetch function returning ORM entities for a statement."""

    async def _fetch(statement):
        return (await db_session.scalars(statement)).all()

    return _fetch


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Clear the settings cache around each test so env changes apply."""
    get_keyset_settings.cache_clear()
    yield
    get_keyset_settings.cache_clear()
