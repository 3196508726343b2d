# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration test fixtures.

Provides an in-memory SQLite database with the full schema, an async
session bound to it, and a helper for seeding learner profiles.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from edugate.infrastructure.database.models import Base, Profile


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory database with all tables."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Async session for a single test."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def create_profile(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[Profile]]:
    """Factory that persists a profile in its own transaction.

    Example:
        await create_profile("user-1", grade=10, tier="high_school", expiry=future_expiry)
    """

    async def _create(
        user_id: str,
        grade: int = 5,
        grade_level: str | None = None,
        tier: str | None = None,
        expiry: datetime | None = None,
    ) -> Profile:
        profile = Profile(
            user_id=user_id,
            grade=grade,
            grade_level=grade_level if grade_level is not None else str(grade),
            subscription_tier=tier,
            plan_expiry=expiry,
        )
        async with session_factory() as session:
            session.add(profile)
            await session.commit()
        return profile

    return _create
