"""
Pytest configuration and fixtures for testing
"""
import os

# Settings are read once at import time, so the environment must be in
# place before any application module is imported.
os.environ.setdefault("NODE_ENV", "test")
os.environ.setdefault("SESSION_SECRET", "test-session-secret-0123456789")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LEGACY_ADMIN_URL", "http://legacy.test/admin")

import httpx
import pytest
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def test_engine():
    """
    Isolated in-memory SQLite engine for each test.

    StaticPool keeps the single in-memory connection alive so every
    session sees the same tables.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        # Import models to ensure they're registered with Base
        import database_models  # noqa: F401
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest.fixture
async def test_db(session_factory):
    """Clean AsyncSession for repository tests."""
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@pytest.fixture
def cms_app():
    """Fresh CMS app per test so rate-limit counters never leak between tests."""
    from main import create_app
    from utils.rate_limit import CMS_RATE_LIMITS, MemoryRateLimitStore, RateLimiter

    app = create_app(limiter=RateLimiter(CMS_RATE_LIMITS, MemoryRateLimitStore()))
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(cms_app, session_factory):
    """httpx client bound to the CMS app with get_db pointed at the test database"""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    cms_app.dependency_overrides[get_db] = override_get_db

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=cms_app), base_url="http://test") as test_client:
        yield test_client
