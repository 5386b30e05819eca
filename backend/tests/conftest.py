"""
WeatherCrops API - Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Points the application at a throw-away SQLite file *before* any
       weathercrops_api import, since the engine is built at import time.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock database session (no real DB needed)
    ├── db_tables: Creates the schema on the test database, drops it afterwards
    └── test_client: HTTPX AsyncClient for API endpoint testing
"""

import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run before weathercrops_api is imported anywhere
_DB_DIR = tempfile.mkdtemp(prefix="weathercrops_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests
os.environ["DB_CREATE_TABLES"] = "false"
os.environ["PASSWORD_MIN_LENGTH"] = "8"


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    `execute()` resolves to a plain MagicMock result so tests can set
    `scalar_one_or_none` / `all` return values synchronously.

    Usage:
        async def test_duplicate(mock_db_session):
            mock_db_session.execute.return_value.scalar_one_or_none.return_value = 1
    """
    session = AsyncMock()
    session.execute = AsyncMock(return_value=MagicMock())
    session.execute.return_value.scalar_one_or_none.return_value = None
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def db_tables():
    """
    Creates the users table on the test database and drops it afterwards.

    Tests that need a missing table simply don't request this fixture.
    """
    from weathercrops_api.database import Base, create_tables, engine

    await create_tables(engine)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def test_client():
    """
    Provides an async HTTP test client for endpoint testing.

    How:     Uses ASGITransport to route requests directly to the app.
             Dependency overrides set by a test are cleared afterwards.
    """
    from weathercrops_api.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
