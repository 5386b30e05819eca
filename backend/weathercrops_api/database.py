"""
WeatherCrops API - Database Session Management
===============================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   Creates an async engine, provides a session dependency that commits on
       success and rolls back on error.
Who:   Used by route handlers via FastAPI's dependency injection system and
       by the diagnostics check, which talks to the engine directly.
When:  Engine is created at module import; sessions are created per-request.

Connection Strategy:
    SQLite (tests, local runs):
        NullPool, so every session opens a short-lived connection and closes
        it when the request ends.
    Server databases (PostgreSQL via asyncpg):
        pool_size / max_overflow / pool_pre_ping come from settings;
        pool_recycle=3600 drops connections older than an hour.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from weathercrops_api.config import settings


def _engine_options() -> Dict[str, Any]:
    """Pool arguments for the configured database backend."""
    if settings.is_sqlite:
        # SQLite pools reject pool_size/max_overflow
        return {"poolclass": NullPool}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": settings.db_pool_pre_ping,
        "pool_recycle": 3600,
    }


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(
    settings.database_url,
    # SQL echo is only useful while debugging queries
    echo=settings.log_level == "DEBUG",
    **_engine_options(),
)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after commit, so the
# registration response can be built from the committed User object.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object between the models, Alembic
    (alembic/env.py) and the development-time `create_tables()` helper.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits anything the handler left pending
        4. On error: rolls back the transaction
        5. Always: closes the session (releases the connection)

    Example usage in a route:
        @router.get("/users")
        async def list_users(db: AsyncSession = Depends(get_db_session)):
            result = await db.execute(select(User))
            return result.scalars().all()

    Raises:
        Any database exceptions are propagated to the global error handler,
        which returns appropriate HTTP status codes.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise  # Re-raise so the global error handler can respond
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def create_tables(bind: AsyncEngine = engine) -> None:
    """
    What:  Creates any missing tables registered on Base.metadata.
    When:  At startup when DB_CREATE_TABLES is enabled, and in the test suite.
    """
    # Registers the User model on Base.metadata
    from weathercrops_api.models import user  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections held by the engine.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()


def get_engine() -> AsyncEngine:
    """FastAPI dependency returning the application engine (overridable in tests)."""
    return engine
