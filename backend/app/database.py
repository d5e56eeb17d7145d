"""
Inkpost Backend — Database Session Management
===============================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   Creates an async engine with connection pooling, provides a session
       dependency that auto-commits on success and auto-rolls-back on error.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created at module import; sessions are created per-request.

Connection Pooling Strategy (PostgreSQL):
    pool_size=20:      Persistent connections for normal load
    max_overflow=10:   Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:     Validates connections before use
    pool_recycle=3600: Recycles connections every hour

    SQLite URLs (local development, tests) skip the pool arguments because
    aiosqlite uses its own pool classes.

Atomicity:
    The session gives per-request transactions. The post counter on users is
    only ever changed by single UPDATE ... SET posts = posts ± 1 statements,
    so concurrent requests for the same user cannot lose updates.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import Settings, settings


def build_engine(app_settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database URL."""
    options: Dict[str, Any] = {
        # Echo SQL queries in DEBUG mode for development visibility
        "echo": app_settings.log_level == "DEBUG",
    }
    if not app_settings.database_url.startswith("sqlite"):
        options.update(
            pool_size=app_settings.db_pool_size,
            max_overflow=app_settings.db_max_overflow,
            pool_pre_ping=app_settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(app_settings.database_url, **options)


# ── Engine Configuration ──────────────────────────────────────────────────
engine = build_engine(settings)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after commit, which the
# services rely on when they serialize a row right after committing it
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class to register with the shared metadata
    (used by Alembic for migrations and by init_models for local setup).
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler (the handler performs queries)
        3. On success: commits the transaction (saves changes)
        4. On error: rolls back the transaction (discards changes)
        5. Always: closes the session (returns connection to pool)

    Services may commit earlier themselves (before removing replaced media
    files); the final commit is then a no-op.

    Example usage in a route:
        @router.get("/api/posts")
        async def get_posts(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise  # Re-raise so the global error handler can respond appropriately
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def init_models(bind: AsyncEngine) -> None:
    """
    What:  Creates all tables registered on Base.metadata.
    When:  Startup with DB_CREATE_ALL=true, and in the test suite.
    How:   Runs metadata.create_all through run_sync on an async connection.
    """
    # Registers the mappers on Base.metadata
    from app.models import post, user  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
