"""
Taskforge Backend — Database Session Management
=================================================

What:  Async SQLAlchemy engine/session factories, declarative base, and the
       per-request session dependency.
How:   `build_engine()` creates an async engine from a Settings object;
       `create_app()` stores the engine and its session factory on `app.state`.
       `get_db_session()` opens one session per request that commits on
       success and rolls back on error.
Who:   Route dependencies, Alembic (Base.metadata), and the test suite.

Connection Pooling (PostgreSQL):
    pool_size / max_overflow from settings, pool_pre_ping to catch stale
    connections, pool_recycle=3600 to retire long-lived connections.
    SQLite URLs skip pool sizing; in-memory SQLite uses a StaticPool so every
    session sees the same database.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool
from starlette.requests import Request

from taskforge.config import Settings


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object so Alembic and `create_all()` see every table.
    """
    pass


# ── Engine Configuration ──────────────────────────────────────────────────
def build_engine(settings: Settings) -> AsyncEngine:
    """
    Create the async engine for the configured database URL.

    Echoes SQL when LOG_LEVEL is DEBUG.
    """
    kwargs = {"echo": settings.log_level == "DEBUG"}

    if settings.is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in settings.database_url:
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )

    return create_async_engine(settings.database_url, **kwargs)


# ── Session Factory ───────────────────────────────────────────────────────
def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to `engine`.

    expire_on_commit=False keeps ORM attributes readable after commit, when
    response models are built from them.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the app's factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global error handler
        5. Always: closes the session (returns connection to pool)
    """
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def create_all(engine: AsyncEngine) -> None:
    """
    Create every table known to Base.metadata.

    Used for SQLite development databases and tests; PostgreSQL deployments
    run `alembic upgrade head` instead.
    """
    # Register models with the metadata before creating tables
    from taskforge.models import task, user  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine(engine: AsyncEngine) -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
