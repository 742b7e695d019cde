"""Async engine, per-request sessions and schema bootstrap for the content store."""

from asyncio import wait_for
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from logging import getLogger
from time import perf_counter

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from halqa.configs import file_logger, settings

logger = file_logger(getLogger(__name__))

STATEMENT_TIMEOUT_MS = 30000


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DATABASE_ECHO,
    pool_size=settings.POOL_SIZE,
    max_overflow=settings.MAX_OVERFLOW,
    pool_timeout=settings.POOL_TIMEOUT,
    pool_recycle=settings.POOL_RECYCLE,
    pool_pre_ping=True,
    connect_args={
        "command_timeout": STATEMENT_TIMEOUT_MS / 1000,
        "server_settings": {
            "statement_timeout": str(STATEMENT_TIMEOUT_MS),
            "lock_timeout": str(STATEMENT_TIMEOUT_MS),
        },
    },
)


async_session_maker: async_sessionmaker[SQLModelAsyncSession] = async_sessionmaker(
    engine,
    class_=SQLModelAsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_session() -> AsyncGenerator[AsyncSession]:
    """
    Dependency for getting async database sessions.

    This function is used as a FastAPI dependency to provide
    database sessions to route handlers.

    Yields:
        AsyncSession: Database session

    Example:
        ```python
        @app.get("/authors")
        async def get_authors(session: AsyncSession = Depends(get_session)):
            result = await session.execute(select(AuthorDB))
            return result.scalars().all()
        ```
    """
    async with transaction() as session:
        yield session


@asynccontextmanager
async def transaction() -> AsyncGenerator[AsyncSession]:
    """
    Context manager for explicit transaction management.

    Use this for operations that need explicit transaction control.

    Yields:
        AsyncSession: Database session within a transaction

    Example:
        ```python
        async with transaction() as session:
            author = AuthorDB(handle="nadia", ...)
            session.add(author)
            # Commits on successful exit, rolls back on exception
        ```
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            logger.exception("Transaction error")
            raise
        finally:
            await session.close()


async def init_db() -> None:
    """
    Initialize database tables.

    This function creates all tables defined in SQLModel models.
    It should be called on application startup.

    Note:
        This is a simple initialization for development.
        For production, use proper migration tools like Alembic.
    """
    async with engine.begin() as conn:
        # Import all models to ensure they are registered
        from halqa.models import (  # noqa: F401, PLC0415
            AuthorDB,
            AuthorRequestDB,
            CommentDB,
            PostDB,
            PreferenceDB,
            SettingDB,
        )

        # Create all tables
        await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("Database initialized successfully!")


async def close_db() -> None:
    """
    Close database connections.

    This function should be called on application shutdown
    to properly close all database connections.
    """
    await engine.dispose()
    logger.info("Database connections closed")


async def check_connection(timeout: float = 2.0) -> tuple[bool, int | None]:
    """
    Run ``SELECT 1`` against the content store.

    Args:
        timeout: Seconds to wait before declaring the store unreachable.

    Returns:
        tuple[bool, int | None]: Reachability and round trip in milliseconds.
    """
    start = perf_counter()
    try:
        async with async_session_maker() as session:
            await wait_for(session.execute(text("SELECT 1")), timeout=timeout)
    except Exception as e:  # noqa: BLE001
        logger.warning(f"Database health check failed: {e}")
        return False, None
    return True, int((perf_counter() - start) * 1000)
