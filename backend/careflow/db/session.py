"""
Async engine and session lifecycle.

One engine and sessionmaker per process. Request handlers get a session
through `get_db`; background consumers such as the notification stream open
short-lived sessions from `get_sessionmaker()`.
"""

from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from careflow.core.config import settings
from careflow.core.logging import get_logger

logger = get_logger(__name__)

engine: Optional[AsyncEngine] = None
async_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def _engine_options(database_url: str) -> Dict[str, Any]:
    # SQLite (local runs) has no server-side pool to size
    if make_url(database_url).get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,
    }


def create_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create the process-wide engine."""
    global engine

    url = database_url or settings.DATABASE_URL
    options = _engine_options(url)
    engine = create_async_engine(url, echo=settings.DB_ECHO, **options)

    logger.info(
        "Database engine created",
        extra={
            "backend": make_url(url).get_backend_name(),
            "pool_size": options.get("pool_size"),
            "max_overflow": options.get("max_overflow"),
        },
    )
    return engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Return the process-wide sessionmaker, creating it on first use."""
    global async_session_maker

    if async_session_maker is None:
        async_session_maker = async_sessionmaker(
            engine or create_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return async_session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session.

    Services commit their own writes; anything left pending when the handler
    returns is committed here, and any error rolls the session back before it
    propagates.
    """
    async with get_sessionmaker()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create the engine and sessionmaker at startup."""
    get_sessionmaker()
    logger.info("Database initialized")


async def close_db() -> None:
    """Dispose of pooled connections at shutdown."""
    global engine, async_session_maker

    if engine is not None:
        await engine.dispose()
        logger.info("Database connections closed")
    engine = None
    async_session_maker = None
