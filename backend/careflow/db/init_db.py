"""
Database bootstrapping for local development and tests.
Production schemas are managed with migrations.
"""

from sqlalchemy.ext.asyncio import AsyncEngine

from careflow.db.base import Base
from careflow.core.logging import get_logger

logger = get_logger(__name__)


async def create_tables(bind: AsyncEngine) -> None:
    """
    Create all tables registered on Base.
    """
    # Registers every model with Base.metadata
    import careflow.models  # noqa: F401
    
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    logger.info("Database tables created", extra={"tables": sorted(Base.metadata.tables)})


async def drop_tables(bind: AsyncEngine) -> None:
    """Drop all tables registered on Base."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    
    logger.info("Database tables dropped")
