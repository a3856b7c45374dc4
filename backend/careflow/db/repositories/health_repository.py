"""
Database probes used by the health check.
"""

import time

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession


class HealthRepository:
    """Lightweight queries that confirm the store is reachable."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def ping(self) -> float:
        """
        Run a trivial query.

        Returns:
            Round-trip time in milliseconds

        Raises:
            SQLAlchemyError: The database is unreachable
        """
        started = time.perf_counter()
        await self.session.execute(text("SELECT 1"))
        return round((time.perf_counter() - started) * 1000, 2)
