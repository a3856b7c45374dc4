"""
Health service.
Reports store reachability and live notification stream load.
"""

import time
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from careflow.core.config import settings
from careflow.core.logging import get_logger
from careflow.db.repositories.health_repository import HealthRepository
from careflow.db.session import get_sessionmaker
from careflow.schemas.health import HealthResponse
from careflow.services.base_service import BaseService
from careflow.services.notification_broker import NotificationBroker, notification_broker

logger = get_logger(__name__)


class HealthService(BaseService):
    """Service for health check operations."""

    def __init__(self, broker: Optional[NotificationBroker] = None):
        self.started_at = time.monotonic()
        self.broker = broker or notification_broker

    async def _check_database(self) -> Dict[str, Any]:
        try:
            async with get_sessionmaker()() as session:
                latency_ms = await HealthRepository(session).ping()
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("Database health check failed", exc_info=True)
            return {"status": "error", "error": str(exc)}
        return {"status": "ok", "latency_ms": latency_ms}

    async def get_health(self) -> HealthResponse:
        """
        Get system health status.

        The service is `degraded` when the database cannot be reached; stream
        subscribers are reported for visibility only.
        """
        database = await self._check_database()
        checks = {
            "database": database,
            "notification_stream": {
                "status": "ok",
                "subscribers": self.broker.subscriber_count(),
            },
        }
        return HealthResponse(
            status="ok" if database["status"] == "ok" else "degraded",
            version=settings.VERSION,
            uptime=f"PT{int(time.monotonic() - self.started_at)}S",
            checks=checks,
        )
