"""
Health endpoint tests using pytest-asyncio and httpx.AsyncClient.
"""

import uuid

import pytest

from careflow.core.config import settings
from careflow.services.health_service import HealthService
from careflow.services.notification_broker import NotificationBroker


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/api/v1/health", "/health"])
async def test_health_endpoint(test_client, path):
    """Test the health check endpoint returns expected structure."""
    response = await test_client.get(path)

    assert response.status_code == 200
    data = response.json()

    assert "status" in data
    assert "uptime" in data
    assert "checks" in data
    assert isinstance(data["checks"], dict)

    # Status should be "ok" or "degraded"
    assert data["status"] in ["ok", "degraded"]
    assert data["uptime"].startswith("PT")
    assert data["version"] == settings.VERSION


@pytest.mark.asyncio
async def test_health_reports_database_and_stream(test_client):
    # test_client points the process sessionmaker at the in-memory database
    broker = NotificationBroker(queue_size=2)
    user_id = uuid.uuid4()
    broker.subscribe(user_id)

    health = await HealthService(broker).get_health()

    assert health.status == "ok"
    assert health.checks["database"]["status"] == "ok"
    assert health.checks["notification_stream"]["subscribers"] == 1
    assert broker.subscriber_count(user_id) == 1
