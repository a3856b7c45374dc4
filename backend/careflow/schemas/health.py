"""
Health check response schemas.
"""

from typing import Any, Dict, Literal

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Overall status, ISO 8601 uptime and per-dependency checks."""
    status: Literal["ok", "degraded"]
    version: str
    uptime: str
    checks: Dict[str, Dict[str, Any]] = {}
