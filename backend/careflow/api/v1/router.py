"""
API v1 router that aggregates all endpoint routers.
All routes require the identity header except health.
"""

from fastapi import APIRouter, Depends
from careflow.api.v1.middleware import require_authentication

from careflow.api.v1.endpoints import (
    health,
    clients,
    caregivers,
    referrals,
    notifications,
    messages,
    users,
)

api_router = APIRouter()

# Public routes
api_router.include_router(health.router, tags=["health"])

# Protected routes; identity is enforced at the router level
api_router.include_router(
    clients.router,
    prefix="/clients",
    tags=["clients"],
    dependencies=[Depends(require_authentication)],
)
api_router.include_router(
    caregivers.router,
    prefix="/caregivers",
    tags=["caregivers"],
    dependencies=[Depends(require_authentication)],
)
api_router.include_router(
    referrals.router,
    prefix="/referrals",
    tags=["referrals"],
    dependencies=[Depends(require_authentication)],
)
api_router.include_router(
    notifications.router,
    prefix="/notifications",
    tags=["notifications"],
    dependencies=[Depends(require_authentication)],
)
api_router.include_router(
    messages.router,
    prefix="/messages",
    tags=["messages"],
    dependencies=[Depends(require_authentication)],
)
api_router.include_router(
    users.router,
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(require_authentication)],
)
