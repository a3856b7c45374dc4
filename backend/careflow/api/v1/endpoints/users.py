"""
User API endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.api.v1.middleware import require_authentication
from careflow.controllers.user_controller import UserController
from careflow.db.session import get_db
from careflow.models.user import User
from careflow.schemas.user import (
    NotificationPreferences,
    UserCreate,
    UserListResponse,
    UserResponse,
    UserRoleUpdate,
)

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: User = Depends(require_authentication),
) -> UserResponse:
    """Get the calling user."""
    return UserResponse.model_validate(current_user)


@router.put("/me/notification-preferences", response_model=UserResponse)
async def update_my_preferences(
    preferences: NotificationPreferences,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> UserResponse:
    """Replace your in-app notification preferences."""
    controller = UserController(db)
    return await controller.update_notification_preferences(preferences, current_user)


@router.get("", response_model=UserListResponse)
async def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    active_only: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> UserListResponse:
    """List users in your organization."""
    controller = UserController(db)
    return await controller.list_users(current_user, skip=skip, limit=limit, active_only=active_only)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> UserResponse:
    """Add a user to your organization. Admin only."""
    controller = UserController(db)
    return await controller.create_user(user_data, current_user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> UserResponse:
    """Get user by ID."""
    controller = UserController(db)
    return await controller.get_user(user_id, current_user)


@router.post("/{user_id}/deactivate", response_model=UserResponse)
async def deactivate_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> UserResponse:
    """Deactivate a user. Admin only."""
    controller = UserController(db)
    return await controller.set_active(user_id, False, current_user)


@router.post("/{user_id}/reactivate", response_model=UserResponse)
async def reactivate_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> UserResponse:
    """Reactivate a user. Admin only."""
    controller = UserController(db)
    return await controller.set_active(user_id, True, current_user)


@router.put("/{user_id}/role", response_model=UserResponse)
async def change_role(
    user_id: UUID,
    body: UserRoleUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> UserResponse:
    """Change a user's role. Admin only."""
    controller = UserController(db)
    return await controller.change_role(user_id, body.role, current_user)
