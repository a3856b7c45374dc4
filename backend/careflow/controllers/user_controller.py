"""
User controller.
"""

from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.controllers.base_controller import BaseController
from careflow.models.user import User, UserRole
from careflow.services.user_service import UserService
from careflow.schemas.user import NotificationPreferences, UserCreate, UserResponse, UserListResponse


class UserController(BaseController):
    """Controller for user operations."""
    
    def __init__(self, session: AsyncSession):
        self.user_service = UserService(session)
    
    async def get_user(self, user_id: UUID, actor: User) -> UserResponse:
        """Get user by ID."""
        return await self.user_service.get_user(user_id, actor)
    
    async def list_users(
        self,
        actor: User,
        skip: int = 0,
        limit: int = 100,
        active_only: bool = False,
    ) -> UserListResponse:
        """List users in the organization."""
        users, total = await self.user_service.list_users(actor, skip=skip, limit=limit, active_only=active_only)
        return UserListResponse(items=users, total=total)
    
    async def create_user(self, user_data: UserCreate, actor: User) -> UserResponse:
        """Create a user."""
        return await self.user_service.create_user(user_data, actor)
    
    async def update_notification_preferences(self, preferences: NotificationPreferences, actor: User) -> UserResponse:
        """Replace the caller's notification preferences."""
        return await self.user_service.update_notification_preferences(preferences, actor)
    
    async def set_active(self, user_id: UUID, is_active: bool, actor: User) -> UserResponse:
        """Activate or deactivate a user."""
        return await self.user_service.set_active(user_id, is_active, actor)
    
    async def change_role(self, user_id: UUID, role: UserRole, actor: User) -> UserResponse:
        """Change a user's role."""
        return await self.user_service.change_role(user_id, role, actor)
