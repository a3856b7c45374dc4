"""
User service with business logic.
"""

import logging
from typing import List, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from careflow.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from careflow.db.repositories.user_repository import UserRepository
from careflow.models.user import User, UserRole
from careflow.schemas.user import NotificationPreferences, UserCreate, UserResponse
from careflow.services.base_service import BaseService

logger = logging.getLogger(__name__)


def _require_admin(actor: User) -> None:
    if actor.role != UserRole.ADMIN:
        raise AuthorizationError("Admin role required")


class UserService(BaseService):
    """Service for organization staff."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)

    async def _get_user(self, user_id: UUID, actor: User) -> User:
        user = await self.user_repo.get(user_id)
        if not user or user.organization_id != actor.organization_id:
            raise NotFoundError("User", user_id)
        return user

    async def get_user(self, user_id: UUID, actor: User) -> UserResponse:
        """Get a user in the caller's organization."""
        return UserResponse.model_validate(await self._get_user(user_id, actor))

    async def list_users(
        self,
        actor: User,
        skip: int = 0,
        limit: int = 100,
        active_only: bool = False,
    ) -> Tuple[List[UserResponse], int]:
        """List users in the caller's organization."""
        filters = {"organization_id": actor.organization_id}
        if active_only:
            filters["is_active"] = True
        users = await self.user_repo.list(skip=skip, limit=limit, sort="name", **filters)
        total = await self.user_repo.count(**filters)
        return [UserResponse.model_validate(u) for u in users], total

    async def create_user(self, user_data: UserCreate, actor: User) -> UserResponse:
        """Add a user to the caller's organization. Admin only."""
        _require_admin(actor)
        email = user_data.email.lower()
        if await self.user_repo.get_by_email(email):
            raise ConflictError("Email already registered", {"email": email})
        user = await self.user_repo.create(
            organization_id=actor.organization_id,
            name=user_data.name.strip(),
            email=email,
            role=user_data.role,
            is_active=True,
            notification_preferences={},
        )
        await self.session.commit()
        logger.info("User created", extra={"user_id": str(user.id), "role": user.role.value})
        return UserResponse.model_validate(user)

    async def update_notification_preferences(
        self,
        preferences: NotificationPreferences,
        actor: User,
    ) -> UserResponse:
        """Replace the caller's own notification preferences."""
        updated = await self.user_repo.update(
            actor.id,
            notification_preferences=preferences.model_dump(mode="json"),
        )
        await self.session.commit()
        return UserResponse.model_validate(updated)

    async def set_active(self, user_id: UUID, is_active: bool, actor: User) -> UserResponse:
        """Deactivate or reactivate a user. Admin only; admins cannot deactivate themselves."""
        _require_admin(actor)
        user = await self._get_user(user_id, actor)
        if not is_active and user.id == actor.id:
            raise ValidationError("You cannot deactivate your own account")
        updated = await self.user_repo.update(user.id, is_active=is_active)
        await self.session.commit()
        logger.info(
            "User activation changed",
            extra={"user_id": str(user_id), "is_active": is_active, "actor_id": str(actor.id)},
        )
        return UserResponse.model_validate(updated)

    async def change_role(self, user_id: UUID, role: UserRole, actor: User) -> UserResponse:
        """Change a user's role. Admin only; admins cannot change their own role."""
        _require_admin(actor)
        user = await self._get_user(user_id, actor)
        if user.id == actor.id:
            raise ValidationError("You cannot change your own role")
        updated = await self.user_repo.update(user.id, role=role)
        await self.session.commit()
        logger.info(
            "User role changed",
            extra={"user_id": str(user_id), "role": role.value, "actor_id": str(actor.id)},
        )
        return UserResponse.model_validate(updated)
