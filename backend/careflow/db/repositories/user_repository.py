"""
User repository for database operations.
"""

from typing import Optional, List
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.db.repositories.base_repository import BaseRepository
from careflow.models.user import User, UserRole


class UserRepository(BaseRepository[User]):
    """Repository for user operations."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(User, session)
    
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()
    
    async def list_active_ids(
        self,
        organization_id: UUID,
        exclude_id: Optional[UUID] = None,
        role: Optional[UserRole] = None,
    ) -> List[UUID]:
        """List ids of active users in an organization."""
        query = select(User.id).where(
            User.organization_id == organization_id,
            User.is_active.is_(True),
        )
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        if role is not None:
            query = query.where(User.role == role)
        result = await self.session.execute(query.order_by(User.name))
        return list(result.scalars().all())
