"""
Notification repository for database operations.
"""

from datetime import datetime
from typing import Optional, List, Dict, Iterable
from uuid import UUID
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.db.repositories.base_repository import BaseRepository
from careflow.models.notification import Notification, NotificationType


class NotificationRepository(BaseRepository[Notification]):
    """Repository for notification operations."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(Notification, session)
    
    async def list_for_user(
        self,
        user_id: UUID,
        organization_id: UUID,
        type: Optional[NotificationType] = None,
        unread_only: bool = False,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Notification]:
        """List a user's notifications, newest first."""
        query = select(Notification).where(
            Notification.user_id == user_id,
            Notification.organization_id == organization_id,
        )
        if type is not None:
            query = query.where(Notification.type == type)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        if since is not None:
            query = query.where(Notification.created_at >= since)
        query = query.order_by(Notification.created_at.desc())
        if limit:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())
    
    async def count_unread(self, user_id: UUID, organization_id: UUID) -> int:
        """Count a user's unread notifications."""
        return await self.count(
            user_id=user_id,
            organization_id=organization_id,
            is_read=False,
        )
    
    async def count_unread_by_type(self, user_id: UUID, organization_id: UUID) -> Dict[NotificationType, int]:
        """Count a user's unread notifications grouped by type."""
        result = await self.session.execute(
            select(Notification.type, func.count())
            .where(
                Notification.user_id == user_id,
                Notification.organization_id == organization_id,
                Notification.is_read.is_(False),
            )
            .group_by(Notification.type)
        )
        return {row[0]: row[1] for row in result.all()}
    
    async def mark_read(
        self,
        user_id: UUID,
        read_at: datetime,
        ids: Optional[Iterable[UUID]] = None,
        organization_id: Optional[UUID] = None,
    ) -> List[Notification]:
        """
        Mark a user's unread notifications as read.
        Rows owned by other users are never touched.
        """
        criteria = [Notification.user_id == user_id, Notification.is_read.is_(False)]
        if ids is not None:
            criteria.append(Notification.id.in_(list(ids)))
        if organization_id is not None:
            criteria.append(Notification.organization_id == organization_id)
        
        id_result = await self.session.execute(select(Notification.id).where(*criteria))
        target_ids = list(id_result.scalars().all())
        if not target_ids:
            return []
        
        await self.session.execute(
            update(Notification)
            .where(Notification.id.in_(target_ids))
            .values(is_read=True, read_at=read_at)
            .execution_options(synchronize_session="fetch")
        )
        await self.session.flush()
        result = await self.session.execute(
            select(Notification)
            .where(Notification.id.in_(target_ids))
            .order_by(Notification.created_at.desc())
        )
        return list(result.scalars().all())
