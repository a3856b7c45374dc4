"""
Notification controller.
"""

from typing import List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.controllers.base_controller import BaseController
from careflow.core.config import settings
from careflow.models.notification import NotificationType
from careflow.models.user import User
from careflow.services.notification_broker import NotificationBroker
from careflow.services.notification_service import NotificationService
from careflow.schemas.notification import (
    NotificationCreate,
    NotificationResponse,
    NotificationListResponse,
    UnreadCountResponse,
    UnreadCountByTypeResponse,
)


class NotificationController(BaseController):
    """Controller for notification operations."""
    
    def __init__(self, session: AsyncSession, broker: NotificationBroker = None):
        self.notification_service = NotificationService(session, broker)
    
    async def create(self, notification_data: NotificationCreate, actor: User) -> Optional[NotificationResponse]:
        """Create a notification for one user."""
        return await self.notification_service.create(notification_data, actor)
    
    async def list_notifications(
        self,
        actor: User,
        type: Optional[NotificationType] = None,
        unread_only: bool = False,
        limit: Optional[int] = None,
    ) -> NotificationListResponse:
        """List the caller's notifications."""
        items, total = await self.notification_service.list_for_user(
            actor,
            type=type,
            unread_only=unread_only,
            limit=limit,
        )
        return NotificationListResponse(items=items, total=total)
    
    async def get_recent(self, actor: User, limit: int = 10) -> NotificationListResponse:
        """List recent notifications."""
        items = await self.notification_service.get_recent(actor, limit=limit)
        return NotificationListResponse(items=items, total=len(items))
    
    async def get_unread_count(self, actor: User) -> UnreadCountResponse:
        """Unread count with the polling interval clients should use."""
        count = await self.notification_service.get_unread_count(actor)
        return UnreadCountResponse(
            count=count,
            poll_interval_seconds=settings.NOTIFICATION_POLL_INTERVAL_SECONDS,
        )
    
    async def get_unread_count_by_type(self, actor: User) -> UnreadCountByTypeResponse:
        """Unread counts per type."""
        counts = await self.notification_service.get_unread_count_by_type(actor)
        return UnreadCountByTypeResponse(counts=counts)
    
    async def mark_as_read(self, notification_id: UUID, actor: User) -> NotificationResponse:
        """Mark one notification as read."""
        return await self.notification_service.mark_as_read(notification_id, actor)
    
    async def mark_multiple_as_read(self, ids: List[UUID], actor: User) -> int:
        """Mark several notifications as read."""
        return await self.notification_service.mark_multiple_as_read(ids, actor)
    
    async def mark_all_as_read(self, actor: User) -> int:
        """Mark all notifications as read."""
        return await self.notification_service.mark_all_as_read(actor)
    
    async def remove(self, notification_id: UUID, actor: User) -> bool:
        """Delete one notification."""
        return await self.notification_service.remove(notification_id, actor)
    
    async def remove_multiple(self, ids: List[UUID], actor: User) -> int:
        """Delete several notifications."""
        return await self.notification_service.remove_multiple(ids, actor)
    
    async def clear_read(self, actor: User) -> int:
        """Delete all read notifications."""
        return await self.notification_service.clear_read(actor)
