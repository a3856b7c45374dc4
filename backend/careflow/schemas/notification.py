"""
Notification Pydantic schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime
from uuid import UUID

from careflow.models.notification import NotificationType


class NotificationCreate(BaseModel):
    """Schema for creating a notification addressed to one user."""
    user_id: UUID
    type: NotificationType = NotificationType.GENERAL
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    related_entity_type: Optional[str] = Field(None, max_length=50)
    related_entity_id: Optional[str] = Field(None, max_length=64)
    force: bool = False


class NotificationBroadcast(BaseModel):
    """Notification content sent to several users; recipients are passed separately."""
    type: NotificationType = NotificationType.GENERAL
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    related_entity_type: Optional[str] = Field(None, max_length=50)
    related_entity_id: Optional[str] = Field(None, max_length=64)
    force: bool = False


class NotificationResponse(BaseModel):
    """Schema for notification response."""
    id: UUID
    organization_id: UUID
    user_id: UUID
    type: NotificationType
    title: str
    message: str
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    """Schema for notification list response."""
    items: List[NotificationResponse]
    total: int


class NotificationIdsRequest(BaseModel):
    """Bulk operation target ids."""
    ids: List[UUID] = Field(..., min_length=1)


class UnreadCountResponse(BaseModel):
    """Unread count, recomputed from the store, plus the client polling interval."""
    count: int
    poll_interval_seconds: int


class UnreadCountByTypeResponse(BaseModel):
    """Unread counts per notification type."""
    counts: Dict[NotificationType, int]
