"""
User Pydantic schemas.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Dict, List
from datetime import datetime
from uuid import UUID

from careflow.models.user import UserRole
from careflow.models.notification import NotificationType


class NotificationPreferences(BaseModel):
    """Per-channel, per-type switches. Types not listed are enabled."""
    in_app: Dict[NotificationType, bool] = {}


class UserCreate(BaseModel):
    """Schema for adding a user to an organization."""
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    role: UserRole = UserRole.MARKETER


class UserResponse(BaseModel):
    """Schema for user response."""
    id: UUID
    organization_id: UUID
    name: str
    email: str
    role: UserRole
    is_active: bool
    notification_preferences: Optional[NotificationPreferences] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    """Schema for user list response."""
    items: List[UserResponse]
    total: int


class UserRoleUpdate(BaseModel):
    """Schema for changing a user's role."""
    role: UserRole
