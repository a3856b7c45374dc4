"""
Notification model: a single in-app alert addressed to one user.
"""

from sqlalchemy import Column, String, Boolean, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
import uuid
import enum

from careflow.db.base import Base
from careflow.utils.timeutils import utcnow


class NotificationType(str, enum.Enum):
    """Notification type enumeration."""
    REFERRAL_CREATED = "referral_created"
    PHASE_COMPLETED = "phase_completed"
    MESSAGE_RECEIVED = "message_received"
    CLIENT_UPDATED = "client_updated"
    GENERAL = "general"


class Notification(Base):
    """In-app notification row."""

    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    organization_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(SQLEnum(NotificationType), nullable=False, default=NotificationType.GENERAL, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    related_entity_type = Column(String(50), nullable=True)
    related_entity_id = Column(String(64), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
