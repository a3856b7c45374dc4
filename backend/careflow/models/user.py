"""
User model for agency staff (admins and marketers).
"""

from sqlalchemy import Column, String, Boolean, DateTime, JSON, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
import uuid
import enum

from careflow.db.base import Base
from careflow.utils.timeutils import utcnow


class UserRole(str, enum.Enum):
    """User role enumeration."""
    ADMIN = "admin"
    MARKETER = "marketer"


class User(Base):
    """Staff member belonging to one organization."""
    
    __tablename__ = "users"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    organization_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.MARKETER)
    is_active = Column(Boolean, nullable=False, default=True)
    # {"in_app": {"message_received": false, ...}}; absent keys mean enabled
    notification_preferences = Column(JSON, nullable=True, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
