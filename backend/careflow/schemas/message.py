"""
Message Pydantic schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime
from uuid import UUID


class MessageParticipant(BaseModel):
    """Embedded user info for message sender/recipient."""
    id: UUID
    name: str
    email: str

    class Config:
        from_attributes = True


class MessageCreate(BaseModel):
    """Schema for sending a message to one user."""
    recipient_id: UUID
    subject: Optional[str] = Field(None, max_length=255)
    content: str = Field(..., min_length=1)


class BroadcastRequest(BaseModel):
    """
    Schema for broadcasting a message.
    Either all active users (except the sender) or an explicit recipient list.
    """
    subject: Optional[str] = Field(None, max_length=255)
    content: str = Field(..., min_length=1)
    recipient_ids: List[UUID] = []
    all_users: bool = False


class BroadcastResult(BaseModel):
    """Number of message rows written by a broadcast."""
    sent_count: int


class MessageResponse(BaseModel):
    """Schema for message response."""
    id: UUID
    organization_id: UUID
    sender_id: UUID
    recipient_id: UUID
    subject: Optional[str] = None
    content: str
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    sender: Optional[MessageParticipant] = None
    recipient: Optional[MessageParticipant] = None

    class Config:
        from_attributes = True


class MessageListResponse(BaseModel):
    """Schema for message list response."""
    items: List[MessageResponse]
    total: int


class ConversationSummary(BaseModel):
    """One conversation partner with the latest message and unread count."""
    user: MessageParticipant
    last_message: MessageResponse
    unread_count: int


MessageBox = Literal["inbox", "sent", "all"]
