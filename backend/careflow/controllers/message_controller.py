"""
Message controller.
"""

from typing import List
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.controllers.base_controller import BaseController
from careflow.models.user import User
from careflow.services.message_service import MessageService
from careflow.schemas.message import (
    BroadcastRequest,
    BroadcastResult,
    ConversationSummary,
    MessageBox,
    MessageCreate,
    MessageResponse,
    MessageListResponse,
)


class MessageController(BaseController):
    """Controller for messaging operations."""
    
    def __init__(self, session: AsyncSession):
        self.message_service = MessageService(session)
    
    async def send(self, message_data: MessageCreate, actor: User) -> MessageResponse:
        """Send a direct message."""
        return await self.message_service.send(message_data, actor)
    
    async def broadcast(self, request: BroadcastRequest, actor: User) -> BroadcastResult:
        """Broadcast a message."""
        return await self.message_service.broadcast(request, actor)
    
    async def list_messages(self, actor: User, box: MessageBox = "inbox") -> MessageListResponse:
        """List messages in a box."""
        items, total = await self.message_service.list_messages(actor, box=box)
        return MessageListResponse(items=items, total=total)
    
    async def get_message(self, message_id: UUID, actor: User) -> MessageResponse:
        """Get one message."""
        return await self.message_service.get_message(message_id, actor)
    
    async def get_conversation(self, other_user_id: UUID, actor: User) -> MessageListResponse:
        """Conversation with another user."""
        items = await self.message_service.get_conversation(other_user_id, actor)
        return MessageListResponse(items=items, total=len(items))
    
    async def get_conversation_list(self, actor: User) -> List[ConversationSummary]:
        """Conversation partners with their latest message."""
        return await self.message_service.get_conversation_list(actor)
    
    async def mark_as_read(self, message_id: UUID, actor: User) -> MessageResponse:
        """Mark a received message as read."""
        return await self.message_service.mark_as_read(message_id, actor)
    
    async def get_unread_count(self, actor: User) -> int:
        """Unread inbox count."""
        return await self.message_service.get_unread_count(actor)
    
    async def search(self, term: str, actor: User) -> MessageListResponse:
        """Search messages."""
        items = await self.message_service.search(term, actor)
        return MessageListResponse(items=items, total=len(items))
    
    async def delete_message(self, message_id: UUID, actor: User) -> bool:
        """Delete a message."""
        return await self.message_service.delete_message(message_id, actor)
