"""
Message repository for database operations.
"""

from typing import Optional, List, Dict, Any
from uuid import UUID
from sqlalchemy import select, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from careflow.db.repositories.base_repository import BaseRepository
from careflow.models.message import Message


class MessageRepository(BaseRepository[Message]):
    """Repository for message operations."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(Message, session)
    
    def _with_users(self):
        return select(Message).options(
            joinedload(Message.sender),
            joinedload(Message.recipient),
        )
    
    async def get(self, id: UUID) -> Optional[Message]:
        """Get message by ID with sender and recipient."""
        result = await self.session.execute(self._with_users().where(Message.id == id))
        return result.scalar_one_or_none()
    
    async def create_many(self, rows: List[Dict[str, Any]]) -> List[Message]:
        """Insert one message per row in a single flush."""
        messages = [Message(**row) for row in rows]
        self.session.add_all(messages)
        await self.session.flush()
        return messages
    
    async def list_for_user(
        self,
        user_id: UUID,
        organization_id: UUID,
        box: str = "inbox",
    ) -> List[Message]:
        """
        List messages for a user, newest first.
        
        Args:
            box: 'inbox' (received), 'sent', or 'all'
        """
        query = self._with_users().where(Message.organization_id == organization_id)
        if box == "inbox":
            query = query.where(Message.recipient_id == user_id)
        elif box == "sent":
            query = query.where(Message.sender_id == user_id)
        else:
            query = query.where(or_(Message.sender_id == user_id, Message.recipient_id == user_id))
        result = await self.session.execute(query.order_by(Message.created_at.desc()))
        return list(result.scalars().all())
    
    async def list_conversation(
        self,
        user_id: UUID,
        other_user_id: UUID,
        organization_id: UUID,
    ) -> List[Message]:
        """List messages exchanged between two users, oldest first."""
        result = await self.session.execute(
            self._with_users()
            .where(
                Message.organization_id == organization_id,
                or_(
                    and_(Message.sender_id == user_id, Message.recipient_id == other_user_id),
                    and_(Message.sender_id == other_user_id, Message.recipient_id == user_id),
                ),
            )
            .order_by(Message.created_at.asc())
        )
        return list(result.scalars().all())
    
    async def search(self, user_id: UUID, organization_id: UUID, term: str) -> List[Message]:
        """Case-insensitive search over subject and content of a user's messages."""
        pattern = f"%{term}%"
        result = await self.session.execute(
            self._with_users()
            .where(
                Message.organization_id == organization_id,
                or_(Message.sender_id == user_id, Message.recipient_id == user_id),
                or_(Message.subject.ilike(pattern), Message.content.ilike(pattern)),
            )
            .order_by(Message.created_at.desc())
        )
        return list(result.scalars().all())
