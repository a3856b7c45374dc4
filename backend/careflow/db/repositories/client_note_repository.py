"""
Client note repository for database operations.
"""

from typing import List, Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from careflow.db.repositories.base_repository import BaseRepository
from careflow.models.client_note import ClientNote


class ClientNoteRepository(BaseRepository[ClientNote]):
    """Repository for client note operations."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(ClientNote, session)
    
    async def get(self, id: UUID) -> Optional[ClientNote]:
        """Get note by ID with its author."""
        result = await self.session.execute(
            select(ClientNote).options(joinedload(ClientNote.user)).where(ClientNote.id == id)
        )
        return result.scalar_one_or_none()
    
    async def list_by_client(self, client_id: UUID) -> List[ClientNote]:
        """List a client's notes with authors, newest first."""
        result = await self.session.execute(
            select(ClientNote)
            .options(joinedload(ClientNote.user))
            .where(ClientNote.client_id == client_id)
            .order_by(ClientNote.created_at.desc())
        )
        return list(result.scalars().all())
