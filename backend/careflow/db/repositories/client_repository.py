"""
Client repository for database operations.
"""

from typing import Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload, joinedload

from careflow.db.repositories.base_repository import BaseRepository
from careflow.models.client import Client
from careflow.models.client_note import ClientNote


class ClientRepository(BaseRepository[Client]):
    """Repository for client operations."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(Client, session)
    
    async def get_for_org(self, id: UUID, organization_id: UUID) -> Optional[Client]:
        """Get client by ID within an organization."""
        result = await self.session.execute(
            select(Client).where(
                Client.id == id,
                Client.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()
    
    async def get_for_update(self, id: UUID, organization_id: UUID) -> Optional[Client]:
        """
        Get client by ID and lock its row until the transaction ends.
        Serializes caregiver reassignment for the same client.
        """
        result = await self.session.execute(
            select(Client)
            .where(
                Client.id == id,
                Client.organization_id == organization_id,
            )
            .with_for_update()
        )
        return result.scalar_one_or_none()
    
    async def get_detail(self, id: UUID, organization_id: UUID) -> Optional[Client]:
        """Get client with caregivers, marketer, CM company, notes (+author) and referrals."""
        result = await self.session.execute(
            select(Client)
            .options(
                selectinload(Client.caregivers),
                joinedload(Client.marketer),
                joinedload(Client.cm_company),
                selectinload(Client.client_notes).joinedload(ClientNote.user),
                selectinload(Client.referrals),
            )
            .where(
                Client.id == id,
                Client.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()
