"""
Caregiver repository for database operations.
"""

from datetime import datetime
from typing import Optional, List
from uuid import UUID
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.db.repositories.base_repository import BaseRepository
from careflow.models.caregiver import ClientCaregiver, CaregiverStatus


class CaregiverRepository(BaseRepository[ClientCaregiver]):
    """Repository for caregiver operations."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(ClientCaregiver, session)
    
    async def get_for_org(self, id: UUID, organization_id: UUID) -> Optional[ClientCaregiver]:
        """Get caregiver by ID within an organization."""
        result = await self.session.execute(
            select(ClientCaregiver).where(
                ClientCaregiver.id == id,
                ClientCaregiver.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()
    
    async def get_active_for_client(self, client_id: UUID) -> Optional[ClientCaregiver]:
        """Get the client's active caregiver, if any."""
        result = await self.session.execute(
            select(ClientCaregiver)
            .where(
                ClientCaregiver.client_id == client_id,
                ClientCaregiver.status == CaregiverStatus.ACTIVE,
            )
            .order_by(ClientCaregiver.started_at.desc())
        )
        return result.scalars().first()
    
    async def list_by_client(self, client_id: UUID) -> List[ClientCaregiver]:
        """List a client's caregivers, newest assignment first."""
        result = await self.session.execute(
            select(ClientCaregiver)
            .where(ClientCaregiver.client_id == client_id)
            .order_by(ClientCaregiver.started_at.desc())
        )
        return list(result.scalars().all())
    
    async def list_for_org(
        self,
        organization_id: UUID,
        standalone_only: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> List[ClientCaregiver]:
        """List caregivers in an organization, optionally only the unassigned pool."""
        query = select(ClientCaregiver).where(ClientCaregiver.organization_id == organization_id)
        if standalone_only:
            query = query.where(ClientCaregiver.client_id.is_(None))
        query = query.order_by(ClientCaregiver.created_at.desc()).offset(skip).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())
    
    async def deactivate_active_for_client(self, client_id: UUID, ended_at: datetime) -> int:
        """
        Deactivate whatever caregiver is active on the client.
        
        Returns:
            Number of rows deactivated (0 or 1 while the index holds)
        """
        result = await self.session.execute(
            update(ClientCaregiver)
            .where(
                ClientCaregiver.client_id == client_id,
                ClientCaregiver.status == CaregiverStatus.ACTIVE,
            )
            .values(status=CaregiverStatus.INACTIVE, ended_at=ended_at)
            .execution_options(synchronize_session="fetch")
        )
        await self.session.flush()
        return result.rowcount
    
    async def activate_for_client(
        self,
        caregiver_id: UUID,
        client_id: UUID,
        started_at: datetime,
    ) -> Optional[ClientCaregiver]:
        """Attach the caregiver to the client as its active caregiver."""
        return await self.update(
            caregiver_id,
            client_id=client_id,
            status=CaregiverStatus.ACTIVE,
            ended_at=None,
            started_at=started_at,
        )
