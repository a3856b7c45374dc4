"""
Referral repository for database operations.
"""

from typing import Optional, List
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.db.repositories.base_repository import BaseRepository
from careflow.models.referral import Referral


class ReferralRepository(BaseRepository[Referral]):
    """Repository for referral operations."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(Referral, session)
    
    async def get_for_org(self, id: UUID, organization_id: UUID) -> Optional[Referral]:
        """Get referral by ID within an organization."""
        result = await self.session.execute(
            select(Referral).where(
                Referral.id == id,
                Referral.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()
    
    async def list_prospects(
        self,
        organization_id: UUID,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Referral]:
        """List referrals not yet tied to a client, newest first."""
        result = await self.session.execute(
            select(Referral)
            .where(
                Referral.organization_id == organization_id,
                Referral.client_id.is_(None),
            )
            .order_by(Referral.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())
    
    async def list_by_client(self, client_id: UUID) -> List[Referral]:
        """List referrals tied to a client, newest first."""
        return await self.list(sort="-created_at", client_id=client_id)
