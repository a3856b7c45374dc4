"""
Referral controller.
"""

from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.controllers.base_controller import BaseController
from careflow.models.user import User
from careflow.services.referral_service import ReferralService
from careflow.schemas.client import ClientResponse
from careflow.schemas.referral import (
    IntakeForm,
    ReferralCreate,
    ReferralUpdate,
    ReferralResponse,
    ReferralListResponse,
)


class ReferralController(BaseController):
    """Controller for referral operations."""
    
    def __init__(self, session: AsyncSession):
        self.referral_service = ReferralService(session)
    
    async def create_referral(self, referral_data: ReferralCreate, actor: User) -> ReferralResponse:
        """Create a new referral."""
        return await self.referral_service.create_referral(referral_data, actor)
    
    async def get_referral(self, referral_id: UUID, actor: User) -> ReferralResponse:
        """Get referral by ID."""
        return await self.referral_service.get_referral(referral_id, actor)
    
    async def list_prospects(self, actor: User, skip: int = 0, limit: int = 100) -> ReferralListResponse:
        """List referrals not yet converted or linked."""
        referrals, total = await self.referral_service.list_prospects(actor, skip=skip, limit=limit)
        return ReferralListResponse(items=referrals, total=total)
    
    async def list_by_client(self, client_id: UUID, actor: User) -> ReferralListResponse:
        """List referrals linked to a client."""
        referrals, total = await self.referral_service.list_by_client(client_id, actor)
        return ReferralListResponse(items=referrals, total=total)
    
    async def update_referral(self, referral_id: UUID, referral_data: ReferralUpdate, actor: User) -> ReferralResponse:
        """Update a referral."""
        return await self.referral_service.update_referral(referral_id, referral_data, actor)
    
    async def delete_referral(self, referral_id: UUID, actor: User) -> bool:
        """Delete a referral."""
        return await self.referral_service.delete_referral(referral_id, actor)
    
    async def convert_to_client(self, referral_id: UUID, form: IntakeForm, actor: User) -> ClientResponse:
        """Convert a referral into a client."""
        return await self.referral_service.convert_to_client(referral_id, form, actor)
