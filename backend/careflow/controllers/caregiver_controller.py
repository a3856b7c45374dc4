"""
Caregiver controller.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.controllers.base_controller import BaseController
from careflow.models.user import User
from careflow.services.caregiver_service import CaregiverService
from careflow.schemas.caregiver import (
    AssignmentResult,
    CaregiverCreate,
    CaregiverUpdate,
    CaregiverResponse,
    CaregiverListResponse,
)


class CaregiverController(BaseController):
    """Controller for caregiver operations."""
    
    def __init__(self, session: AsyncSession):
        self.caregiver_service = CaregiverService(session)
    
    async def create_standalone(self, caregiver_data: CaregiverCreate, actor: User) -> CaregiverResponse:
        """Create a caregiver in the unassigned pool."""
        return await self.caregiver_service.create_standalone(caregiver_data, actor)
    
    async def add_to_client(self, client_id: UUID, caregiver_data: CaregiverCreate, actor: User) -> CaregiverResponse:
        """Create a caregiver as the client's active caregiver."""
        return await self.caregiver_service.add_to_client(client_id, caregiver_data, actor)
    
    async def assign_to_client(
        self,
        caregiver_id: UUID,
        client_id: UUID,
        actor: User,
        confirm: bool = False,
    ) -> AssignmentResult:
        """Assign an existing caregiver to a client."""
        return await self.caregiver_service.assign_to_client(caregiver_id, client_id, actor, confirm=confirm)
    
    async def deactivate(
        self,
        caregiver_id: UUID,
        actor: User,
        ended_at: Optional[datetime] = None,
    ) -> CaregiverResponse:
        """Deactivate a caregiver."""
        return await self.caregiver_service.deactivate(caregiver_id, actor, ended_at=ended_at)
    
    async def get_caregiver(self, caregiver_id: UUID, actor: User) -> CaregiverResponse:
        """Get caregiver by ID."""
        return await self.caregiver_service.get_caregiver(caregiver_id, actor)
    
    async def list_caregivers(
        self,
        actor: User,
        standalone_only: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> CaregiverListResponse:
        """List caregivers."""
        caregivers, total = await self.caregiver_service.list_caregivers(
            actor,
            standalone_only=standalone_only,
            skip=skip,
            limit=limit,
        )
        return CaregiverListResponse(items=caregivers, total=total)
    
    async def list_by_client(self, client_id: UUID, actor: User) -> CaregiverListResponse:
        """List a client's caregivers."""
        caregivers, total = await self.caregiver_service.list_by_client(client_id, actor)
        return CaregiverListResponse(items=caregivers, total=total)
    
    async def update_caregiver(self, caregiver_id: UUID, caregiver_data: CaregiverUpdate, actor: User) -> CaregiverResponse:
        """Update a caregiver."""
        return await self.caregiver_service.update_caregiver(caregiver_id, caregiver_data, actor)
    
    async def finalize_onboarding(self, caregiver_id: UUID, actor: User) -> CaregiverResponse:
        """Finalize caregiver onboarding."""
        return await self.caregiver_service.finalize_onboarding(caregiver_id, actor)
    
    async def delete_caregiver(self, caregiver_id: UUID, actor: User) -> bool:
        """Delete a caregiver."""
        return await self.caregiver_service.delete_caregiver(caregiver_id, actor)
