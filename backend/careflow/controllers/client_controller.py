"""
Client controller.
"""

from typing import Optional, Union
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.controllers.base_controller import BaseController
from careflow.models.client import ClientPhase, ClientStatus
from careflow.models.user import User
from careflow.services.client_service import ClientService
from careflow.services.client_note_service import ClientNoteService
from careflow.schemas.client import (
    ClientCreate,
    ClientUpdate,
    ClientResponse,
    ClientDetailResponse,
    ClientListResponse,
    PhaseProgressResponse,
)
from careflow.schemas.client_note import ClientNoteCreate, ClientNoteUpdate, ClientNoteResponse


class ClientController(BaseController):
    """Controller for client and client note operations."""
    
    def __init__(self, session: AsyncSession):
        self.client_service = ClientService(session)
        self.note_service = ClientNoteService(session)
    
    async def create_client(self, client_data: ClientCreate, actor: User) -> ClientResponse:
        """Create a new client."""
        return await self.client_service.create_client(client_data, actor)
    
    async def get_client(self, client_id: UUID, actor: User, include_details: bool = False) -> Union[ClientDetailResponse, ClientResponse]:
        """Get client by ID, optionally with related records."""
        if include_details:
            return await self.client_service.get_client_detail(client_id, actor)
        return await self.client_service.get_client(client_id, actor)
    
    async def list_clients(
        self,
        actor: User,
        skip: int = 0,
        limit: int = 100,
        sort: Optional[str] = "-created_at",
        phase: Optional[ClientPhase] = None,
        status: Optional[ClientStatus] = None,
        county: Optional[str] = None,
        program: Optional[str] = None,
        marketer_id: Optional[UUID] = None,
    ) -> ClientListResponse:
        """List clients with optional filters."""
        clients, total = await self.client_service.list_clients(
            actor,
            skip=skip,
            limit=limit,
            sort=sort,
            phase=phase,
            status=status,
            county=county,
            program=program,
            marketer_id=marketer_id,
        )
        return ClientListResponse(items=clients, total=total)
    
    async def update_client(self, client_id: UUID, client_data: ClientUpdate, actor: User) -> ClientResponse:
        """Update a client."""
        return await self.client_service.update_client(client_id, client_data, actor)
    
    async def update_checklist(self, client_id: UUID, field: str, value: bool, actor: User) -> ClientResponse:
        """Toggle a checklist item."""
        return await self.client_service.update_checklist(client_id, field, value, actor)
    
    async def advance_phase(self, client_id: UUID, actor: User) -> ClientResponse:
        """Advance a client to the next phase."""
        return await self.client_service.advance_phase(client_id, actor)
    
    async def finalize_phase(self, client_id: UUID, phase: ClientPhase, actor: User) -> ClientResponse:
        """Finalize a phase."""
        return await self.client_service.finalize_phase(client_id, phase, actor)
    
    async def correct_phase(self, client_id: UUID, phase: ClientPhase, actor: User) -> ClientResponse:
        """Move a client to another phase without gate checks."""
        return await self.client_service.correct_phase(client_id, phase, actor)
    
    async def get_phase_progress(self, client_id: UUID, actor: User) -> PhaseProgressResponse:
        """Get checklist progress per phase."""
        return await self.client_service.get_phase_progress(client_id, actor)
    
    async def delete_client(self, client_id: UUID, confirmation: str, actor: User) -> bool:
        """Delete a client."""
        return await self.client_service.delete_client(client_id, confirmation, actor)
    
    async def add_note(self, client_id: UUID, note_data: ClientNoteCreate, actor: User) -> ClientNoteResponse:
        """Add a note to a client."""
        return await self.note_service.add_note(client_id, note_data, actor)
    
    async def list_notes(self, client_id: UUID, actor: User):
        """List a client's notes."""
        return await self.note_service.list_notes(client_id, actor)
    
    async def update_note(
        self,
        client_id: UUID,
        note_id: UUID,
        note_data: ClientNoteUpdate,
        actor: User,
    ) -> ClientNoteResponse:
        """Edit a note."""
        return await self.note_service.update_note(client_id, note_id, note_data, actor)
    
    async def delete_note(self, client_id: UUID, note_id: UUID, actor: User) -> bool:
        """Delete a note."""
        return await self.note_service.delete_note(client_id, note_id, actor)
