"""
Client API endpoints.
"""

from typing import List, Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.api.v1.middleware import require_authentication
from careflow.controllers.client_controller import ClientController
from careflow.controllers.caregiver_controller import CaregiverController
from careflow.controllers.referral_controller import ReferralController
from careflow.db.session import get_db
from careflow.models.client import ClientPhase, ClientStatus
from careflow.models.user import User
from careflow.schemas.caregiver import CaregiverCreate, CaregiverListResponse, CaregiverResponse
from careflow.schemas.client import (
    ChecklistUpdate,
    ClientCreate,
    ClientDeleteRequest,
    ClientDetailResponse,
    ClientListResponse,
    ClientResponse,
    ClientUpdate,
    PhaseChangeRequest,
    PhaseProgressResponse,
)
from careflow.schemas.client_note import ClientNoteCreate, ClientNoteResponse, ClientNoteUpdate
from careflow.schemas.referral import ReferralListResponse

router = APIRouter()


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    client_data: ClientCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ClientResponse:
    """Create a new client."""
    controller = ClientController(db)
    return await controller.create_client(client_data, current_user)


@router.get("", response_model=ClientListResponse)
async def list_clients(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    sort: str = Query("-created_at"),
    phase: Optional[ClientPhase] = Query(None),
    status: Optional[ClientStatus] = Query(None),
    county: Optional[str] = Query(None),
    program: Optional[str] = Query(None),
    marketer_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ClientListResponse:
    """List clients with optional filters."""
    controller = ClientController(db)
    return await controller.list_clients(
        current_user,
        skip=skip,
        limit=limit,
        sort=sort,
        phase=phase,
        status=status,
        county=county,
        program=program,
        marketer_id=marketer_id,
    )


@router.get("/{client_id}", response_model=Union[ClientDetailResponse, ClientResponse])
async def get_client(
    client_id: UUID,
    include_details: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
):
    """Get client by ID."""
    controller = ClientController(db)
    return await controller.get_client(client_id, current_user, include_details)


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: UUID,
    client_data: ClientUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ClientResponse:
    """Update a client."""
    controller = ClientController(db)
    return await controller.update_client(client_id, client_data, current_user)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(
    client_id: UUID,
    body: ClientDeleteRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
):
    """Delete a client. Admin only; requires the typed confirmation."""
    controller = ClientController(db)
    await controller.delete_client(client_id, body.confirmation, current_user)


@router.patch("/{client_id}/checklist", response_model=ClientResponse)
async def update_checklist(
    client_id: UUID,
    body: ChecklistUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ClientResponse:
    """Toggle one checklist item."""
    controller = ClientController(db)
    return await controller.update_checklist(client_id, body.field, body.value, current_user)


@router.post("/{client_id}/advance", response_model=ClientResponse)
async def advance_phase(
    client_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ClientResponse:
    """Advance to the next phase when the current checklist is complete."""
    controller = ClientController(db)
    return await controller.advance_phase(client_id, current_user)


@router.post("/{client_id}/finalize", response_model=ClientResponse)
async def finalize_phase(
    client_id: UUID,
    body: PhaseChangeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ClientResponse:
    """Finalize a phase."""
    controller = ClientController(db)
    return await controller.finalize_phase(client_id, body.phase, current_user)


@router.post("/{client_id}/phase", response_model=ClientResponse)
async def correct_phase(
    client_id: UUID,
    body: PhaseChangeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ClientResponse:
    """Move a client to any phase without gate checks."""
    controller = ClientController(db)
    return await controller.correct_phase(client_id, body.phase, current_user)


@router.get("/{client_id}/progress", response_model=PhaseProgressResponse)
async def get_phase_progress(
    client_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> PhaseProgressResponse:
    """Get checklist progress for every phase."""
    controller = ClientController(db)
    return await controller.get_phase_progress(client_id, current_user)


@router.get("/{client_id}/caregivers", response_model=CaregiverListResponse)
async def list_client_caregivers(
    client_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> CaregiverListResponse:
    """List a client's caregivers, active and past."""
    controller = CaregiverController(db)
    return await controller.list_by_client(client_id, current_user)


@router.post("/{client_id}/caregivers", response_model=CaregiverResponse, status_code=status.HTTP_201_CREATED)
async def add_client_caregiver(
    client_id: UUID,
    caregiver_data: CaregiverCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> CaregiverResponse:
    """Create a caregiver as the client's active caregiver."""
    controller = CaregiverController(db)
    return await controller.add_to_client(client_id, caregiver_data, current_user)


@router.get("/{client_id}/referrals", response_model=ReferralListResponse)
async def list_client_referrals(
    client_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ReferralListResponse:
    """List referrals linked to a client."""
    controller = ReferralController(db)
    return await controller.list_by_client(client_id, current_user)


@router.get("/{client_id}/notes", response_model=List[ClientNoteResponse])
async def list_notes(
    client_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> List[ClientNoteResponse]:
    """List a client's notes."""
    controller = ClientController(db)
    return await controller.list_notes(client_id, current_user)


@router.post("/{client_id}/notes", response_model=ClientNoteResponse, status_code=status.HTTP_201_CREATED)
async def add_note(
    client_id: UUID,
    note_data: ClientNoteCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ClientNoteResponse:
    """Add a note to a client."""
    controller = ClientController(db)
    return await controller.add_note(client_id, note_data, current_user)


@router.put("/{client_id}/notes/{note_id}", response_model=ClientNoteResponse)
async def update_note(
    client_id: UUID,
    note_id: UUID,
    note_data: ClientNoteUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ClientNoteResponse:
    """Edit one of your notes."""
    controller = ClientController(db)
    return await controller.update_note(client_id, note_id, note_data, current_user)


@router.delete("/{client_id}/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    client_id: UUID,
    note_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
):
    """Delete one of your notes."""
    controller = ClientController(db)
    await controller.delete_note(client_id, note_id, current_user)
