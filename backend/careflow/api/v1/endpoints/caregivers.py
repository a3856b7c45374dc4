"""
Caregiver API endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.api.v1.middleware import require_authentication
from careflow.controllers.caregiver_controller import CaregiverController
from careflow.db.session import get_db
from careflow.models.user import User
from careflow.schemas.caregiver import (
    AssignmentResult,
    CaregiverAssignRequest,
    CaregiverCreate,
    CaregiverDeactivateRequest,
    CaregiverListResponse,
    CaregiverResponse,
    CaregiverUpdate,
)

router = APIRouter()


@router.post("", response_model=CaregiverResponse, status_code=status.HTTP_201_CREATED)
async def create_caregiver(
    caregiver_data: CaregiverCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> CaregiverResponse:
    """Create a standalone caregiver."""
    controller = CaregiverController(db)
    return await controller.create_standalone(caregiver_data, current_user)


@router.get("", response_model=CaregiverListResponse)
async def list_caregivers(
    standalone_only: bool = Query(False),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> CaregiverListResponse:
    """List caregivers, optionally only the unassigned pool."""
    controller = CaregiverController(db)
    return await controller.list_caregivers(
        current_user,
        standalone_only=standalone_only,
        skip=skip,
        limit=limit,
    )


@router.get("/{caregiver_id}", response_model=CaregiverResponse)
async def get_caregiver(
    caregiver_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> CaregiverResponse:
    """Get caregiver by ID."""
    controller = CaregiverController(db)
    return await controller.get_caregiver(caregiver_id, current_user)


@router.put("/{caregiver_id}", response_model=CaregiverResponse)
async def update_caregiver(
    caregiver_id: UUID,
    caregiver_data: CaregiverUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> CaregiverResponse:
    """Update caregiver details and onboarding checklist."""
    controller = CaregiverController(db)
    return await controller.update_caregiver(caregiver_id, caregiver_data, current_user)


@router.post("/{caregiver_id}/assign", response_model=AssignmentResult)
async def assign_caregiver(
    caregiver_id: UUID,
    body: CaregiverAssignRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> AssignmentResult:
    """
    Assign a caregiver to a client.
    Replacing an active caregiver needs `confirm`; otherwise 409 with the current one.
    """
    controller = CaregiverController(db)
    result = await controller.assign_to_client(
        caregiver_id, body.client_id, current_user, confirm=body.confirm
    )
    if result.status == "conflict":
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": "Client already has an active caregiver",
                "requires_confirmation": True,
                "assignment": result.model_dump(mode="json"),
            },
        )
    return result


@router.post("/{caregiver_id}/deactivate", response_model=CaregiverResponse)
async def deactivate_caregiver(
    caregiver_id: UUID,
    body: CaregiverDeactivateRequest = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> CaregiverResponse:
    """Deactivate a caregiver."""
    controller = CaregiverController(db)
    ended_at = body.ended_at if body else None
    return await controller.deactivate(caregiver_id, current_user, ended_at=ended_at)


@router.post("/{caregiver_id}/finalize", response_model=CaregiverResponse)
async def finalize_onboarding(
    caregiver_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> CaregiverResponse:
    """Finalize caregiver onboarding."""
    controller = CaregiverController(db)
    return await controller.finalize_onboarding(caregiver_id, current_user)


@router.delete("/{caregiver_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_caregiver(
    caregiver_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
):
    """Delete a caregiver."""
    controller = CaregiverController(db)
    await controller.delete_caregiver(caregiver_id, current_user)
