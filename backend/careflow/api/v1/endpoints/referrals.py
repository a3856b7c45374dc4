"""
Referral API endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.api.v1.middleware import require_authentication
from careflow.controllers.referral_controller import ReferralController
from careflow.db.session import get_db
from careflow.models.user import User
from careflow.schemas.client import ClientResponse
from careflow.schemas.referral import (
    IntakeForm,
    ReferralCreate,
    ReferralListResponse,
    ReferralResponse,
    ReferralUpdate,
)

router = APIRouter()


@router.post("", response_model=ReferralResponse, status_code=status.HTTP_201_CREATED)
async def create_referral(
    referral_data: ReferralCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ReferralResponse:
    """Submit a referral."""
    controller = ReferralController(db)
    return await controller.create_referral(referral_data, current_user)


@router.get("", response_model=ReferralListResponse)
async def list_prospects(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ReferralListResponse:
    """List referrals awaiting intake."""
    controller = ReferralController(db)
    return await controller.list_prospects(current_user, skip=skip, limit=limit)


@router.get("/{referral_id}", response_model=ReferralResponse)
async def get_referral(
    referral_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ReferralResponse:
    """Get referral by ID."""
    controller = ReferralController(db)
    return await controller.get_referral(referral_id, current_user)


@router.put("/{referral_id}", response_model=ReferralResponse)
async def update_referral(
    referral_id: UUID,
    referral_data: ReferralUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ReferralResponse:
    """Update a referral."""
    controller = ReferralController(db)
    return await controller.update_referral(referral_id, referral_data, current_user)


@router.delete("/{referral_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_referral(
    referral_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
):
    """Delete a referral."""
    controller = ReferralController(db)
    await controller.delete_referral(referral_id, current_user)


@router.post("/{referral_id}/convert", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def convert_referral(
    referral_id: UUID,
    form: IntakeForm,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ClientResponse:
    """Convert a referral into a client in the intake phase."""
    controller = ReferralController(db)
    return await controller.convert_to_client(referral_id, form, current_user)
