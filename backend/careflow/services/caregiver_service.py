"""
Caregiver service with business logic.

A client has at most one active caregiver. Every path that makes a caregiver
active on a client locks the client row, deactivates the current active
caregiver and activates the new one inside a single transaction. The partial
unique index on client_caregivers is the final guard; a violation from a
racing writer surfaces as a ConflictError.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.core.exceptions import ConflictError, NotFoundError, ValidationError
from careflow.db.repositories.caregiver_repository import CaregiverRepository
from careflow.db.repositories.client_repository import ClientRepository
from careflow.models.caregiver import CaregiverStatus, ClientCaregiver
from careflow.models.user import User
from careflow.schemas.caregiver import (
    AssignmentResult,
    CaregiverCreate,
    CaregiverResponse,
    CaregiverUpdate,
)
from careflow.services.base_service import BaseService
from careflow.services.phase_policy import ONBOARDING_CHECKLIST
from careflow.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

ACTIVE_CONFLICT_MESSAGE = "Client already has an active caregiver"


class CaregiverService(BaseService):
    """Service for caregiver operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.caregiver_repo = CaregiverRepository(session)
        self.client_repo = ClientRepository(session)

    async def _get_caregiver(self, caregiver_id: UUID, actor: User) -> ClientCaregiver:
        caregiver = await self.caregiver_repo.get_for_org(caregiver_id, actor.organization_id)
        if not caregiver:
            raise NotFoundError("Caregiver", caregiver_id)
        return caregiver

    async def _commit_assignment(self, client_id: UUID) -> None:
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            logger.warning(
                "Active caregiver uniqueness violated",
                extra={"client_id": str(client_id)},
            )
            raise ConflictError(ACTIVE_CONFLICT_MESSAGE, {"client_id": str(client_id)}) from exc

    async def create_standalone(self, data: CaregiverCreate, actor: User) -> CaregiverResponse:
        """Create a caregiver in the unassigned pool."""
        if not data.full_name:
            raise ValidationError("Caregiver name is required")
        caregiver = await self.caregiver_repo.create(
            organization_id=actor.organization_id,
            client_id=None,
            status=CaregiverStatus.ACTIVE,
            started_at=data.started_at or utcnow(),
            **data.model_dump(exclude={"started_at"}),
        )
        await self.session.commit()
        logger.info("Standalone caregiver created", extra={"caregiver_id": str(caregiver.id)})
        return CaregiverResponse.model_validate(caregiver)

    async def add_to_client(
        self,
        client_id: UUID,
        data: CaregiverCreate,
        actor: User,
    ) -> CaregiverResponse:
        """
        Create a caregiver directly under a client as its active caregiver.
        Any existing active caregiver of the client is deactivated first.
        """
        if not data.full_name:
            raise ValidationError("Caregiver name is required")
        client = await self.client_repo.get_for_update(client_id, actor.organization_id)
        if not client:
            raise NotFoundError("Client", client_id)

        now = utcnow()
        try:
            replaced = await self.caregiver_repo.deactivate_active_for_client(client.id, now)
            caregiver = await self.caregiver_repo.create(
                organization_id=actor.organization_id,
                client_id=client.id,
                status=CaregiverStatus.ACTIVE,
                started_at=data.started_at or now,
                **data.model_dump(exclude={"started_at"}),
            )
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError(ACTIVE_CONFLICT_MESSAGE, {"client_id": str(client_id)}) from exc
        response = CaregiverResponse.model_validate(caregiver)
        await self._commit_assignment(client_id)

        logger.info(
            "Caregiver added to client",
            extra={
                "caregiver_id": str(response.id),
                "client_id": str(client_id),
                "replaced": replaced,
            },
        )
        return response

    async def assign_to_client(
        self,
        caregiver_id: UUID,
        client_id: UUID,
        actor: User,
        confirm: bool = False,
    ) -> AssignmentResult:
        """
        Make an existing caregiver the client's active caregiver.

        Without `confirm`, an existing active caregiver yields a `conflict`
        result and nothing is written. With `confirm`, the current caregiver is
        deactivated and the new one activated atomically.
        """
        caregiver = await self._get_caregiver(caregiver_id, actor)
        client = await self.client_repo.get_for_update(client_id, actor.organization_id)
        if not client:
            raise NotFoundError("Client", client_id)

        current = await self.caregiver_repo.get_active_for_client(client.id)
        if current is not None and current.id == caregiver.id:
            result = AssignmentResult(
                status="assigned",
                caregiver=CaregiverResponse.model_validate(caregiver),
                client_id=client_id,
            )
            await self.session.commit()
            return result

        if current is not None and not confirm:
            result = AssignmentResult(
                status="conflict",
                caregiver=CaregiverResponse.model_validate(caregiver),
                client_id=client_id,
                conflicting_caregiver=CaregiverResponse.model_validate(current),
            )
            # Nothing was written; ending the transaction releases the row lock
            await self.session.commit()
            return result

        now = utcnow()
        replaced_id = current.id if current is not None else None
        try:
            await self.caregiver_repo.deactivate_active_for_client(client.id, now)
            assigned = await self.caregiver_repo.activate_for_client(caregiver.id, client.id, now)
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError(ACTIVE_CONFLICT_MESSAGE, {"client_id": str(client_id)}) from exc
        result = AssignmentResult(
            status="assigned",
            caregiver=CaregiverResponse.model_validate(assigned),
            client_id=client_id,
            replaced_caregiver_id=replaced_id,
        )
        await self._commit_assignment(client_id)

        logger.info(
            "Caregiver assigned",
            extra={
                "caregiver_id": str(caregiver_id),
                "client_id": str(client_id),
                "replaced_caregiver_id": str(replaced_id) if replaced_id else None,
            },
        )
        return result

    async def deactivate(
        self,
        caregiver_id: UUID,
        actor: User,
        ended_at: Optional[datetime] = None,
    ) -> CaregiverResponse:
        """Deactivate a caregiver, recording when the assignment ended."""
        caregiver = await self._get_caregiver(caregiver_id, actor)
        if caregiver.status == CaregiverStatus.INACTIVE:
            return CaregiverResponse.model_validate(caregiver)
        updated = await self.caregiver_repo.update(
            caregiver.id,
            status=CaregiverStatus.INACTIVE,
            ended_at=ended_at or utcnow(),
        )
        await self.session.commit()
        logger.info("Caregiver deactivated", extra={"caregiver_id": str(caregiver_id)})
        return CaregiverResponse.model_validate(updated)

    async def get_caregiver(self, caregiver_id: UUID, actor: User) -> CaregiverResponse:
        """Get caregiver by ID."""
        return CaregiverResponse.model_validate(await self._get_caregiver(caregiver_id, actor))

    async def list_by_client(self, client_id: UUID, actor: User) -> Tuple[List[CaregiverResponse], int]:
        """List a client's caregivers, active and past."""
        client = await self.client_repo.get_for_org(client_id, actor.organization_id)
        if not client:
            raise NotFoundError("Client", client_id)
        caregivers = await self.caregiver_repo.list_by_client(client.id)
        return [CaregiverResponse.model_validate(c) for c in caregivers], len(caregivers)

    async def list_caregivers(
        self,
        actor: User,
        standalone_only: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[CaregiverResponse], int]:
        """List caregivers in the caller's organization."""
        caregivers = await self.caregiver_repo.list_for_org(
            actor.organization_id,
            standalone_only=standalone_only,
            skip=skip,
            limit=limit,
        )
        return [CaregiverResponse.model_validate(c) for c in caregivers], len(caregivers)

    async def update_caregiver(
        self,
        caregiver_id: UUID,
        data: CaregiverUpdate,
        actor: User,
    ) -> CaregiverResponse:
        """Update caregiver details and onboarding checklist."""
        caregiver = await self._get_caregiver(caregiver_id, actor)
        changes = data.model_dump(exclude_unset=True)
        if "full_name" in changes:
            changes["full_name"] = (changes["full_name"] or "").strip()
            if not changes["full_name"]:
                raise ValidationError("Caregiver name is required")
        if caregiver.onboarding_finalized and any(field in changes for field in ONBOARDING_CHECKLIST):
            raise ValidationError("Caregiver onboarding is finalized")
        updated = await self.caregiver_repo.update(caregiver.id, **changes)
        await self.session.commit()
        return CaregiverResponse.model_validate(updated)

    async def finalize_onboarding(self, caregiver_id: UUID, actor: User) -> CaregiverResponse:
        """Lock the caregiver's onboarding checklist once every item is done."""
        caregiver = await self._get_caregiver(caregiver_id, actor)
        if caregiver.onboarding_finalized:
            raise ValidationError("Caregiver onboarding is already finalized")
        missing = [field for field in ONBOARDING_CHECKLIST if not getattr(caregiver, field)]
        if missing:
            raise ValidationError("Onboarding checklist is incomplete", {"missing": missing})
        updated = await self.caregiver_repo.update(caregiver.id, onboarding_finalized=True)
        await self.session.commit()
        return CaregiverResponse.model_validate(updated)

    async def delete_caregiver(self, caregiver_id: UUID, actor: User) -> bool:
        """Delete a caregiver."""
        caregiver = await self._get_caregiver(caregiver_id, actor)
        deleted = await self.caregiver_repo.delete(caregiver.id)
        await self.session.commit()
        return deleted
