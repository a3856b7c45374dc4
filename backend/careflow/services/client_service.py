"""
Client service with business logic.

Phase gates are evaluated by careflow.services.phase_policy; this service
applies them to stored clients and owns checklist edits, finalization,
phase correction and deletion.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from careflow.core.config import settings
from careflow.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from careflow.db.repositories.client_repository import ClientRepository
from careflow.db.repositories.user_repository import UserRepository
from careflow.models.client import Client, ClientPhase, ClientStatus
from careflow.models.notification import NotificationType
from careflow.models.user import User, UserRole
from careflow.schemas.client import (
    ClientCreate,
    ClientDetailResponse,
    ClientResponse,
    ClientUpdate,
    PhaseProgressResponse,
    normalize_cost_share,
    normalize_phone_numbers,
    split_name,
)
from careflow.schemas.notification import NotificationBroadcast
from careflow.services import phase_policy
from careflow.services.base_service import BaseService
from careflow.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

CLIENT_COLUMNS = frozenset(column.key for column in Client.__mapper__.column_attrs)

# Checklist-like flags editable through update_checklist besides the phase checklists
CLINICAL_FIELDS = (
    "clinical_lead_completed",
    "clinical_scheduler_completed",
    "clinical_third_completed",
)


class ClientService(BaseService):
    """Service for client operations."""

    def __init__(self, session: AsyncSession, notification_service: Optional[NotificationService] = None):
        self.session = session
        self.client_repo = ClientRepository(session)
        self.user_repo = UserRepository(session)
        self.notification_service = notification_service or NotificationService(session)

    async def _get_client(self, client_id: UUID, actor: User) -> Client:
        client = await self.client_repo.get_for_org(client_id, actor.organization_id)
        if not client:
            raise NotFoundError("Client", client_id)
        return client

    async def insert_client(self, payload: Dict[str, Any], actor: User) -> Client:
        """
        Normalize and insert a client row without committing.

        Used by direct creation and by referral conversion so both apply the
        same defaults.
        """
        unknown = set(payload) - CLIENT_COLUMNS
        if unknown:
            raise ValidationError("Unknown client fields", {"fields": sorted(unknown)})

        values = dict(payload)
        client_name = (values.get("client_name") or "").strip()
        if not client_name:
            raise ValidationError("Client name is required")
        values["client_name"] = client_name
        if not values.get("first_name") and not values.get("last_name"):
            values["first_name"], values["last_name"] = split_name(client_name)
        values["cost_share_amount"] = normalize_cost_share(values.get("cost_share_amount"))
        values["phone_numbers"] = normalize_phone_numbers(values.get("phone_numbers"))
        if values.get("services_needed") is None:
            values["services_needed"] = {}
        values.setdefault("current_phase", ClientPhase.INTAKE)
        if values.get("status") is None:
            values["status"] = ClientStatus.ACTIVE

        values["organization_id"] = actor.organization_id
        values["created_by"] = actor.id
        return await self.client_repo.create(**values)

    async def create_client(self, client_data: ClientCreate, actor: User) -> ClientResponse:
        """Create a client directly, starting in intake."""
        client = await self.insert_client(client_data.model_dump(exclude_none=True), actor)
        await self.session.commit()
        logger.info("Client created", extra={"client_id": str(client.id)})
        return ClientResponse.model_validate(client)

    async def get_client(self, client_id: UUID, actor: User) -> ClientResponse:
        """Get client by ID."""
        return ClientResponse.model_validate(await self._get_client(client_id, actor))

    async def get_client_detail(self, client_id: UUID, actor: User) -> ClientDetailResponse:
        """Get client with caregivers, marketer, CM company, notes and referrals."""
        client = await self.client_repo.get_detail(client_id, actor.organization_id)
        if not client:
            raise NotFoundError("Client", client_id)
        return ClientDetailResponse.model_validate(client)

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
    ) -> Tuple[List[ClientResponse], int]:
        """List clients in the caller's organization with optional filters."""
        filters = {
            "organization_id": actor.organization_id,
            "current_phase": phase,
            "status": status,
            "county": county,
            "program": program,
            "marketer_id": marketer_id,
        }
        filters = {key: value for key, value in filters.items() if value is not None}
        try:
            clients = await self.client_repo.list(skip=skip, limit=limit, sort=sort, **filters)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        total = await self.client_repo.count(**filters)
        return [ClientResponse.model_validate(c) for c in clients], total

    async def update_client(
        self,
        client_id: UUID,
        client_data: ClientUpdate,
        actor: User,
    ) -> ClientResponse:
        """Update editable client attributes."""
        client = await self._get_client(client_id, actor)
        changes = client_data.model_dump(exclude_unset=True)
        if "client_name" in changes:
            name = (changes["client_name"] or "").strip()
            if not name:
                raise ValidationError("Client name cannot be blank")
            changes["client_name"] = name
            if "first_name" not in changes and "last_name" not in changes:
                changes["first_name"], changes["last_name"] = split_name(name)
        if "phone_numbers" in changes:
            changes["phone_numbers"] = normalize_phone_numbers(changes["phone_numbers"])
        if "cost_share_amount" in changes:
            changes["cost_share_amount"] = normalize_cost_share(changes["cost_share_amount"])
        if "status" in changes and changes["status"] is None:
            del changes["status"]
        for field in ("first_name", "last_name"):
            if field in changes and changes[field] is None:
                changes[field] = ""
        if "services_needed" in changes and changes["services_needed"] is None:
            changes["services_needed"] = {}

        updated = await self.client_repo.update(client.id, **changes)
        await self.session.commit()
        return ClientResponse.model_validate(updated)

    async def update_checklist(
        self,
        client_id: UUID,
        field: str,
        value: bool,
        actor: User,
    ) -> ClientResponse:
        """Set one checklist item. Items of a finalized phase are read-only."""
        phase = phase_policy.CHECKLIST_FIELDS.get(field)
        if phase is None and field not in CLINICAL_FIELDS:
            raise ValidationError(f"Unknown checklist item: {field}")
        client = await self._get_client(client_id, actor)
        if phase is not None and getattr(client, f"{phase.value}_finalized"):
            raise ValidationError(
                f"{phase_policy.PHASE_LABELS[phase]} is finalized",
                {"phase": phase.value, "field": field},
            )
        updated = await self.client_repo.update(client.id, **{field: bool(value)})
        await self.session.commit()
        return ClientResponse.model_validate(updated)

    async def advance_phase(self, client_id: UUID, actor: User) -> ClientResponse:
        """Move the client to the next phase when the current phase gate is met."""
        client = await self._get_client(client_id, actor)
        current = phase_policy.coerce_phase(client.current_phase)
        target = phase_policy.next_phase(current)
        if target is None:
            raise ValidationError("Client is already in the final phase")
        if not phase_policy.can_advance(client, current):
            raise ValidationError(
                "Phase checklist is incomplete",
                {"phase": current.value, "missing": phase_policy.missing_items(client, current)},
            )
        updated = await self.client_repo.update(client.id, current_phase=target)
        await self.session.commit()
        logger.info(
            "Client advanced",
            extra={"client_id": str(client_id), "from": current.value, "to": target.value},
        )
        return ClientResponse.model_validate(updated)

    async def finalize_phase(self, client_id: UUID, phase: ClientPhase, actor: User) -> ClientResponse:
        """
        Finalize a phase whose checklist is complete.

        Finalizing the current phase also advances the client. Active users of
        the organization other than the actor are notified.
        """
        phase = phase_policy.coerce_phase(phase)
        client = await self._get_client(client_id, actor)
        if getattr(client, f"{phase.value}_finalized"):
            raise ValidationError(f"{phase_policy.PHASE_LABELS[phase]} is already finalized")
        if not phase_policy.is_ready_to_finalize(client, phase):
            missing = [f for f in phase_policy.PHASE_CHECKLISTS[phase] if not getattr(client, f)]
            if phase == ClientPhase.SERVICE_INITIATION and not client.training_or_care_start_date:
                missing.append("training_or_care_start_date")
            raise ValidationError(
                "Phase checklist is incomplete",
                {"phase": phase.value, "missing": missing},
            )

        changes: Dict[str, Any] = {f"{phase.value}_finalized": True}
        target = phase_policy.next_phase(phase)
        if phase == phase_policy.coerce_phase(client.current_phase) and target is not None:
            changes["current_phase"] = target
        updated = await self.client_repo.update(client.id, **changes)
        await self.session.commit()
        response = ClientResponse.model_validate(updated)

        logger.info(
            "Phase finalized",
            extra={"client_id": str(client_id), "phase": phase.value},
        )
        recipients = await self.user_repo.list_active_ids(actor.organization_id, exclude_id=actor.id)
        await self.notification_service.notify_best_effort(
            recipients,
            NotificationBroadcast(
                type=NotificationType.PHASE_COMPLETED,
                title=f"{phase_policy.PHASE_LABELS[phase]} completed",
                message=f"{response.client_name} completed {phase_policy.PHASE_LABELS[phase]}",
                related_entity_type="client",
                related_entity_id=str(response.id),
            ),
            actor,
        )
        return response

    async def correct_phase(self, client_id: UUID, phase: ClientPhase, actor: User) -> ClientResponse:
        """Move a client to any phase, forwards or backwards, without gate checks."""
        phase = phase_policy.coerce_phase(phase)
        client = await self._get_client(client_id, actor)
        previous = phase_policy.coerce_phase(client.current_phase)
        updated = await self.client_repo.update(client.id, current_phase=phase)
        await self.session.commit()
        logger.warning(
            "Client phase corrected",
            extra={
                "client_id": str(client_id),
                "from": previous.value,
                "to": phase.value,
                "actor_id": str(actor.id),
            },
        )
        return ClientResponse.model_validate(updated)

    async def get_phase_progress(self, client_id: UUID, actor: User) -> PhaseProgressResponse:
        """Per-phase checklist completion for a client."""
        client = await self._get_client(client_id, actor)
        return PhaseProgressResponse(**phase_policy.phase_progress(client))

    async def delete_client(self, client_id: UUID, confirmation: str, actor: User) -> bool:
        """
        Hard-delete a client. Admin only, with typed confirmation.
        Notes go with the client; caregivers and referrals are detached.
        """
        if actor.role != UserRole.ADMIN:
            raise AuthorizationError("Only admins can delete clients")
        if confirmation != settings.CLIENT_DELETE_CONFIRMATION:
            raise ValidationError(
                f"Type {settings.CLIENT_DELETE_CONFIRMATION} to confirm deletion"
            )
        client = await self.client_repo.get_detail(client_id, actor.organization_id)
        if not client:
            raise NotFoundError("Client", client_id)
        await self.session.delete(client)
        await self.session.commit()
        logger.warning(
            "Client deleted",
            extra={"client_id": str(client_id), "actor_id": str(actor.id)},
        )
        return True
