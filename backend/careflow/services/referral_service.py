"""
Referral service with business logic.

Referrals are the marketer-facing capture of a prospective client. Converting
a referral creates the client and removes the referral in one transaction:
either both happen or neither does.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from careflow.core.config import settings
from careflow.core.exceptions import NotFoundError, ValidationError
from careflow.db.repositories.client_repository import ClientRepository
from careflow.db.repositories.referral_repository import ReferralRepository
from careflow.db.repositories.user_repository import UserRepository
from careflow.models.client import ClientPhase, ClientStatus
from careflow.models.notification import NotificationType
from careflow.models.referral import Referral
from careflow.models.user import User, UserRole
from careflow.schemas.client import (
    ClientResponse,
    normalize_cost_share,
    normalize_phone_numbers,
)
from careflow.schemas.notification import NotificationBroadcast
from careflow.schemas.referral import (
    PRE_ONBOARDING_FIELDS,
    REFERRAL_CORE_FIELDS,
    IntakeForm,
    ReferralCreate,
    ReferralDetails,
    ReferralResponse,
    ReferralUpdate,
    parse_referral_notes,
    serialize_referral_details,
)
from careflow.services.base_service import BaseService
from careflow.services.client_service import ClientService
from careflow.services.notification_service import NotificationService
from careflow.utils.timeutils import today

logger = logging.getLogger(__name__)

# Captured fields stored on the client under a different column name
RENAMED_FIELDS = {
    "phone": "client_phone",
    "referral_dob": "date_of_birth",
}

# Captured fields with no client column of their own
NOT_CARRIED_FIELDS = frozenset({
    "referral_name",
    "requested_program",
    "marketer_name",
    "marketer_email",
    "marketer_phone",
})


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def build_client_payload(
    referral: Referral,
    details: ReferralDetails,
    form: IntakeForm,
    intake_date: date,
) -> Dict[str, Any]:
    """
    Merge a referral capture with intake form values into client attributes.

    Intake form values win wherever both are set. The program comes from the
    form only; the referral's requested program is never carried over.
    Completed pre-onboarding items become completed onboarding checklist items.
    """
    payload: Dict[str, Any] = {}
    for field, value in details.model_dump().items():
        if field in NOT_CARRIED_FIELDS or field in PRE_ONBOARDING_FIELDS:
            continue
        payload[RENAMED_FIELDS.get(field, field)] = value

    payload["client_name"] = details.referral_name
    payload["location"] = details.county
    payload["state"] = details.state or settings.DEFAULT_CLIENT_STATE
    payload["company"] = settings.DEFAULT_CLIENT_COMPANY
    payload["director_of_marketing"] = details.marketer_name
    payload["notes"] = details.additional_info
    payload["referral_date"] = referral.referral_date
    payload["referred_by"] = referral.referred_by
    payload["referral_source"] = referral.referral_source
    for field in PRE_ONBOARDING_FIELDS:
        payload[field] = bool(getattr(details, field))

    for field, value in form.model_dump(exclude={"program"}).items():
        if _blank(value):
            continue
        payload[field] = value
        if field == "location":
            payload["county"] = value

    payload["program"] = None if _blank(form.program) else form.program
    payload["cost_share_amount"] = normalize_cost_share(form.cost_share_amount)
    payload["phone_numbers"] = normalize_phone_numbers(form.phone_numbers)
    payload.update(
        current_phase=ClientPhase.INTAKE,
        status=ClientStatus.ACTIVE,
        intake_date=intake_date,
        referral_id=referral.id,
    )
    return payload


class ReferralService(BaseService):
    """Service for referral operations."""

    def __init__(self, session: AsyncSession, notification_service: Optional[NotificationService] = None):
        self.session = session
        self.referral_repo = ReferralRepository(session)
        self.client_repo = ClientRepository(session)
        self.user_repo = UserRepository(session)
        self.notification_service = notification_service or NotificationService(session)
        self.client_service = ClientService(session, self.notification_service)

    async def _get_referral(self, referral_id: UUID, actor: User) -> Referral:
        referral = await self.referral_repo.get_for_org(referral_id, actor.organization_id)
        if not referral:
            raise NotFoundError("Referral", referral_id)
        return referral

    async def _check_client(self, client_id: Optional[UUID], actor: User) -> None:
        if client_id is not None and not await self.client_repo.get_for_org(client_id, actor.organization_id):
            raise NotFoundError("Client", client_id)

    async def create_referral(self, referral_data: ReferralCreate, actor: User) -> ReferralResponse:
        """Record a referral and notify the organization's admins."""
        if _blank(referral_data.referral_name):
            raise ValidationError("Referral name is required")
        await self._check_client(referral_data.client_id, actor)

        details = ReferralDetails.model_validate(
            referral_data.model_dump(exclude=set(REFERRAL_CORE_FIELDS))
        )
        referral = await self.referral_repo.create(
            organization_id=actor.organization_id,
            client_id=referral_data.client_id,
            referred_by=referral_data.referred_by,
            referral_date=referral_data.referral_date,
            referral_source=referral_data.referral_source,
            notes=serialize_referral_details(details),
        )
        await self.session.commit()
        response = ReferralResponse.model_validate(referral)
        logger.info("Referral created", extra={"referral_id": str(response.id)})

        admins = await self.user_repo.list_active_ids(
            actor.organization_id, exclude_id=actor.id, role=UserRole.ADMIN
        )
        await self.notification_service.notify_best_effort(
            admins,
            NotificationBroadcast(
                type=NotificationType.REFERRAL_CREATED,
                title="New referral",
                message=f"{actor.name} submitted a referral for {response.referral_name}",
                related_entity_type="referral",
                related_entity_id=str(response.id),
            ),
            actor,
        )
        return response

    async def get_referral(self, referral_id: UUID, actor: User) -> ReferralResponse:
        """Get referral by ID."""
        return ReferralResponse.model_validate(await self._get_referral(referral_id, actor))

    async def list_prospects(
        self,
        actor: User,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[ReferralResponse], int]:
        """List referrals not yet tied to a client."""
        referrals = await self.referral_repo.list_prospects(actor.organization_id, skip=skip, limit=limit)
        return [ReferralResponse.model_validate(r) for r in referrals], len(referrals)

    async def list_by_client(self, client_id: UUID, actor: User) -> Tuple[List[ReferralResponse], int]:
        """List referrals tied to a client."""
        await self._check_client(client_id, actor)
        referrals = await self.referral_repo.list_by_client(client_id)
        return [ReferralResponse.model_validate(r) for r in referrals], len(referrals)

    async def update_referral(
        self,
        referral_id: UUID,
        referral_data: ReferralUpdate,
        actor: User,
    ) -> ReferralResponse:
        """Merge provided fields into the referral capture and core columns."""
        referral = await self._get_referral(referral_id, actor)
        changes = referral_data.model_dump(exclude_unset=True)

        core = {field: changes.pop(field) for field in REFERRAL_CORE_FIELDS if field in changes}
        if "client_id" in core:
            await self._check_client(core["client_id"], actor)
        if "referral_name" in changes and _blank(changes["referral_name"]):
            raise ValidationError("Referral name is required")

        merged = parse_referral_notes(referral.notes).model_dump()
        merged.update(changes)
        details = ReferralDetails.model_validate(merged)

        updated = await self.referral_repo.update(
            referral.id,
            notes=serialize_referral_details(details),
            **core,
        )
        await self.session.commit()
        return ReferralResponse.model_validate(updated)

    async def delete_referral(self, referral_id: UUID, actor: User) -> bool:
        """Delete a referral."""
        referral = await self._get_referral(referral_id, actor)
        deleted = await self.referral_repo.delete(referral.id)
        await self.session.commit()
        return deleted

    async def convert_to_client(
        self,
        referral_id: UUID,
        form: IntakeForm,
        actor: User,
    ) -> ClientResponse:
        """
        Convert a referral into a client in the intake phase.

        The client insert and the referral delete commit together. If either
        fails the transaction rolls back and the referral is left untouched.

        Raises:
            NotFoundError: Referral does not exist
            ValidationError: Neither the form nor the referral has a name
        """
        referral = await self._get_referral(referral_id, actor)
        details = parse_referral_notes(referral.notes)
        payload = build_client_payload(referral, details, form, today())
        if _blank(payload.get("client_name")):
            raise ValidationError("Client name is required")

        try:
            client = await self.client_service.insert_client(payload, actor)
            response = ClientResponse.model_validate(client)
            await self.referral_repo.delete(referral.id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            logger.warning(
                "Referral conversion rolled back",
                extra={"referral_id": str(referral_id)},
                exc_info=True,
            )
            raise

        logger.info(
            "Referral converted",
            extra={"referral_id": str(referral_id), "client_id": str(response.id)},
        )
        return response
