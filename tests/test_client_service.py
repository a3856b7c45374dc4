"""
Client service tests: creation, checklist edits and phase transitions.
"""

import uuid
from datetime import date

import pytest
from sqlalchemy import select

from careflow.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from careflow.models.caregiver import ClientCaregiver
from careflow.models.client import Client, ClientPhase
from careflow.models.client_note import ClientNote
from careflow.models.notification import Notification, NotificationType
from careflow.schemas.client import ClientCreate, ClientUpdate
from careflow.services.client_service import ClientService
from careflow.services.phase_policy import INTAKE_CHECKLIST, SERVICE_INITIATION_CHECKLIST


async def test_create_client_splits_name_and_normalizes(test_db_session, marketer):
    service = ClientService(test_db_session)

    client = await service.create_client(
        ClientCreate(
            client_name="  Mary Ann  Smith ",
            cost_share_amount="-15",
            phone_numbers="404-555-0100",
        ),
        marketer,
    )

    assert client.client_name == "Mary Ann  Smith"
    assert client.first_name == "Mary"
    assert client.last_name == "Ann Smith"
    assert client.cost_share_amount == 0
    assert client.phone_numbers == ["404-555-0100"]
    assert client.current_phase == ClientPhase.INTAKE
    assert client.created_by == marketer.id


async def test_intake_scenario_advances_only_when_complete(test_db_session, marketer, make_client):
    checklist = {field: True for field in INTAKE_CHECKLIST[:-1]}
    client = await make_client(**checklist)
    service = ClientService(test_db_session)

    with pytest.raises(ValidationError) as exc_info:
        await service.advance_phase(client.id, marketer)
    assert exc_info.value.details["missing"] == [INTAKE_CHECKLIST[-1]]

    await service.update_checklist(client.id, INTAKE_CHECKLIST[-1], True, marketer)
    advanced = await service.advance_phase(client.id, marketer)

    assert advanced.current_phase == ClientPhase.ONBOARDING


async def test_advance_from_final_phase_rejected(test_db_session, marketer, make_client):
    client = await make_client(current_phase=ClientPhase.SERVICE_INITIATION)
    with pytest.raises(ValidationError):
        await ClientService(test_db_session).advance_phase(client.id, marketer)


async def test_update_checklist_rejects_unknown_field(test_db_session, marketer, make_client):
    client = await make_client()
    with pytest.raises(ValidationError):
        await ClientService(test_db_session).update_checklist(client.id, "client_name", True, marketer)


async def test_finalized_phase_checklist_is_read_only(test_db_session, marketer, make_client):
    client = await make_client(intake_finalized=True)
    with pytest.raises(ValidationError):
        await ClientService(test_db_session).update_checklist(
            client.id, INTAKE_CHECKLIST[0], False, marketer
        )


async def test_finalize_current_phase_advances_and_notifies(
    test_db_session, admin, marketer, make_user, make_client
):
    muted = await make_user(
        name="Muted Marketer",
        preferences={"in_app": {"phase_completed": False}},
    )
    client = await make_client(**{field: True for field in INTAKE_CHECKLIST})

    finalized = await ClientService(test_db_session).finalize_phase(client.id, ClientPhase.INTAKE, marketer)

    assert finalized.intake_finalized is True
    assert finalized.current_phase == ClientPhase.ONBOARDING
    result = await test_db_session.execute(
        select(Notification.user_id).where(Notification.type == NotificationType.PHASE_COMPLETED)
    )
    recipients = set(result.scalars().all())
    assert recipients == {admin.id}
    assert marketer.id not in recipients
    assert muted.id not in recipients


async def test_finalize_incomplete_phase_rejected(test_db_session, marketer, make_client):
    client = await make_client(
        current_phase=ClientPhase.SERVICE_INITIATION,
        **{field: True for field in SERVICE_INITIATION_CHECKLIST},
    )
    service = ClientService(test_db_session)

    with pytest.raises(ValidationError) as exc_info:
        await service.finalize_phase(client.id, ClientPhase.SERVICE_INITIATION, marketer)
    assert "training_or_care_start_date" in exc_info.value.details["missing"]

    await service.update_client(
        client.id, ClientUpdate(training_or_care_start_date=date(2026, 3, 2)), marketer
    )
    finalized = await service.finalize_phase(client.id, ClientPhase.SERVICE_INITIATION, marketer)
    assert finalized.service_initiation_finalized is True
    assert finalized.current_phase == ClientPhase.SERVICE_INITIATION


async def test_correct_phase_can_move_backwards(test_db_session, marketer, make_client):
    client = await make_client(current_phase=ClientPhase.SERVICE_INITIATION)
    corrected = await ClientService(test_db_session).correct_phase(client.id, ClientPhase.INTAKE, marketer)
    assert corrected.current_phase == ClientPhase.INTAKE


async def test_update_client_resplits_name(test_db_session, marketer, make_client):
    client = await make_client(client_name="Old Name", first_name="Old", last_name="Name")
    updated = await ClientService(test_db_session).update_client(
        client.id, ClientUpdate(client_name="Cher"), marketer
    )
    assert (updated.first_name, updated.last_name) == ("Cher", "")


async def test_list_clients_filters_by_phase(test_db_session, marketer, make_client):
    await make_client(client_name="In Intake")
    await make_client(client_name="In Onboarding", current_phase=ClientPhase.ONBOARDING)
    service = ClientService(test_db_session)

    items, total = await service.list_clients(marketer, phase=ClientPhase.ONBOARDING)
    assert total == 1
    assert items[0].client_name == "In Onboarding"

    with pytest.raises(ValidationError):
        await service.list_clients(marketer, sort="-not_a_column")


async def test_clients_are_organization_scoped(test_db_session, make_user, make_client):
    client = await make_client()
    outsider = await make_user(name="Outsider", organization_id=uuid.uuid4())
    with pytest.raises(NotFoundError):
        await ClientService(test_db_session).get_client(client.id, outsider)


async def test_delete_requires_admin_and_confirmation(test_db_session, admin, marketer, make_client):
    client = await make_client()
    caregiver = ClientCaregiver(
        organization_id=client.organization_id,
        client_id=client.id,
        full_name="Kept Caregiver",
    )
    note = ClientNote(
        organization_id=client.organization_id,
        client_id=client.id,
        user_id=admin.id,
        content="Intake call done",
    )
    test_db_session.add_all([caregiver, note])
    await test_db_session.commit()
    service = ClientService(test_db_session)

    with pytest.raises(AuthorizationError):
        await service.delete_client(client.id, "DELETE", marketer)
    with pytest.raises(ValidationError):
        await service.delete_client(client.id, "delete", admin)

    assert await service.delete_client(client.id, "DELETE", admin) is True
    assert await test_db_session.get(Client, client.id) is None
    remaining_notes = await test_db_session.execute(select(ClientNote).where(ClientNote.client_id == client.id))
    assert remaining_notes.scalars().all() == []
    kept = await test_db_session.get(ClientCaregiver, caregiver.id)
    assert kept is not None and kept.client_id is None


async def test_phase_progress(test_db_session, marketer, make_client):
    client = await make_client(**{field: True for field in INTAKE_CHECKLIST})
    progress = await ClientService(test_db_session).get_phase_progress(client.id, marketer)
    assert progress.completed_tasks == len(INTAKE_CHECKLIST)
    assert progress.can_advance is True
    assert progress.next_phase == ClientPhase.ONBOARDING
