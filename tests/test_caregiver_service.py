"""
Caregiver assignment tests: the single-active-caregiver invariant.
"""

import asyncio
import uuid

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from careflow.core.exceptions import ConflictError, NotFoundError, ValidationError
from careflow.db.init_db import create_tables
from careflow.models.caregiver import CaregiverStatus, ClientCaregiver
from careflow.models.client import Client
from careflow.models.user import User
from careflow.schemas.caregiver import AssignmentResult, CaregiverCreate, CaregiverUpdate
from careflow.services.caregiver_service import CaregiverService
from careflow.services.phase_policy import ONBOARDING_CHECKLIST


async def _caregivers_for(session, client_id):
    result = await session.execute(
        select(ClientCaregiver)
        .where(ClientCaregiver.client_id == client_id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


def _active(caregivers):
    return [c for c in caregivers if c.status == CaregiverStatus.ACTIVE]


async def test_create_standalone(test_db_session, marketer):
    caregiver = await CaregiverService(test_db_session).create_standalone(
        CaregiverCreate(full_name=" Pat Lee "), marketer
    )
    assert caregiver.client_id is None
    assert caregiver.full_name == "Pat Lee"
    assert caregiver.status == CaregiverStatus.ACTIVE
    assert not any(getattr(caregiver, field) for field in ONBOARDING_CHECKLIST)


async def test_blank_name_rejected(test_db_session, marketer, make_client):
    client = await make_client()
    service = CaregiverService(test_db_session)
    with pytest.raises(ValidationError):
        await service.create_standalone(CaregiverCreate(full_name="   "), marketer)
    with pytest.raises(ValidationError):
        await service.add_to_client(client.id, CaregiverCreate(full_name=""), marketer)


async def test_add_to_client_replaces_active(test_db_session, marketer, make_client):
    client = await make_client()
    service = CaregiverService(test_db_session)

    first = await service.add_to_client(client.id, CaregiverCreate(full_name="First Carer"), marketer)
    second = await service.add_to_client(client.id, CaregiverCreate(full_name="Second Carer"), marketer)

    caregivers = await _caregivers_for(test_db_session, client.id)
    assert [c.id for c in _active(caregivers)] == [second.id]
    replaced = next(c for c in caregivers if c.id == first.id)
    assert replaced.status == CaregiverStatus.INACTIVE
    assert replaced.ended_at is not None


async def test_add_to_missing_client(test_db_session, marketer):
    with pytest.raises(NotFoundError):
        await CaregiverService(test_db_session).add_to_client(
            uuid.uuid4(), CaregiverCreate(full_name="Nobody"), marketer
        )


async def test_reassignment_needs_confirmation(test_db_session, marketer, make_client):
    client = await make_client()
    service = CaregiverService(test_db_session)
    current = await service.add_to_client(client.id, CaregiverCreate(full_name="Current Carer"), marketer)
    candidate = await service.create_standalone(CaregiverCreate(full_name="New Carer"), marketer)

    result = await service.assign_to_client(candidate.id, client.id, marketer)

    assert result.status == "conflict"
    assert result.conflicting_caregiver.id == current.id
    caregivers = await _caregivers_for(test_db_session, client.id)
    assert [c.id for c in _active(caregivers)] == [current.id]
    assert candidate.id not in [c.id for c in caregivers]

    confirmed = await service.assign_to_client(candidate.id, client.id, marketer, confirm=True)

    assert confirmed.status == "assigned"
    assert confirmed.replaced_caregiver_id == current.id
    assert confirmed.caregiver.client_id == client.id
    assert confirmed.caregiver.ended_at is None
    caregivers = await _caregivers_for(test_db_session, client.id)
    assert [c.id for c in _active(caregivers)] == [candidate.id]
    previous = next(c for c in caregivers if c.id == current.id)
    assert previous.status == CaregiverStatus.INACTIVE
    assert previous.ended_at is not None


async def test_assign_without_active_caregiver(test_db_session, marketer, make_client):
    client = await make_client()
    service = CaregiverService(test_db_session)
    candidate = await service.create_standalone(CaregiverCreate(full_name="Solo Carer"), marketer)

    result = await service.assign_to_client(candidate.id, client.id, marketer)

    assert result.status == "assigned"
    assert result.replaced_caregiver_id is None


async def test_reassigning_current_caregiver_is_noop(test_db_session, marketer, make_client):
    client = await make_client()
    service = CaregiverService(test_db_session)
    current = await service.add_to_client(client.id, CaregiverCreate(full_name="Steady Carer"), marketer)

    result = await service.assign_to_client(current.id, client.id, marketer)

    assert result.status == "assigned"
    assert result.conflicting_caregiver is None


async def test_invariant_holds_across_operation_sequence(test_db_session, marketer, make_client):
    client_a = await make_client(client_name="Client A")
    client_b = await make_client(client_name="Client B")
    service = CaregiverService(test_db_session)

    pool = [
        await service.create_standalone(CaregiverCreate(full_name=f"Pool {i}"), marketer)
        for i in range(3)
    ]
    await service.add_to_client(client_a.id, CaregiverCreate(full_name="Direct A"), marketer)
    await service.assign_to_client(pool[0].id, client_a.id, marketer, confirm=True)
    await service.assign_to_client(pool[1].id, client_a.id, marketer, confirm=False)
    await service.assign_to_client(pool[1].id, client_b.id, marketer, confirm=False)
    await service.assign_to_client(pool[2].id, client_b.id, marketer, confirm=True)
    await service.deactivate(pool[2].id, marketer)
    await service.assign_to_client(pool[0].id, client_b.id, marketer, confirm=True)
    await service.add_to_client(client_a.id, CaregiverCreate(full_name="Direct A2"), marketer)

    for client in (client_a, client_b):
        active = _active(await _caregivers_for(test_db_session, client.id))
        assert len(active) <= 1


async def test_deactivate_sets_end_time(test_db_session, marketer, make_client):
    client = await make_client()
    service = CaregiverService(test_db_session)
    caregiver = await service.add_to_client(client.id, CaregiverCreate(full_name="Leaving Carer"), marketer)

    deactivated = await service.deactivate(caregiver.id, marketer)

    assert deactivated.status == CaregiverStatus.INACTIVE
    assert deactivated.ended_at is not None


async def test_finalize_onboarding_needs_full_checklist(test_db_session, marketer):
    service = CaregiverService(test_db_session)
    caregiver = await service.create_standalone(CaregiverCreate(full_name="Checklist Carer"), marketer)

    with pytest.raises(ValidationError):
        await service.finalize_onboarding(caregiver.id, marketer)

    await service.update_caregiver(
        caregiver.id,
        CaregiverUpdate(**{field: True for field in ONBOARDING_CHECKLIST}),
        marketer,
    )
    finalized = await service.finalize_onboarding(caregiver.id, marketer)
    assert finalized.onboarding_finalized is True

    with pytest.raises(ValidationError):
        await service.update_caregiver(caregiver.id, CaregiverUpdate(tb_test_completed=False), marketer)


async def test_unique_index_rejects_second_active_row(test_db_session, make_client):
    client = await make_client()
    test_db_session.add_all([
        ClientCaregiver(organization_id=client.organization_id, client_id=client.id, full_name="One"),
        ClientCaregiver(organization_id=client.organization_id, client_id=client.id, full_name="Two"),
    ])
    with pytest.raises(IntegrityError):
        await test_db_session.commit()
    await test_db_session.rollback()


async def test_index_violation_on_assign_becomes_conflict(test_db_session, marketer, make_client, monkeypatch):
    client = await make_client()
    client_id = client.id
    service = CaregiverService(test_db_session)
    current = await service.add_to_client(client_id, CaregiverCreate(full_name="Current Carer"), marketer)
    candidate = await service.create_standalone(CaregiverCreate(full_name="Racing Carer"), marketer)

    async def _lost_deactivation(client_id, ended_at):
        return 0

    # Another writer's active row is still in place when this one activates
    monkeypatch.setattr(service.caregiver_repo, "deactivate_active_for_client", _lost_deactivation)

    with pytest.raises(ConflictError) as exc_info:
        await service.assign_to_client(candidate.id, client_id, marketer, confirm=True)
    assert exc_info.value.details == {"client_id": str(client_id)}

    await test_db_session.refresh(marketer)
    with pytest.raises(ConflictError):
        await service.add_to_client(client_id, CaregiverCreate(full_name="Late Carer"), marketer)

    caregivers = await _caregivers_for(test_db_session, client_id)
    assert [c.id for c in _active(caregivers)] == [current.id]
    assert candidate.id not in [c.id for c in caregivers]


async def test_racing_confirmed_assignments_keep_one_active(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}")
    await create_tables(engine)
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with session_maker() as seed:
            actor = User(
                organization_id=uuid.uuid4(),
                name="Race Marketer",
                email="race@careflow.test",
            )
            seed.add(actor)
            await seed.commit()
            client = Client(organization_id=actor.organization_id, client_name="Contested Client")
            seed.add(client)
            await seed.commit()
            client_id = client.id
            seeding = CaregiverService(seed)
            await seeding.add_to_client(client_id, CaregiverCreate(full_name="Carer A"), actor)
            b = await seeding.create_standalone(CaregiverCreate(full_name="Carer B"), actor)
            c = await seeding.create_standalone(CaregiverCreate(full_name="Carer C"), actor)

        async with session_maker() as first, session_maker() as second:
            outcomes = await asyncio.gather(
                CaregiverService(first).assign_to_client(b.id, client_id, actor, confirm=True),
                CaregiverService(second).assign_to_client(c.id, client_id, actor, confirm=True),
                return_exceptions=True,
            )

        for outcome in outcomes:
            assert isinstance(outcome, (AssignmentResult, ConflictError, SQLAlchemyError)), outcome
        winners = [o for o in outcomes if isinstance(o, AssignmentResult)]
        assert winners
        assert all(o.status == "assigned" for o in winners)

        async with session_maker() as check:
            active = _active(await _caregivers_for(check, client_id))
            assert len(active) == 1
            assert active[0].id in {o.caregiver.id for o in winners}
    finally:
        await engine.dispose()
