"""
Referral capture and conversion tests.
"""

import uuid
from datetime import date

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from careflow.core.exceptions import NotFoundError, ValidationError
from careflow.models.client import Client, ClientPhase, ClientStatus
from careflow.models.notification import Notification, NotificationType
from careflow.models.referral import Referral
from careflow.schemas.referral import (
    IntakeForm,
    ReferralCreate,
    ReferralDetails,
    ReferralUpdate,
    parse_referral_notes,
    serialize_referral_details,
)
from careflow.services.referral_service import ReferralService, build_client_payload


@pytest.fixture
def make_referral(test_db_session, org_id):
    async def _make_referral(**details) -> Referral:
        referral = Referral(
            organization_id=org_id,
            referred_by="Dr. Hall",
            referral_date=date(2026, 2, 1),
            referral_source="Hospital",
            notes=serialize_referral_details(ReferralDetails(**details)),
        )
        test_db_session.add(referral)
        await test_db_session.commit()
        return referral
    return _make_referral


def test_plain_text_notes_become_additional_info():
    details = parse_referral_notes("Call after 5pm")
    assert details.additional_info == "Call after 5pm"
    assert parse_referral_notes("[1, 2]").additional_info == "[1, 2]"
    assert parse_referral_notes(None) == ReferralDetails()


def test_payload_program_comes_only_from_form():
    referral = Referral(id=None, referral_date=None, referred_by=None, referral_source=None)
    details = ReferralDetails(referral_name="Ann Lee", requested_program="CCSP")

    with_program = build_client_payload(referral, details, IntakeForm(program="SOURCE"), date(2026, 3, 1))
    without_program = build_client_payload(referral, details, IntakeForm(program=""), date(2026, 3, 1))

    assert with_program["program"] == "SOURCE"
    assert without_program["program"] is None
    assert "requested_program" not in with_program


def test_payload_carries_referral_fields_and_form_wins():
    referral = Referral(
        referral_date=date(2026, 2, 1),
        referred_by="Dr. Hall",
        referral_source="Hospital",
    )
    details = ReferralDetails(
        referral_name="Ann Lee",
        phone="555-0100",
        county="Fulton",
        referral_dob=date(1950, 6, 1),
        physician="Dr. Park",
        diagnosis="CHF",
        caregiver_name="Sam Lee",
        marketer_name="Mia Market",
        marketer_email="mia@example.com",
        marketer_phone="555-0199",
        tb_test_completed=True,
        caregiver_fingerprinted=True,
    )
    form = IntakeForm(caregiver_name="Sam J. Lee", cost_share_amount="$1,250.50", frequency="")

    payload = build_client_payload(referral, details, form, date(2026, 3, 1))

    assert payload["client_name"] == "Ann Lee"
    assert payload["client_phone"] == "555-0100"
    assert payload["county"] == "Fulton"
    assert payload["location"] == "Fulton"
    assert payload["date_of_birth"] == date(1950, 6, 1)
    assert payload["physician"] == "Dr. Park"
    assert payload["diagnosis"] == "CHF"
    assert payload["caregiver_name"] == "Sam J. Lee"
    assert payload["director_of_marketing"] == "Mia Market"
    assert payload["referred_by"] == "Dr. Hall"
    assert payload["referral_source"] == "Hospital"
    assert payload["state"] == "GA"
    assert payload["company"] == "FCA"
    assert payload["cost_share_amount"] == 1250.5
    assert payload.get("frequency") is None
    assert payload["tb_test_completed"] is True
    assert payload["caregiver_fingerprinted"] is True
    assert payload["pca_cert_including_2_of_3"] is False
    assert payload["current_phase"] == ClientPhase.INTAKE
    assert payload["intake_date"] == date(2026, 3, 1)
    for excluded in ("marketer_name", "marketer_email", "marketer_phone", "referral_name", "phone"):
        assert excluded not in payload


async def test_convert_creates_client_and_removes_referral(test_db_session, marketer, make_referral):
    referral = await make_referral(
        referral_name="Ruth Ann Baker",
        county="Cobb",
        requested_program="CCSP",
        drivers_license_submitted=True,
    )
    referral_id = referral.id

    client = await ReferralService(test_db_session).convert_to_client(
        referral_id, IntakeForm(program="SOURCE"), marketer
    )

    assert client.client_name == "Ruth Ann Baker"
    assert (client.first_name, client.last_name) == ("Ruth", "Ann Baker")
    assert client.program == "SOURCE"
    assert client.county == "Cobb"
    assert client.drivers_license_submitted is True
    assert client.current_phase == ClientPhase.INTAKE
    assert client.status == ClientStatus.ACTIVE
    assert client.referral_id == referral_id
    assert client.intake_date is not None
    assert await test_db_session.get(Referral, referral_id) is None


async def test_form_name_overrides_referral_name(test_db_session, marketer, make_referral):
    referral = await make_referral(referral_name="Nick Name")
    client = await ReferralService(test_db_session).convert_to_client(
        referral.id, IntakeForm(client_name="Nicholas Name"), marketer
    )
    assert client.first_name == "Nicholas"


async def test_failed_conversion_keeps_referral(test_db_session, marketer, make_referral, monkeypatch):
    referral = await make_referral(referral_name="Keep Me")
    referral_id = referral.id
    service = ReferralService(test_db_session)

    async def failing_delete(id):
        raise OperationalError("DELETE FROM referrals", {}, Exception("disk I/O error"))

    monkeypatch.setattr(service.referral_repo, "delete", failing_delete)

    with pytest.raises(OperationalError):
        await service.convert_to_client(referral_id, IntakeForm(), marketer)

    assert await test_db_session.get(Referral, referral_id) is not None
    count = await test_db_session.execute(select(func.count()).select_from(Client))
    assert count.scalar_one() == 0


async def test_failed_client_insert_keeps_referral(test_db_session, marketer, make_referral, monkeypatch):
    referral = await make_referral(referral_name="Still Here")
    referral_id = referral.id
    service = ReferralService(test_db_session)

    async def failing_create(**values):
        raise RuntimeError("client insert failed")

    monkeypatch.setattr(service.client_service.client_repo, "create", failing_create)

    with pytest.raises(RuntimeError):
        await service.convert_to_client(referral_id, IntakeForm(), marketer)

    assert await test_db_session.get(Referral, referral_id) is not None
    count = await test_db_session.execute(select(func.count()).select_from(Client))
    assert count.scalar_one() == 0


async def test_conversion_without_any_name_rejected(test_db_session, marketer, make_referral):
    referral = await make_referral(county="Cobb")
    with pytest.raises(ValidationError):
        await ReferralService(test_db_session).convert_to_client(referral.id, IntakeForm(), marketer)
    assert await test_db_session.get(Referral, referral.id) is not None


async def test_convert_missing_referral(test_db_session, marketer):
    with pytest.raises(NotFoundError):
        await ReferralService(test_db_session).convert_to_client(uuid.uuid4(), IntakeForm(), marketer)


async def test_create_referral_notifies_admins(test_db_session, admin, marketer):
    service = ReferralService(test_db_session)

    referral = await service.create_referral(
        ReferralCreate(referral_name="Lena Ford", county="DeKalb", tb_test_completed=True),
        marketer,
    )

    assert referral.referral_name == "Lena Ford"
    assert referral.tb_test_completed is True
    result = await test_db_session.execute(
        select(Notification).where(Notification.type == NotificationType.REFERRAL_CREATED)
    )
    notifications = result.scalars().all()
    assert [n.user_id for n in notifications] == [admin.id]
    assert notifications[0].related_entity_id == str(referral.id)


async def test_create_referral_rejects_foreign_client(test_db_session, marketer, make_user):
    outsider = await make_user(name="Other Org", organization_id=uuid.uuid4())
    foreign_client = Client(organization_id=outsider.organization_id, client_name="Elsewhere")
    test_db_session.add(foreign_client)
    await test_db_session.commit()

    with pytest.raises(NotFoundError):
        await ReferralService(test_db_session).create_referral(
            ReferralCreate(referral_name="Lena Ford", client_id=foreign_client.id), marketer
        )


async def test_update_referral_merges_capture(test_db_session, marketer, make_referral):
    referral = await make_referral(referral_name="Merge Me", county="Cobb", physician="Dr. One")

    updated = await ReferralService(test_db_session).update_referral(
        referral.id, ReferralUpdate(physician="Dr. Two", referral_source="Church"), marketer
    )

    assert updated.referral_name == "Merge Me"
    assert updated.county == "Cobb"
    assert updated.physician == "Dr. Two"
    assert updated.referral_source == "Church"


async def test_list_prospects_excludes_linked(test_db_session, marketer, make_referral, make_client):
    await make_referral(referral_name="Prospect")
    client = await make_client()
    linked = await make_referral(referral_name="Linked")
    linked.client_id = client.id
    await test_db_session.commit()

    items, total = await ReferralService(test_db_session).list_prospects(marketer)

    assert total == 1
    assert items[0].referral_name == "Prospect"
