"""
HTTP-level tests for identity, error bodies and the main workflows.
"""

import uuid

import pytest

API = "/api/v1"


async def test_missing_identity_is_401(test_client):
    response = await test_client.get(f"{API}/clients")

    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Missing X-User-Id header"


@pytest.mark.parametrize("header", ["not-a-uuid", str(uuid.uuid4())])
async def test_bad_identity_is_401(test_client, header):
    response = await test_client.get(f"{API}/clients", headers={"X-User-Id": header})
    assert response.status_code == 401


async def test_inactive_user_is_403(test_client, make_user, auth_headers):
    former = await make_user(name="Former", is_active=False)
    response = await test_client.get(f"{API}/clients", headers=auth_headers(former))
    assert response.status_code == 403


async def test_client_lifecycle(test_client, admin, auth_headers):
    headers = auth_headers(admin)

    created = await test_client.post(
        f"{API}/clients",
        json={"client_name": "Mary Ann Smith", "cost_share_amount": "$40"},
        headers=headers,
    )
    assert created.status_code == 201
    client = created.json()
    assert client["first_name"] == "Mary"
    assert client["last_name"] == "Ann Smith"
    assert client["current_phase"] == "intake"
    assert client["cost_share_amount"] == 40.0

    listed = await test_client.get(f"{API}/clients", headers=headers)
    assert listed.json()["total"] == 1

    blocked = await test_client.post(f"{API}/clients/{client['id']}/advance", headers=headers)
    assert blocked.status_code == 400
    error = blocked.json()["error"]
    assert error["message"] == "Phase checklist is incomplete"
    assert error["details"]["phase"] == "intake"
    assert error["path"] == f"{API}/clients/{client['id']}/advance"

    progress = await test_client.get(f"{API}/clients/{client['id']}/progress", headers=headers)
    assert progress.status_code == 200

    refused = await test_client.request(
        "DELETE", f"{API}/clients/{client['id']}", json={"confirmation": "delete"}, headers=headers
    )
    assert refused.status_code == 400
    deleted = await test_client.request(
        "DELETE", f"{API}/clients/{client['id']}", json={"confirmation": "DELETE"}, headers=headers
    )
    assert deleted.status_code == 204
    missing = await test_client.get(f"{API}/clients/{client['id']}", headers=headers)
    assert missing.status_code == 404


async def test_unknown_client_error_body(test_client, admin, auth_headers):
    client_id = uuid.uuid4()
    response = await test_client.get(f"{API}/clients/{client_id}", headers=auth_headers(admin))

    assert response.status_code == 404
    assert response.json() == {
        "error": {
            "message": "Client not found",
            "details": {"entity": "Client", "id": str(client_id)},
            "path": f"{API}/clients/{client_id}",
        }
    }


async def test_assignment_requires_confirmation(test_client, admin, auth_headers):
    headers = auth_headers(admin)
    client = (await test_client.post(f"{API}/clients", json={"client_name": "Pat Green"}, headers=headers)).json()
    first = (await test_client.post(
        f"{API}/clients/{client['id']}/caregivers", json={"full_name": "First Carer"}, headers=headers
    )).json()
    second = (await test_client.post(f"{API}/caregivers", json={"full_name": "Second Carer"}, headers=headers)).json()

    conflict = await test_client.post(
        f"{API}/caregivers/{second['id']}/assign", json={"client_id": client["id"]}, headers=headers
    )
    assert conflict.status_code == 409
    error = conflict.json()["error"]
    assert error["message"] == "Client already has an active caregiver"
    detail = error["details"]
    assert detail["requires_confirmation"] is True
    assert detail["assignment"]["conflicting_caregiver"]["id"] == first["id"]

    confirmed = await test_client.post(
        f"{API}/caregivers/{second['id']}/assign",
        json={"client_id": client["id"], "confirm": True},
        headers=headers,
    )
    assert confirmed.status_code == 200
    assert confirmed.json()["replaced_caregiver_id"] == first["id"]

    caregivers = (await test_client.get(f"{API}/clients/{client['id']}/caregivers", headers=headers)).json()
    active = [c["id"] for c in caregivers["items"] if c["status"] == "active"]
    assert active == [second["id"]]


async def test_referral_conversion(test_client, admin, marketer, auth_headers):
    referral = await test_client.post(
        f"{API}/referrals",
        json={"referral_name": "Olive Stone", "county": "Cobb", "requested_program": "CCSP"},
        headers=auth_headers(marketer),
    )
    assert referral.status_code == 201
    referral_id = referral.json()["id"]

    admin_count = await test_client.get(f"{API}/notifications/unread-count", headers=auth_headers(admin))
    assert admin_count.json()["count"] == 1
    assert admin_count.json()["poll_interval_seconds"] > 0

    converted = await test_client.post(
        f"{API}/referrals/{referral_id}/convert",
        json={"program": "SOURCE"},
        headers=auth_headers(marketer),
    )
    assert converted.status_code == 201
    assert converted.json()["program"] == "SOURCE"
    assert converted.json()["county"] == "Cobb"

    gone = await test_client.get(f"{API}/referrals/{referral_id}", headers=auth_headers(marketer))
    assert gone.status_code == 404


async def test_notification_read_flow(test_client, admin, marketer, auth_headers):
    created = await test_client.post(
        f"{API}/notifications",
        json={"user_id": str(marketer.id), "title": "Reminder", "message": "Upload the TB test"},
        headers=auth_headers(admin),
    )
    assert created.status_code == 201
    notification_id = created.json()["id"]

    forbidden = await test_client.post(f"{API}/notifications/{notification_id}/read", headers=auth_headers(admin))
    assert forbidden.status_code == 403

    read = await test_client.post(f"{API}/notifications/{notification_id}/read", headers=auth_headers(marketer))
    assert read.status_code == 200
    assert read.json()["is_read"] is True

    by_type = await test_client.get(f"{API}/notifications/unread-count/by-type", headers=auth_headers(marketer))
    assert by_type.json()["counts"]["general"] == 0


async def test_muted_notification_returns_204(test_client, admin, make_user, auth_headers):
    muted = await make_user(name="Muted", preferences={"in_app": {"general": False}})
    response = await test_client.post(
        f"{API}/notifications",
        json={"user_id": str(muted.id), "title": "Skip", "message": "Not delivered"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 204


async def test_broadcast_message(test_client, admin, marketer, make_user, auth_headers):
    await make_user(name="Another")

    response = await test_client.post(
        f"{API}/messages/broadcast",
        json={"content": "All hands at noon", "all_users": True},
        headers=auth_headers(admin),
    )
    assert response.status_code == 201
    assert response.json() == {"sent_count": 2}

    inbox = await test_client.get(f"{API}/messages", headers=auth_headers(marketer))
    assert inbox.json()["total"] == 1
    assert inbox.json()["items"][0]["sender"]["id"] == str(admin.id)


async def test_request_validation_error_body(test_client, admin, auth_headers):
    response = await test_client.post(f"{API}/clients", json={}, headers=auth_headers(admin))

    assert response.status_code == 422
    assert response.json()["error"]["message"] == "Validation error"
