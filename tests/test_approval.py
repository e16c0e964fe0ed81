import pytest

from conftest import auth_headers, visit_payload
from rental_booking.core.common.constants import NotificationKind

BOOKINGS = "/api/v1/bookings"


async def create_booking(client, world):
    response = await client.post(
        BOOKINGS, json=visit_payload(world.property_id), headers=auth_headers(world.requester)
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]["id"]


async def admin_action(client, booking_id, user_id, action, notes=None):
    return await client.put(
        f"{BOOKINGS}/{booking_id}/admin-action",
        json={"action": action, "adminNotes": notes},
        headers=auth_headers(user_id),
    )


@pytest.mark.asyncio
async def test_approve_confirms_and_notifies_requester(client, world):
    booking_id = await create_booking(client, world)
    world.notifier.sent.clear()

    response = await admin_action(client, booking_id, world.admin, "approve", "see you monday")

    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["status"] == "confirmed"
    assert data["adminApproval"]["isApproved"] is True
    assert data["adminApproval"]["approvedBy"] == str(world.admin)
    assert data["adminApproval"]["approvedAt"] is not None
    assert data["adminApproval"]["notes"] == "see you monday"

    assert [(recipient, kind) for recipient, kind, _ in world.notifier.sent] == [
        (world.requester, NotificationKind.BOOKING_CONFIRMED)
    ]


@pytest.mark.asyncio
async def test_reject_then_approve_is_an_invalid_transition(client, world):
    booking_id = await create_booking(client, world)

    response = await admin_action(client, booking_id, world.requester, "reject", "nope")
    assert response.status_code == 403

    response = await admin_action(client, booking_id, world.admin, "reject", "dates unavailable")
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "rejected"
    _, kind, payload = world.notifier.sent[-1]
    assert kind == NotificationKind.BOOKING_REJECTED
    assert payload["reason"] == "dates unavailable"

    response = await admin_action(client, booking_id, world.admin, "approve")
    assert response.status_code == 409
    assert response.json()["errors"][0]["code"] == "invalid_transition"

    response = await client.get(f"{BOOKINGS}/{booking_id}/timeline", headers=auth_headers(world.requester))
    entries = response.json()["data"]
    assert [entry["action"] for entry in entries] == ["created booking", "rejected booking"]
    assert [entry["status"] for entry in entries] == ["pending", "rejected"]
    assert entries[1]["notes"] == "dates unavailable"
    assert [entry["seq"] for entry in entries] == [1, 2]


@pytest.mark.asyncio
async def test_only_pending_bookings_can_be_approved(client, world):
    booking_id = await create_booking(client, world)
    assert (await admin_action(client, booking_id, world.admin, "approve")).status_code == 200

    response = await admin_action(client, booking_id, world.admin, "approve")
    assert response.status_code == 409
    response = await admin_action(client, booking_id, world.admin, "reject")
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_unknown_admin_action(client, world):
    booking_id = await create_booking(client, world)
    response = await admin_action(client, booking_id, world.admin, "escalate")
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "action"


@pytest.mark.asyncio
async def test_notification_failure_does_not_undo_approval(client, world):
    booking_id = await create_booking(client, world)
    world.notifier.fail = True

    response = await admin_action(client, booking_id, world.admin, "approve")
    assert response.status_code == 200

    response = await client.get(f"{BOOKINGS}/{booking_id}", headers=auth_headers(world.requester))
    assert response.json()["data"]["status"] == "confirmed"


@pytest.mark.asyncio
async def test_cancel_by_requester_and_admin(client, world):
    first = await create_booking(client, world)
    second = await create_booking(client, world)
    await admin_action(client, second, world.admin, "approve")
    world.notifier.sent.clear()

    response = await client.post(
        f"{BOOKINGS}/{first}/cancel", json={"notes": "found another place"}, headers=auth_headers(world.requester)
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "cancelled"
    assert world.notifier.sent == []

    response = await client.post(f"{BOOKINGS}/{second}/cancel", headers=auth_headers(world.admin))
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "cancelled"
    assert [kind for _, kind, _ in world.notifier.sent] == [NotificationKind.BOOKING_CANCELLED]

    response = await client.post(f"{BOOKINGS}/{second}/cancel", headers=auth_headers(world.admin))
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_strangers_and_owners_cannot_cancel(client, world):
    booking_id = await create_booking(client, world)
    for user_id in (world.stranger, world.owner):
        response = await client.post(f"{BOOKINGS}/{booking_id}/cancel", headers=auth_headers(user_id))
        assert response.status_code == 403


@pytest.mark.asyncio
async def test_rejected_booking_cannot_be_cancelled(client, world):
    booking_id = await create_booking(client, world)
    await admin_action(client, booking_id, world.admin, "reject")
    response = await client.post(f"{BOOKINGS}/{booking_id}/cancel", headers=auth_headers(world.requester))
    assert response.status_code == 409
