import asyncio
from datetime import date, timedelta

import pytest
from sqlmodel import select

from conftest import as_decimal, auth_headers
from rental_booking.api.payments.gateways.base import GatewayOutcome
from rental_booking.api.payments.helpers import utcnow
from rental_booking.api.payments.models import PaymentRecord
from rental_booking.core.common.constants import NotificationKind, PaymentStatus
from rental_booking.core.exceptions import GatewayTimeout

BOOKINGS = "/api/v1/bookings"
PAYMENTS = "/api/v1/payments"
WALLET_NUMBER = "01712345678"


async def initiate(client, world, booking_id, strategy="mobile_wallet", user_id=None, **extra):
    payload = {"bookingId": booking_id, "strategy": strategy}
    if strategy == "mobile_wallet":
        payload["payerNumber"] = WALLET_NUMBER
    payload.update(extra)
    return await client.post(
        f"{PAYMENTS}/initiate", json=payload, headers=auth_headers(user_id or world.requester)
    )


async def execute(client, world, payment_id, user_id=None):
    return await client.post(
        f"{PAYMENTS}/{payment_id}/execute", headers=auth_headers(user_id or world.requester)
    )


async def timeline_of(client, world, booking_id):
    response = await client.get(f"{BOOKINGS}/{booking_id}/timeline", headers=auth_headers(world.requester))
    return response.json()["data"]


@pytest.mark.asyncio
async def test_wallet_settlement_happy_path(client, world, confirmed_booking):
    response = await initiate(client, world, confirmed_booking)
    assert response.status_code == 201, response.text
    initiated = response.json()["data"]
    payment = initiated["payment"]
    assert payment["status"] == "pending"
    assert payment["strategy"] == "mobile_wallet"
    assert payment["payerNumber"] == WALLET_NUMBER
    assert payment["currency"] == "BDT"
    assert payment["transactionId"].startswith("txn_")
    assert as_decimal(payment["commission"]) == as_decimal("120")
    assert as_decimal(payment["ownerShare"]) == as_decimal("1080")
    assert initiated["externalId"] == payment["externalTransactionId"]
    assert world.wallet.opened[0][1] == WALLET_NUMBER

    world.notifier.sent.clear()
    response = await execute(client, world, payment["id"])
    assert response.status_code == 200, response.text
    assert response.json()["data"]["status"] == "completed"
    assert response.json()["data"]["paymentDate"] is not None

    booking = (
        await client.get(f"{BOOKINGS}/{confirmed_booking}", headers=auth_headers(world.requester))
    ).json()["data"]
    assert booking["status"] == "completed"
    assert booking["payment"]["isPaid"] is True
    assert booking["payment"]["paymentMethod"] == "mobile_banking"
    assert booking["payment"]["transactionId"] == payment["transactionId"]
    assert as_decimal(booking["payment"]["adminCommission"]) == as_decimal("120")
    assert as_decimal(booking["payment"]["ownerAmount"]) == as_decimal("1080")

    entries = booking["timeline"]
    assert [entry["status"] for entry in entries] == ["pending", "confirmed", "completed"]
    assert entries[-1]["action"] == "settled booking"
    assert entries[-1]["notes"] == "Advance payment of 1200.00 received"

    assert [(recipient, kind) for recipient, kind, _ in world.notifier.sent] == [
        (world.admin, NotificationKind.PAYMENT_RECEIVED)
    ]


@pytest.mark.asyncio
async def test_execute_on_completed_record_is_idempotent(client, world, confirmed_booking):
    payment_id = (await initiate(client, world, confirmed_booking)).json()["data"]["payment"]["id"]
    assert (await execute(client, world, payment_id)).status_code == 200

    response = await execute(client, world, payment_id)
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "completed"
    assert len(world.wallet.settled) == 1
    assert len(await timeline_of(client, world, confirmed_booking)) == 3


@pytest.mark.asyncio
async def test_initiate_preconditions(client, world, confirmed_booking):
    response = await initiate(client, world, confirmed_booking, user_id=world.stranger)
    assert response.status_code == 403

    response = await initiate(client, world, confirmed_booking, payerNumber="02712345678")
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "payerNumber"

    response = await initiate(client, world, confirmed_booking, amount="999")
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "amount"

    response = await initiate(client, world, confirmed_booking, strategy="cash")
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "strategy"

    assert world.wallet.opened == []


@pytest.mark.asyncio
async def test_pending_booking_is_not_ready_for_payment(client, world):
    created = await client.post(
        BOOKINGS,
        json={
            "propertyId": str(world.property_id),
            "bookingType": "rent",
            "rentalPeriod": {"startDate": "2027-06-01", "durationMonths": 6},
            "advanceAmount": "5000",
        },
        headers=auth_headers(world.requester),
    )
    booking_id = created.json()["data"]["id"]

    response = await initiate(client, world, booking_id)
    assert response.status_code == 409
    assert response.json()["errors"][0]["code"] == "booking_not_ready"


@pytest.mark.asyncio
async def test_concurrent_initiations_leave_one_pending_record(client, world, confirmed_booking, session_factory):
    first, second = await asyncio.gather(
        initiate(client, world, confirmed_booking),
        initiate(client, world, confirmed_booking),
    )

    assert sorted([first.status_code, second.status_code]) == [201, 409]
    loser = first if first.status_code == 409 else second
    assert loser.json()["errors"][0]["code"] == "duplicate_payment"

    async with session_factory() as session:
        records = (await session.execute(select(PaymentRecord))).scalars().all()
    assert [record.status for record in records] == ["pending"]
    assert len(world.wallet.opened) == 1


@pytest.mark.asyncio
async def test_sequential_duplicate_initiation(client, world, confirmed_booking):
    assert (await initiate(client, world, confirmed_booking)).status_code == 201
    response = await initiate(client, world, confirmed_booking, strategy="card")
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_failed_execution_leaves_booking_untouched(client, world, confirmed_booking):
    payment_id = (await initiate(client, world, confirmed_booking)).json()["data"]["payment"]["id"]
    world.wallet.outcome = GatewayOutcome(status=PaymentStatus.FAILED, reason="insufficient balance")

    response = await execute(client, world, payment_id)
    assert response.status_code == 402
    assert "insufficient balance" in response.json()["errors"][0]["message"]

    record = (await client.get(f"{PAYMENTS}/{payment_id}", headers=auth_headers(world.requester))).json()["data"]
    assert record["status"] == "failed"
    assert record["failureReason"] == "insufficient balance"

    booking = (
        await client.get(f"{BOOKINGS}/{confirmed_booking}", headers=auth_headers(world.requester))
    ).json()["data"]
    assert booking["status"] == "confirmed"
    assert booking["payment"]["isPaid"] is False
    assert len(booking["timeline"]) == 2

    response = await execute(client, world, payment_id)
    assert response.status_code == 409
    assert response.json()["errors"][0]["code"] == "invalid_transition"

    # a failed attempt frees the booking for a new one
    assert (await initiate(client, world, confirmed_booking)).status_code == 201


@pytest.mark.asyncio
async def test_gateway_timeout_fails_the_record(client, world, confirmed_booking):
    payment_id = (await initiate(client, world, confirmed_booking)).json()["data"]["payment"]["id"]
    world.wallet.error = GatewayTimeout()

    response = await execute(client, world, payment_id)
    assert response.status_code == 504

    record = (await client.get(f"{PAYMENTS}/{payment_id}", headers=auth_headers(world.requester))).json()["data"]
    assert record["status"] == "failed"
    assert record["failureReason"] == "gateway timeout"


@pytest.mark.asyncio
async def test_uncaptured_card_payment_stays_pending(client, world, confirmed_booking):
    response = await initiate(client, world, confirmed_booking, strategy="card")
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["clientSecret"] == "rzp_test_key"
    assert data["payment"]["payerNumber"] is None

    world.card.outcome = GatewayOutcome(status=PaymentStatus.PENDING, reason="attempted")
    response = await execute(client, world, data["payment"]["id"])
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "pending"
    assert len(await timeline_of(client, world, confirmed_booking)) == 2


@pytest.mark.asyncio
async def test_payment_status_visibility(client, world, confirmed_booking):
    payment_id = (await initiate(client, world, confirmed_booking)).json()["data"]["payment"]["id"]

    for viewer in (world.requester, world.owner, world.admin):
        response = await client.get(f"{PAYMENTS}/{payment_id}", headers=auth_headers(viewer))
        assert response.status_code == 200
    response = await client.get(f"{PAYMENTS}/{payment_id}", headers=auth_headers(world.stranger))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_cancel_fails_pending_payment(client, world, confirmed_booking):
    payment_id = (await initiate(client, world, confirmed_booking)).json()["data"]["payment"]["id"]

    response = await client.post(f"{BOOKINGS}/{confirmed_booking}/cancel", headers=auth_headers(world.requester))
    assert response.status_code == 200

    record = (await client.get(f"{PAYMENTS}/{payment_id}", headers=auth_headers(world.requester))).json()["data"]
    assert record["status"] == "failed"
    assert record["failureReason"] == "booking cancelled"


@pytest.mark.asyncio
async def test_reconcile_expires_stale_pending_records(client, world, confirmed_booking, session_factory):
    payment_id = (await initiate(client, world, confirmed_booking)).json()["data"]["payment"]["id"]

    response = await client.post(f"{PAYMENTS}/reconcile", headers=auth_headers(world.admin))
    assert response.json()["data"] == {"expired": 0}

    async with session_factory() as session:
        record = (await session.execute(select(PaymentRecord))).scalars().one()
        record.created_at = utcnow() - timedelta(hours=2)
        session.add(record)
        await session.commit()

    response = await client.post(f"{PAYMENTS}/reconcile", headers=auth_headers(world.requester))
    assert response.status_code == 403

    response = await client.post(f"{PAYMENTS}/reconcile", headers=auth_headers(world.admin))
    assert response.status_code == 200
    assert response.json()["data"] == {"expired": 1}

    record = (await client.get(f"{PAYMENTS}/{payment_id}", headers=auth_headers(world.requester))).json()["data"]
    assert record["status"] == "failed"
    assert record["failureReason"] == "expired"
    assert (await initiate(client, world, confirmed_booking)).status_code == 201


@pytest.mark.asyncio
async def test_rent_booking_settles_end_to_end(client, world):
    start = (date.today() + timedelta(days=10)).isoformat()
    response = await client.post(
        BOOKINGS,
        json={
            "propertyId": str(world.property_id),
            "bookingType": "rent",
            "rentalPeriod": {"startDate": start, "durationMonths": 6},
            "advanceAmount": "1200",
            "commissionPercentage": "10",
        },
        headers=auth_headers(world.requester),
    )
    assert response.status_code == 201, response.text
    booking_id = response.json()["data"]["id"]
    response = await client.put(
        f"{BOOKINGS}/{booking_id}/admin-action",
        json={"action": "approve"},
        headers=auth_headers(world.admin),
    )
    assert response.status_code == 200, response.text

    payment_id = (await initiate(client, world, booking_id)).json()["data"]["payment"]["id"]
    response = await execute(client, world, payment_id)
    assert response.status_code == 200, response.text
    assert response.json()["data"]["status"] == "completed"

    booking = (
        await client.get(f"{BOOKINGS}/{booking_id}", headers=auth_headers(world.requester))
    ).json()["data"]
    assert booking["status"] == "completed"
    assert booking["bookingType"] == "rent"
    assert booking["payment"]["isPaid"] is True
    assert as_decimal(booking["payment"]["adminCommission"]) == as_decimal("120")
    assert as_decimal(booking["payment"]["ownerAmount"]) == as_decimal("1080")
    entries = await timeline_of(client, world, booking_id)
    assert [entry["status"] for entry in entries] == ["pending", "confirmed", "completed"]
