from __future__ import annotations

import json

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from rental_booking.api.bookings.services.approval_service import load_booking
from rental_booking.api.payments.gateways.card_rail import RazorpayCardGateway
from rental_booking.api.payments.helpers import minor_units_to_amount
from rental_booking.api.payments.models import PaymentRecord, PaymentWebhook
from rental_booking.api.payments.schemas import WebhookAck
from rental_booking.api.payments.services.settlement_service import (
    announce_payment,
    apply_settlement,
)
from rental_booking.core.common.constants import PaymentStatus, PaymentStrategy
from rental_booking.core.exceptions import ValidationError, WebhookUnverifiable
from rental_booking.core.middlewares import logger
from rental_booking.utils.collaborators import Notifier, UserDirectory

PAYMENT_CAPTURED = "payment.captured"
PAYMENT_FAILED = "payment.failed"


async def process_card_webhook(
    session: AsyncSession,
    body: bytes,
    signature: str | None,
    event_id: str | None,
    gateway: RazorpayCardGateway,
    directory: UserDirectory,
    notifier: Notifier,
) -> WebhookAck:
    try:
        body_str = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        # only UTF-8 JSON bodies are ever signed
        raise WebhookUnverifiable() from exc
    gateway.verify_webhook(body_str, signature)

    try:
        raw_payload = json.loads(body_str)
    except ValueError as exc:
        raise ValidationError("body", "Webhook body is not valid JSON") from exc

    payment_entity = raw_payload.get("payload", {}).get("payment", {}).get("entity", {})
    event_type = raw_payload.get("event")
    event_id = event_id or raw_payload.get("id")
    if not event_id and payment_entity.get("id"):
        event_id = f"{event_type}:{payment_entity['id']}"
    if not event_id:
        raise ValidationError("event", "Webhook event id missing")

    existing = await session.execute(
        select(PaymentWebhook).where(PaymentWebhook.event_id == event_id)
    )
    webhook = existing.scalars().first()
    if webhook and webhook.processed:
        logger.info(f"Card webhook {event_id} already processed")
        return WebhookAck(duplicate=True)
    if not webhook:
        webhook = PaymentWebhook(
            event_id=event_id,
            event_type=event_type,
            external_transaction_id=payment_entity.get("order_id"),
            payload=raw_payload,
            processed=False,
        )

    settled = None
    order_id = payment_entity.get("order_id")
    record = await _find_card_record(session, order_id) if order_id else None
    if record is None:
        logger.warning(f"Card webhook {event_id} ({event_type}) matches no payment record")
    elif event_type == PAYMENT_CAPTURED:
        booking = await load_booking(session, record.booking_id, for_update=True)
        amount = minor_units_to_amount(payment_entity.get("amount"))
        if apply_settlement(session, record, booking, None, captured_amount=amount):
            settled = (booking, record)
    elif event_type == PAYMENT_FAILED and record.status == PaymentStatus.PENDING:
        record.mark_failed(payment_entity.get("error_description") or "payment failed")
        session.add(record)

    webhook.processed = True
    session.add(webhook)
    try:
        await session.commit()
    except IntegrityError:
        # a concurrent delivery of the same event won the race
        await session.rollback()
        logger.info(f"Card webhook {event_id} raced a duplicate delivery")
        return WebhookAck(duplicate=True)

    if settled:
        booking, record = settled
        logger.info(f"Booking {booking.id} settled by card webhook {event_id}")
        await announce_payment(booking, record, directory, notifier)
    return WebhookAck()


async def _find_card_record(session: AsyncSession, order_id: str) -> PaymentRecord | None:
    stmt = (
        select(PaymentRecord)
        .where(
            PaymentRecord.external_transaction_id == order_id,
            PaymentRecord.strategy == PaymentStrategy.CARD.value,
        )
        .with_for_update()
    )
    return (await session.execute(stmt)).scalars().first()
