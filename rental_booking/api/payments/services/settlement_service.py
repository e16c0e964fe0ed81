"""One settlement path for every payment rail.

The rail-specific part lives behind ``PaymentGateway``; everything that
touches the booking or the payment record happens here, inside a single
commit per operation.
"""
from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
import re
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from rental_booking.api.bookings import timeline
from rental_booking.api.bookings.lifecycle import split_commission
from rental_booking.api.bookings.models import Booking
from rental_booking.api.bookings.services.approval_service import authorize_view, load_booking
from rental_booking.api.payments.gateways.base import GatewayIntent, PaymentGateway
from rental_booking.api.payments.helpers import generate_transaction_id, money, utcnow
from rental_booking.api.payments.models import PaymentRecord
from rental_booking.core.common.constants import (
    PAYMENT_METHOD_BY_STRATEGY,
    BookingStatus,
    NotificationKind,
    PaymentStatus,
    PaymentStrategy,
)
from rental_booking.core.config import Config
from rental_booking.core.exceptions import (
    BookingNotReady,
    DuplicatePayment,
    Forbidden,
    GatewayTimeout,
    InvalidTransition,
    NotFound,
    PaymentFailed,
    ValidationError,
)
from rental_booking.core.locks import held_lock
from rental_booking.core.messages import ErrorMessage
from rental_booking.core.middlewares import logger
from rental_booking.core.request_context import Actor, require_admin
from rental_booking.utils.admin_recipients import resolve_admin_recipients
from rental_booking.utils.collaborators import Notifier, UserDirectory
from rental_booking.utils.notifier import dispatch_notification

GATEWAY_TIMEOUT_REASON = "gateway timeout"
AMOUNT_MISMATCH_REASON = "amount mismatch"
BOOKING_NOT_CONFIRMED_REASON = "booking not confirmed"
EXPIRED_REASON = "expired"


def payment_lock_key(booking_id: uuid.UUID) -> str:
    return f"booking:{booking_id}:payment"


def parse_strategy(value: str) -> PaymentStrategy:
    try:
        return PaymentStrategy(value)
    except ValueError as exc:
        raise ValidationError("strategy", "Strategy must be 'card' or 'mobile_wallet'") from exc


def validate_payer_number(payer_number: str | None) -> str:
    if not payer_number or not re.fullmatch(Config.WALLET_NUMBER_PATTERN, payer_number):
        raise ValidationError("payerNumber", ErrorMessage.WALLET_NUMBER_INVALID)
    return payer_number


def resolve_charge(booking: Booking, requested: Decimal | None) -> Decimal:
    """The amount a settlement must charge for ``booking``.

    The advance agreed at creation wins; a request amount is only used when
    the booking carries none, and must agree with it otherwise.
    """
    if booking.advance_amount is not None:
        if requested is not None and money(requested) != money(booking.advance_amount):
            raise ValidationError("amount", ErrorMessage.AMOUNT_MISMATCH)
        return money(booking.advance_amount)
    if requested is None:
        raise ValidationError("amount", ErrorMessage.AMOUNT_REQUIRED)
    if requested <= 0:
        raise ValidationError("amount", "Amount must be positive")
    return money(requested)


async def find_pending_record(
    session: AsyncSession, booking_id: uuid.UUID
) -> PaymentRecord | None:
    stmt = select(PaymentRecord).where(
        PaymentRecord.booking_id == booking_id,
        PaymentRecord.status == PaymentStatus.PENDING.value,
    )
    return (await session.execute(stmt)).scalars().first()


async def load_record(
    session: AsyncSession, payment_id: uuid.UUID, for_update: bool = False
) -> PaymentRecord:
    stmt = select(PaymentRecord).where(PaymentRecord.id == payment_id)
    if for_update:
        stmt = stmt.with_for_update()
    record = (await session.execute(stmt)).scalars().first()
    if not record:
        raise NotFound("payment", payment_id)
    return record


def _gateway_for(
    gateways: dict[PaymentStrategy, PaymentGateway], strategy: PaymentStrategy
) -> PaymentGateway:
    gateway = gateways.get(strategy)
    if gateway is None:
        raise ValidationError("strategy", f"Payment strategy '{strategy.value}' is not available")
    return gateway


async def initiate(
    session: AsyncSession,
    booking_id: uuid.UUID,
    actor: Actor,
    strategy: str,
    gateways: dict[PaymentStrategy, PaymentGateway],
    payer_number: str | None = None,
    amount: Decimal | None = None,
) -> tuple[PaymentRecord, GatewayIntent]:
    rail = parse_strategy(strategy)
    booking = await load_booking(session, booking_id)
    if booking.requester_id != actor.id:
        raise Forbidden(ErrorMessage.PAYMENT_DENIED)
    if booking.status != BookingStatus.CONFIRMED:
        raise BookingNotReady()
    if rail == PaymentStrategy.MOBILE_WALLET:
        payer_number = validate_payer_number(payer_number)
    else:
        payer_number = None

    charge = resolve_charge(booking, amount)
    percentage = booking.commission_percentage
    if percentage is None:
        percentage = Config.DEFAULT_COMMISSION_PERCENTAGE
    split = split_commission(charge, percentage)
    gateway = _gateway_for(gateways, rail)

    async with held_lock(payment_lock_key(booking.id), Config.PAYMENT_LOCK_TTL_SECONDS) as acquired:
        if not acquired:
            raise DuplicatePayment()
        if await find_pending_record(session, booking.id):
            raise DuplicatePayment()

        intent = await gateway.open(charge, payer_number, str(booking.id))
        record = PaymentRecord(
            transaction_id=generate_transaction_id(),
            booking_id=booking.id,
            payer_id=actor.id,
            strategy=rail.value,
            amount=charge,
            commission_percentage=money(percentage),
            commission=split.commission,
            owner_share=split.owner_share,
            currency=Config.CURRENCY,
            external_transaction_id=intent.external_id,
            payer_number=payer_number,
        )
        session.add(record)
        try:
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            raise DuplicatePayment() from exc

    logger.info(
        f"Payment {record.transaction_id} opened on {rail.value} for booking {booking.id}"
    )
    return record, intent


def apply_settlement(
    session: AsyncSession,
    record: PaymentRecord,
    booking: Booking,
    performed_by: uuid.UUID | None,
    captured_amount: Decimal | None = None,
) -> bool:
    """Stage a successful capture on ``record`` and ``booking``.

    Returns True when the booking was settled. A capture that cannot be
    honoured fails the record instead. Nothing is committed here.
    """
    if record.status == PaymentStatus.COMPLETED:
        return False
    if record.status == PaymentStatus.FAILED:
        # failed is terminal; a late capture needs a manual refund
        logger.error(
            f"Payment {record.transaction_id} captured after it failed ({record.failure_reason})"
        )
        return False

    if captured_amount is not None and money(captured_amount) != money(record.amount):
        logger.warning(
            f"Payment {record.transaction_id} captured {captured_amount}, expected {record.amount}"
        )
        record.mark_failed(AMOUNT_MISMATCH_REASON)
        session.add(record)
        return False

    if booking.status != BookingStatus.CONFIRMED:
        logger.error(
            f"Payment {record.transaction_id} captured for booking {booking.id} in status {booking.status}"
        )
        record.mark_failed(BOOKING_NOT_CONFIRMED_REASON)
        session.add(record)
        return False

    at = utcnow()
    record.mark_completed(at)
    entry = booking.settle(
        amount=record.amount,
        payment_method=PAYMENT_METHOD_BY_STRATEGY[PaymentStrategy(record.strategy)],
        transaction_id=record.transaction_id,
        performed_by=performed_by,
        at=at,
    )
    session.add(record)
    timeline.append(session, booking, entry)
    return True


async def fail_record(session: AsyncSession, record: PaymentRecord, reason: str) -> None:
    record.mark_failed(reason)
    session.add(record)
    await session.commit()
    logger.warning(f"Payment {record.transaction_id} failed: {reason}")


async def announce_payment(
    booking: Booking,
    record: PaymentRecord,
    directory: UserDirectory,
    notifier: Notifier,
) -> None:
    recipients = await resolve_admin_recipients(directory)
    await dispatch_notification(
        notifier,
        recipients,
        NotificationKind.PAYMENT_RECEIVED,
        {
            "bookingId": str(booking.id),
            "paymentId": str(record.id),
            "transactionId": record.transaction_id,
            "amount": str(record.amount),
            "commission": str(record.commission),
            "ownerShare": str(record.owner_share),
            "strategy": record.strategy,
        },
    )


async def execute(
    session: AsyncSession,
    payment_id: uuid.UUID,
    actor: Actor,
    gateways: dict[PaymentStrategy, PaymentGateway],
    directory: UserDirectory,
    notifier: Notifier,
) -> tuple[PaymentRecord, Booking]:
    record = await load_record(session, payment_id, for_update=True)
    booking = await load_booking(session, record.booking_id, for_update=True)
    if not actor.is_admin and booking.requester_id != actor.id:
        raise Forbidden(ErrorMessage.PAYMENT_DENIED)

    if record.status == PaymentStatus.COMPLETED:
        return record, booking
    if record.status == PaymentStatus.FAILED:
        raise InvalidTransition(PaymentStatus.FAILED.value, PaymentStatus.COMPLETED.value)
    if booking.status != BookingStatus.CONFIRMED:
        raise BookingNotReady()

    gateway = _gateway_for(gateways, PaymentStrategy(record.strategy))
    try:
        outcome = await gateway.settle(record.external_transaction_id)
    except GatewayTimeout:
        await fail_record(session, record, GATEWAY_TIMEOUT_REASON)
        raise
    except PaymentFailed as exc:
        await fail_record(session, record, exc.reason or ErrorMessage.PAYMENT_FAILED)
        raise

    if outcome.status == PaymentStatus.PENDING:
        logger.info(f"Payment {record.transaction_id} not captured yet ({outcome.reason})")
        return record, booking

    if not outcome.succeeded:
        reason = outcome.reason or ErrorMessage.PAYMENT_FAILED
        await fail_record(session, record, reason)
        raise PaymentFailed(reason)

    settled = apply_settlement(session, record, booking, actor.id, outcome.amount)
    await timeline.commit_transition(
        session, BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value
    )
    if not settled:
        raise PaymentFailed(record.failure_reason)

    logger.info(f"Booking {booking.id} settled by payment {record.transaction_id}")
    await announce_payment(booking, record, directory, notifier)
    return record, booking


async def sweep_stale_payments(
    session: AsyncSession,
    actor: Actor,
    older_than: timedelta | None = None,
) -> int:
    """Fail pending records nobody completed in time, freeing their bookings."""
    require_admin(actor)
    if older_than is None:
        older_than = timedelta(minutes=Config.PENDING_PAYMENT_TTL_MINUTES)
    cutoff = utcnow() - older_than

    stmt = (
        select(PaymentRecord)
        .where(
            PaymentRecord.status == PaymentStatus.PENDING.value,
            PaymentRecord.created_at < cutoff,
        )
        .with_for_update()
    )
    records = (await session.execute(stmt)).scalars().all()
    for record in records:
        record.mark_failed(EXPIRED_REASON)
        session.add(record)
    await session.commit()

    if records:
        logger.info(f"Expired {len(records)} pending payment(s) older than {cutoff}")
    return len(records)


async def get_payment_status(
    session: AsyncSession, payment_id: uuid.UUID, actor: Actor
) -> PaymentRecord:
    record = await load_record(session, payment_id)
    booking = await load_booking(session, record.booking_id)
    authorize_view(booking, actor)
    return record
