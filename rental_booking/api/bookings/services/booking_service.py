from __future__ import annotations

import uuid

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from rental_booking.api.bookings import timeline
from rental_booking.api.bookings.lifecycle import (
    resolve_rental_period,
    validate_booking_type,
    validate_visit,
)
from rental_booking.api.bookings.models import Booking, BookingTimelineEntry
from rental_booking.api.bookings.schemas import BookingCreateRequest, RentalPeriodIn
from rental_booking.api.bookings.services.approval_service import (
    booking_payload,
    load_booking,
)
from rental_booking.api.payments.helpers import utcnow
from rental_booking.api.payments.models import PaymentRecord
from rental_booking.core.common.constants import (
    BookingStatus,
    BookingType,
    NotificationKind,
    PaymentStatus,
    TimelineAction,
)
from rental_booking.core.config import Config
from rental_booking.core.exceptions import Forbidden, ValidationError
from rental_booking.core.messages import ErrorMessage
from rental_booking.core.middlewares import logger
from rental_booking.core.request_context import Actor, require_admin
from rental_booking.utils.admin_recipients import resolve_admin_recipients
from rental_booking.utils.collaborators import Notifier, PropertyAvailability, UserDirectory
from rental_booking.utils.notifier import dispatch_notification

CANCELLED_PAYMENT_REASON = "booking cancelled"


async def create_booking(
    session: AsyncSession,
    actor: Actor,
    payload: BookingCreateRequest,
    catalog: PropertyAvailability,
    directory: UserDirectory,
    notifier: Notifier,
) -> tuple[Booking, list[BookingTimelineEntry]]:
    booking_type = validate_booking_type(payload.booking_type)
    fields: dict = {}
    if booking_type == BookingType.VISIT:
        validate_visit(payload.visit_date, payload.visit_time_slot, today=utcnow().date())
        fields.update(visit_date=payload.visit_date, visit_time_slot=payload.visit_time_slot)
    else:
        period = payload.rental_period or RentalPeriodIn()
        start, end, months = resolve_rental_period(
            period.start_date, period.end_date, period.duration_months
        )
        fields.update(
            rental_start_date=start, rental_end_date=end, rental_duration_months=months
        )

    # NotFound from the catalogue propagates as-is
    if not await catalog.is_available(payload.property_id):
        raise ValidationError("propertyId", ErrorMessage.PROPERTY_UNAVAILABLE)
    owner_id = await catalog.owner_of(payload.property_id)

    booking = Booking(
        property_id=payload.property_id,
        requester_id=actor.id,
        owner_id=owner_id,
        booking_type=booking_type.value,
        user_message=payload.user_message,
        preferred_contact_time=payload.preferred_contact_time,
        **fields,
    )
    percentage = payload.commission_percentage
    if percentage is None:
        percentage = Config.DEFAULT_COMMISSION_PERCENTAGE
    booking.set_advance(payload.advance_amount, percentage)

    entry = booking.record(TimelineAction.CREATED, actor.id)
    timeline.append(session, booking, entry)
    await session.commit()

    logger.info(f"Booking {booking.id} created by {actor.id} for property {booking.property_id}")
    recipients = await resolve_admin_recipients(directory)
    await dispatch_notification(
        notifier, recipients, NotificationKind.BOOKING_CREATED, booking_payload(booking)
    )
    return booking, [entry]


async def list_my_bookings(session: AsyncSession, actor: Actor) -> list[Booking]:
    stmt = (
        select(Booking)
        .where(Booking.requester_id == actor.id)
        .order_by(Booking.created_at.desc())
    )
    return list((await session.execute(stmt)).scalars().all())


async def list_bookings(
    session: AsyncSession,
    actor: Actor,
    status: str | None = None,
    booking_type: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Booking], int]:
    require_admin(actor)
    filters = []
    if status:
        try:
            filters.append(Booking.status == BookingStatus(status).value)
        except ValueError as exc:
            raise ValidationError("status") from exc
    if booking_type:
        filters.append(Booking.booking_type == validate_booking_type(booking_type).value)

    total = (
        await session.execute(select(func.count()).select_from(Booking).where(*filters))
    ).scalar_one()
    stmt = (
        select(Booking)
        .where(*filters)
        .order_by(Booking.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list((await session.execute(stmt)).scalars().all()), total


async def cancel_booking(
    session: AsyncSession,
    booking_id: uuid.UUID,
    actor: Actor,
    notes: str | None,
    notifier: Notifier,
) -> Booking:
    booking = await load_booking(session, booking_id, for_update=True)
    if not actor.is_admin and booking.requester_id != actor.id:
        raise Forbidden(ErrorMessage.BOOKING_CANCEL_DENIED)

    current = booking.status
    entry = booking.cancel(actor.id, notes)
    timeline.append(session, booking, entry)

    stmt = (
        select(PaymentRecord)
        .where(
            PaymentRecord.booking_id == booking.id,
            PaymentRecord.status == PaymentStatus.PENDING.value,
        )
        .with_for_update()
    )
    for record in (await session.execute(stmt)).scalars().all():
        record.mark_failed(CANCELLED_PAYMENT_REASON)
        session.add(record)

    await timeline.commit_transition(session, current, BookingStatus.CANCELLED.value)

    logger.info(f"Booking {booking.id} cancelled by {actor.id}")
    if actor.id != booking.requester_id:
        await dispatch_notification(
            notifier,
            [booking.requester_id],
            NotificationKind.BOOKING_CANCELLED,
            booking_payload(booking, notes),
        )
    return booking
