from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from rental_booking.api.bookings import timeline
from rental_booking.api.bookings.models import Booking, BookingTimelineEntry
from rental_booking.core.common.constants import AdminAction, BookingStatus, NotificationKind, Roles
from rental_booking.core.exceptions import Forbidden, NotFound, ValidationError
from rental_booking.core.messages import ErrorMessage
from rental_booking.core.middlewares import logger
from rental_booking.core.request_context import Actor, require_admin
from rental_booking.utils.collaborators import Notifier
from rental_booking.utils.notifier import dispatch_notification


async def load_booking(
    session: AsyncSession, booking_id: uuid.UUID, for_update: bool = False
) -> Booking:
    stmt = select(Booking).where(Booking.id == booking_id)
    if for_update:
        stmt = stmt.with_for_update()
    booking = (await session.execute(stmt)).scalars().first()
    if not booking:
        raise NotFound("booking", booking_id)
    return booking


def can_view(booking: Booking, actor: Actor) -> bool:
    if actor.is_admin or actor.id == booking.requester_id:
        return True
    return actor.role == Roles.OWNER and actor.id == booking.owner_id


def authorize_view(booking: Booking, actor: Actor) -> None:
    if not can_view(booking, actor):
        raise Forbidden(ErrorMessage.BOOKING_VIEW_DENIED)


async def view(
    session: AsyncSession, booking_id: uuid.UUID, actor: Actor
) -> tuple[Booking, list[BookingTimelineEntry]]:
    booking = await load_booking(session, booking_id)
    authorize_view(booking, actor)
    return booking, await timeline.list_entries(session, booking.id)


def booking_payload(booking: Booking, notes: str | None = None) -> dict:
    payload = {
        "bookingId": str(booking.id),
        "propertyId": str(booking.property_id),
        "bookingType": booking.booking_type,
        "status": booking.status,
    }
    if notes:
        payload["notes"] = notes
    return payload


async def approve(
    session: AsyncSession,
    booking_id: uuid.UUID,
    actor: Actor,
    notes: str | None,
    notifier: Notifier,
) -> Booking:
    require_admin(actor)
    booking = await load_booking(session, booking_id, for_update=True)
    current = booking.status
    entry = booking.approve(actor.id, notes)
    timeline.append(session, booking, entry)
    await timeline.commit_transition(session, current, BookingStatus.CONFIRMED.value)

    logger.info(f"Booking {booking.id} approved by {actor.id}")
    await dispatch_notification(
        notifier,
        [booking.requester_id],
        NotificationKind.BOOKING_CONFIRMED,
        booking_payload(booking, notes),
    )
    return booking


async def reject(
    session: AsyncSession,
    booking_id: uuid.UUID,
    actor: Actor,
    notes: str | None,
    notifier: Notifier,
) -> Booking:
    require_admin(actor)
    booking = await load_booking(session, booking_id, for_update=True)
    current = booking.status
    entry = booking.reject(actor.id, notes)
    timeline.append(session, booking, entry)
    await timeline.commit_transition(session, current, BookingStatus.REJECTED.value)

    logger.info(f"Booking {booking.id} rejected by {actor.id}")
    payload = booking_payload(booking)
    payload["reason"] = notes
    await dispatch_notification(
        notifier, [booking.requester_id], NotificationKind.BOOKING_REJECTED, payload
    )
    return booking


async def admin_approve_or_reject(
    session: AsyncSession,
    booking_id: uuid.UUID,
    actor: Actor,
    action: str,
    notes: str | None,
    notifier: Notifier,
) -> Booking:
    try:
        admin_action = AdminAction(action)
    except ValueError as exc:
        raise ValidationError("action", "Action must be 'approve' or 'reject'") from exc

    if admin_action == AdminAction.APPROVE:
        return await approve(session, booking_id, actor, notes, notifier)
    return await reject(session, booking_id, actor, notes, notifier)
