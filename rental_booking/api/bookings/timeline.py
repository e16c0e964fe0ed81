from __future__ import annotations

from typing import Iterable
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from rental_booking.api.bookings.models import Booking, BookingTimelineEntry
from rental_booking.core.exceptions import InvalidTransition


def append(session: AsyncSession, booking: Booking, entry: BookingTimelineEntry) -> None:
    # the entry must come from booking.record()/transition() so seq == revision
    if entry.booking_id != booking.id or entry.seq != booking.revision:
        raise ValueError("Timeline entry does not belong to the current booking revision")
    session.add(booking)
    session.add(entry)


async def list_entries(session: AsyncSession, booking_id: uuid.UUID) -> list[BookingTimelineEntry]:
    stmt = (
        select(BookingTimelineEntry)
        .where(BookingTimelineEntry.booking_id == booking_id)
        .order_by(BookingTimelineEntry.seq)
    )
    return list((await session.execute(stmt)).scalars().all())


def replay_statuses(entries: Iterable[BookingTimelineEntry]) -> list[str]:
    return [entry.status for entry in sorted(entries, key=lambda item: item.seq)]


async def commit_transition(session: AsyncSession, current: str, target: str) -> None:
    """Commit a transition; losing the (booking_id, seq) race is a conflict."""
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise InvalidTransition(current, target) from exc
