"""Booking state machine and the invariants that travel with it.

Everything here is pure: no sessions, no collaborators. Services load and
persist; this module decides what is legal.
"""
from __future__ import annotations

from datetime import date
from decimal import ROUND_DOWN, Decimal
from typing import NamedTuple

from dateutil.relativedelta import relativedelta

from rental_booking.api.payments.helpers import money
from rental_booking.core.common.constants import BookingStatus, BookingType, VisitTimeSlot
from rental_booking.core.exceptions import InvalidTransition, ValidationError
from rental_booking.core.messages import ErrorMessage

BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset(
        {BookingStatus.CONFIRMED, BookingStatus.REJECTED, BookingStatus.CANCELLED}
    ),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.REJECTED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def can_transition(current: str, target: str) -> bool:
    try:
        return BookingStatus(target) in BOOKING_TRANSITIONS[BookingStatus(current)]
    except ValueError:
        return False


def assert_transition(current: str, target: str) -> None:
    if not can_transition(current, target):
        raise InvalidTransition(str(current), str(target))


class CommissionSplit(NamedTuple):
    commission: Decimal
    owner_share: Decimal


def split_commission(amount: Decimal | int | str, percentage: Decimal | int | str) -> CommissionSplit:
    """Split an advance between operator and owner.

    The commission is truncated to the cent, and the owner receives the exact
    remainder, so ``commission + owner_share == amount`` always holds.
    """
    amount = money(amount)
    percentage = Decimal(str(percentage))
    if amount < 0:
        raise ValidationError("advanceAmount", "Advance amount cannot be negative")
    if percentage < 0 or percentage > HUNDRED:
        raise ValidationError(
            "commissionPercentage", "Commission percentage must be between 0 and 100"
        )
    commission = (amount * percentage / HUNDRED).quantize(CENT, rounding=ROUND_DOWN)
    return CommissionSplit(commission=commission, owner_share=amount - commission)


def rental_end_date(start: date, duration_months: int) -> date:
    return start + relativedelta(months=duration_months)


def validate_visit(visit_date: date | None, time_slot: str | None, today: date) -> None:
    if visit_date is None:
        raise ValidationError("visitDate")
    if visit_date <= today:
        raise ValidationError("visitDate", ErrorMessage.VISIT_DATE_PAST)
    if time_slot is None:
        raise ValidationError("visitTimeSlot")
    try:
        VisitTimeSlot(time_slot)
    except ValueError as exc:
        raise ValidationError("visitTimeSlot") from exc


def resolve_rental_period(
    start: date | None, end: date | None, duration_months: int | None
) -> tuple[date, date, int]:
    if start is None:
        raise ValidationError("rentalPeriod.startDate")
    if duration_months is None or duration_months < 1:
        raise ValidationError("rentalPeriod.durationMonths")
    expected_end = rental_end_date(start, duration_months)
    if end is not None and end != expected_end:
        raise ValidationError("rentalPeriod.endDate", ErrorMessage.RENTAL_END_MISMATCH)
    return start, expected_end, duration_months


def validate_booking_type(booking_type: str) -> BookingType:
    try:
        return BookingType(booking_type)
    except ValueError as exc:
        raise ValidationError("bookingType") from exc
