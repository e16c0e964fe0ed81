from __future__ import annotations

from rental_booking.api.bookings.models import Booking, BookingTimelineEntry
from rental_booking.api.bookings.schemas import (
    AdminApprovalOut,
    BookingOut,
    BookingPaymentOut,
    RentalPeriodOut,
    TimelineEntryOut,
)


def to_booking_response(
    booking: Booking,
    timeline: list[BookingTimelineEntry] | None = None,
) -> BookingOut:
    rental_period = None
    if booking.rental_start_date and booking.rental_end_date:
        rental_period = RentalPeriodOut(
            startDate=booking.rental_start_date,
            endDate=booking.rental_end_date,
            durationMonths=booking.rental_duration_months,
        )
    return BookingOut(
        id=booking.id,
        propertyId=booking.property_id,
        requesterId=booking.requester_id,
        bookingType=booking.booking_type,
        status=booking.status,
        visitDate=booking.visit_date,
        visitTimeSlot=booking.visit_time_slot,
        rentalPeriod=rental_period,
        adminApproval=AdminApprovalOut(
            isApproved=booking.is_approved,
            approvedBy=booking.approved_by,
            approvedAt=booking.approved_at,
            notes=booking.admin_notes,
        ),
        payment=BookingPaymentOut(
            advanceAmount=booking.advance_amount,
            commissionPercentage=booking.commission_percentage,
            adminCommission=booking.admin_commission,
            ownerAmount=booking.owner_amount,
            isPaid=booking.is_paid,
            paymentMethod=booking.payment_method,
            transactionId=booking.transaction_id,
            paymentDate=booking.payment_date,
        ),
        userMessage=booking.user_message,
        preferredContactTime=booking.preferred_contact_time,
        timeline=[TimelineEntryOut.model_validate(entry) for entry in timeline]
        if timeline is not None
        else None,
        createdAt=booking.created_at,
        updatedAt=booking.updated_at,
    )
