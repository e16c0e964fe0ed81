from rental_booking.api.bookings.models.booking import Booking
from rental_booking.api.bookings.models.booking_timeline import BookingTimelineEntry


__all__ = [
    "Booking",
    "BookingTimelineEntry",
]
