from enum import Enum


class Roles(str, Enum):
    USER = "user"
    OWNER = "owner"
    ADMIN = "admin"


class BookingType(str, Enum):
    VISIT = "visit"
    RENT = "rent"


class VisitTimeSlot(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentStrategy(str, Enum):
    CARD = "card"
    MOBILE_WALLET = "mobile_wallet"


# Booking.payment_method recorded once a strategy settles.
PAYMENT_METHOD_BY_STRATEGY = {
    PaymentStrategy.CARD: "card",
    PaymentStrategy.MOBILE_WALLET: "mobile_banking",
}


class NotificationKind(str, Enum):
    BOOKING_CREATED = "BookingCreated"
    BOOKING_CONFIRMED = "BookingConfirmed"
    BOOKING_REJECTED = "BookingRejected"
    BOOKING_CANCELLED = "BookingCancelled"
    PAYMENT_RECEIVED = "PaymentReceived"


class TimelineAction(str, Enum):
    CREATED = "created booking"
    APPROVED = "approved booking"
    REJECTED = "rejected booking"
    CANCELLED = "cancelled booking"
    SETTLED = "settled booking"


class AdminAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
