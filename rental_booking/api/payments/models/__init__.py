from rental_booking.api.payments.models.payment_record import PaymentRecord
from rental_booking.api.payments.models.payment_webhook import PaymentWebhook


__all__ = [
    "PaymentRecord",
    "PaymentWebhook",
]
