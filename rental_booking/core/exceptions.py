# rental_booking/core/exceptions.py
from rental_booking.core.messages import ErrorMessage

class GlobalException(Exception):
    status_code: int
    error_code: str
    message: str
    field: str | None = None

    def __init__(self, message: str | None = None, field: str | None = None):
        if message:
            self.message = message
        if field:
            self.field = field
        super().__init__(self.message)


class ValidationError(GlobalException):
    status_code = 400
    error_code = "validation_error"
    message = ErrorMessage.VALIDATION_FAILED

    def __init__(self, field: str, message: str | None = None):
        super().__init__(message or f"Invalid or missing value for '{field}'", field=field)


class NotFound(GlobalException):
    status_code = 404
    error_code = "not_found"
    message = ErrorMessage.NOT_FOUND

    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} {entity_id} not found")


class Forbidden(GlobalException):
    status_code = 403
    error_code = "access_denied"
    message = ErrorMessage.ACCESS_DENIED


class InvalidTransition(GlobalException):
    status_code = 409
    error_code = "invalid_transition"
    message = ErrorMessage.INVALID_TRANSITION

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move from '{current}' to '{target}'")


class BookingNotReady(GlobalException):
    status_code = 409
    error_code = "booking_not_ready"
    message = ErrorMessage.BOOKING_NOT_READY


class DuplicatePayment(GlobalException):
    status_code = 409
    error_code = "duplicate_payment"
    message = ErrorMessage.DUPLICATE_PAYMENT


class PaymentFailed(GlobalException):
    status_code = 402
    error_code = "payment_failed"
    message = ErrorMessage.PAYMENT_FAILED

    def __init__(self, reason: str | None = None):
        self.reason = reason
        super().__init__(f"{ErrorMessage.PAYMENT_FAILED}: {reason}" if reason else None)


class GatewayTimeout(GlobalException):
    status_code = 504
    error_code = "gateway_timeout"
    message = ErrorMessage.GATEWAY_TIMEOUT


class WebhookUnverifiable(GlobalException):
    status_code = 400
    error_code = "webhook_unverifiable"
    message = ErrorMessage.WEBHOOK_UNVERIFIABLE


class ConfigurationError(GlobalException):
    status_code = 500
    error_code = "configuration_error"
    message = ErrorMessage.SERVER_ERROR


class ExternalServiceError(GlobalException):
    status_code = 502
    error_code = "external_service_error"
    message = ErrorMessage.EXTERNAL_SERVICE_FAILED
