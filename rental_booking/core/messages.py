class ErrorMessage:
    # ---------- Auth / Access ----------
    SERVER_ERROR = "Internal server error"
    DATABASE_FAILURE = "Database operation failed"
    REQUEST_INVALID = "Request validation failed"
    AUTH_CONTEXT_MISSING = "Authentication context missing"
    USER_NOT_AUTHENTICATED = "User is not authenticated"
    USER_ID_MISSING = "Authenticated user id missing"
    USER_ID_INVALID = "Authenticated user id is malformed"

    ADMIN_ACCESS_REQUIRED = "Admin access required"
    ACCESS_DENIED = "Access denied"
    BOOKING_VIEW_DENIED = "Not authorized to view this booking"
    BOOKING_CANCEL_DENIED = "Not authorized to cancel this booking"
    PAYMENT_DENIED = "Not authorized to make payment for this booking"

    # ---------- Booking lifecycle ----------
    VALIDATION_FAILED = "Validation failed"
    NOT_FOUND = "Requested resource not found"
    INVALID_TRANSITION = "Booking cannot move to the requested status"
    BOOKING_NOT_READY = "Booking must be confirmed before payment"
    PROPERTY_UNAVAILABLE = "Property is not available for booking"
    VISIT_DATE_PAST = "Visit date must be in the future"
    RENTAL_END_MISMATCH = "Rental end date must equal start date plus duration"

    # ---------- Settlement ----------
    DUPLICATE_PAYMENT = "This booking already has a pending payment"
    PAYMENT_FAILED = "Payment failed"
    GATEWAY_TIMEOUT = "Payment gateway did not respond in time"
    WEBHOOK_UNVERIFIABLE = "Invalid webhook signature"
    WALLET_NUMBER_INVALID = "Invalid wallet number format"
    AMOUNT_MISMATCH = "Amount mismatch with booking"
    AMOUNT_REQUIRED = "Advance amount is required"
    CARD_GATEWAY_NOT_CONFIGURED = "Razorpay keys are not configured"
    WEBHOOK_SECRET_NOT_CONFIGURED = "Razorpay webhook secret is not configured"
    WALLET_GATEWAY_NOT_CONFIGURED = "Wallet gateway is not configured"
    EXTERNAL_SERVICE_FAILED = "External service request failed"
