class ErrorCode:
    ACCESS_TOKEN_REQUIRED = "access_token_required"
    REQUEST_VALIDATION_ERROR = "request_validation_error"
    DATABASE_ERROR = "database_error"
    INTERNAL_SERVER_ERROR = "internal_server_error"
