from uuid import UUID

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from rental_booking.core.common.constants import Roles
from rental_booking.core.exceptions import Forbidden
from rental_booking.core.messages import ErrorMessage
from rental_booking.utils.response import ErrorDetail, error_response
from rental_booking.core.errors import ErrorCode

from typing import Optional
from pydantic import BaseModel
from enum import Enum

# Reached without the gateway: health checks, docs and the card-rail webhook.
PUBLIC_PATH_SUFFIXES = ("/health", "/health/", "/payments/webhook", "/docs", "/redoc", "/openapi.json")


class AuthStatus(str, Enum):
    AUTHENTICATED = "AUTHENTICATED"
    ANONYMOUS = "ANONYMOUS"


class UserContext(BaseModel):
    auth_status: AuthStatus
    user_id: Optional[str] = None
    type: Optional[str] = None
    session_id: Optional[str] = None


class Actor(BaseModel):
    id: UUID
    role: Roles

    @property
    def is_admin(self) -> bool:
        return self.role == Roles.ADMIN


def _unauthorized(detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content=error_response(
            message=ErrorMessage.AUTH_CONTEXT_MISSING,
            status_code=401,
            errors=[
                ErrorDetail(
                    code=ErrorCode.ACCESS_TOKEN_REQUIRED,
                    message=detail,
                )
            ],
        ).model_dump(),
    )


class GatewayAuthContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.url.path.endswith(PUBLIC_PATH_SUFFIXES):
            return await call_next(request)

        auth_status = request.headers.get("AuthStatus")
        user_id = request.headers.get("UserId")
        user_type = request.headers.get("UserType")
        session_id = request.headers.get("X-Session-Id")

        # Enforce gateway presence
        if not auth_status:
            return _unauthorized("Request must pass through gateway")

        if auth_status not in AuthStatus.__members__:
            return _unauthorized("Invalid AuthStatus header")

        request.state.user_context = UserContext(
            auth_status=AuthStatus[auth_status],
            user_id=user_id,
            type=user_type,
            session_id=session_id,
        )

        return await call_next(request)

def _get_user_context(request: Request) -> UserContext:
    user_ctx = getattr(request.state, "user_context", None)

    if not user_ctx:
        raise Forbidden(ErrorMessage.AUTH_CONTEXT_MISSING)

    return user_ctx


def is_valid_user(request: Request) -> None:
    user_ctx = _get_user_context(request)

    if user_ctx.auth_status != AuthStatus.AUTHENTICATED:
        raise Forbidden(ErrorMessage.USER_NOT_AUTHENTICATED)

    if not user_ctx.user_id:
        raise Forbidden(ErrorMessage.USER_ID_MISSING)


def get_authenticated_user_id(request: Request) -> UUID:
    is_valid_user(request)
    user_ctx = _get_user_context(request)
    try:
        return UUID(user_ctx.user_id)
    except ValueError as exc:
        raise Forbidden(ErrorMessage.USER_ID_INVALID) from exc


def require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise Forbidden(ErrorMessage.ADMIN_ACCESS_REQUIRED)


def get_razorpay_signature_key(request: Request) -> Optional[str]:
    razorpay_signature = request.headers.get("X-Razorpay-Signature")
    if not razorpay_signature:
        return None

    razorpay_signature = razorpay_signature.strip()
    return razorpay_signature or None
