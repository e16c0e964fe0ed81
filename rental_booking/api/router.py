from fastapi import APIRouter
from rental_booking.api.health.routes import health_router
from rental_booking.api.bookings.routes import bookings_router
from rental_booking.api.payments.routes import payments_router
api_router = APIRouter()

api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(bookings_router, prefix="/bookings", tags=["bookings"])
api_router.include_router(payments_router, prefix="/payments", tags=["payments"])
