from contextlib import asynccontextmanager

from fastapi import FastAPI
from rental_booking.api.router import api_router
from rental_booking.core.exception_handlers import register_exception_handlers
from rental_booking.core.middlewares import register_middleware
from rental_booking.db.main import init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield


version = "v1"

description = """
A REST API for property visit and rental bookings: approval, advance
settlement over card and mobile-wallet rails, and an audit timeline.
    """

version_prefix =f"/api/{version}"

app = FastAPI(
    title="rental-booking-service",
    description=description,
    version=version,
    lifespan=lifespan,
    openapi_url=f"{version_prefix}/openapi.json",
    docs_url=f"{version_prefix}/docs",
    redoc_url=f"{version_prefix}/redoc"
)

register_exception_handlers(app)


register_middleware(app)


app.include_router(api_router, prefix=f"{version_prefix}")
