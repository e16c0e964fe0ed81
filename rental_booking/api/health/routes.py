from fastapi import APIRouter
import asyncio
from rental_booking.api.health import (
    check_database,
    check_redis,
    check_gateways,
    check_memory
)

health_router = APIRouter()
@health_router.get("/")
async def health_check():
    db_status, redis_status = await asyncio.gather(
        check_database(),
        check_redis()
    )

    # a down Redis only disables the payment lock, the service keeps working
    status = "ok"
    if db_status == "down" or redis_status == "down":
        status = "degraded"

    return {
        "status": status,
        "checks": {
            "database": db_status,
            "redis": redis_status,
            "memory": check_memory(),
            "gateways": check_gateways()
        }
    }
