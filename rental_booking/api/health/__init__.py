from sqlalchemy import text
from rental_booking.db.main import async_engine
from rental_booking.core.config import Config
from rental_booking.core import locks
import psutil
import asyncio


async def check_database():
    try:
        async with asyncio.timeout(2):
            async with async_engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        return "up"
    except Exception:
        return "down"


async def check_redis():
    try:
        async with asyncio.timeout(2):
            await locks.redis_client.ping()
        return "up"
    except Exception:
        return "down"


def check_memory():
    mem = psutil.virtual_memory()
    return {
        "total_gb": round(mem.total / (1024 ** 3), 2),
        "used_gb": round(mem.used / (1024 ** 3), 2),
        "available_gb": round(mem.available / (1024 ** 3), 2),
        "usage_percent": mem.percent
    }


def check_gateways():
    return {
        "card": bool(Config.RAZORPAY_KEY_ID and Config.RAZORPAY_KEY_SECRET),
        "card_webhook": bool(Config.RAZORPAY_WEBHOOK_SECRET),
        "mobile_wallet": bool(Config.WALLET_GATEWAY_URL),
    }
