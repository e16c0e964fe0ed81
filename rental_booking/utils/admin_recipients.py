from __future__ import annotations

from uuid import UUID

from rental_booking.core.config import Config
from rental_booking.core.middlewares import logger
from rental_booking.utils.collaborators import UserDirectory

CONFIGURED = "configured"
DIRECTORY = "directory"


async def resolve_admin_recipients(
    directory: UserDirectory, strategy: str | None = None
) -> list[UUID]:
    """Who hears about new bookings and received payments.

    ``configured`` reads ADMIN_RECIPIENT_IDS; ``directory`` asks the user
    service for every admin. Lookup failures yield no recipients, since
    notifications never block a booking operation.
    """
    strategy = (strategy or Config.ADMIN_RECIPIENT_STRATEGY).lower()
    if strategy == CONFIGURED:
        return [UUID(value) for value in Config.ADMIN_RECIPIENT_IDS]
    if strategy == DIRECTORY:
        try:
            return await directory.admins()
        except Exception as exc:
            logger.warning("Admin recipient lookup failed: %s", exc)
            return []
    raise ValueError(f"Unknown admin recipient strategy '{strategy}'")
