from __future__ import annotations

from uuid import UUID

from rental_booking.core.common.constants import Roles
from rental_booking.core.config import Config
from rental_booking.core.exceptions import ExternalServiceError
from rental_booking.utils.service_client import get_json


class HttpUserDirectory:
    """UserDirectory backed by the account service."""

    def __init__(self, base_url: str | None = None):
        self.base_url = (base_url or Config.USER_SERVICE_URL).rstrip("/")

    async def role_of(self, user_id: UUID) -> Roles:
        user = await get_json(
            f"{self.base_url}/api/v1/users/{user_id}",
            service="user service",
            entity="user",
            entity_id=user_id,
        )
        role = user.get("role") if isinstance(user, dict) else None
        try:
            return Roles(str(role).lower())
        except ValueError as exc:
            raise ExternalServiceError(f"Unknown role '{role}' for user {user_id}") from exc

    async def admins(self) -> list[UUID]:
        users = await get_json(
            f"{self.base_url}/api/v1/users",
            service="user service",
            entity="user",
            entity_id="admin",
            params={"role": Roles.ADMIN.value},
        )
        if isinstance(users, dict):
            users = users.get("items") or users.get("users") or []
        return [UUID(str(user.get("id") or user.get("_id"))) for user in users]
