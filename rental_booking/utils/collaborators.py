"""Contracts of the services the booking engine talks to."""
from __future__ import annotations

from typing import Any, Protocol
from uuid import UUID

from rental_booking.core.common.constants import NotificationKind, Roles


class PropertyAvailability(Protocol):
    async def is_available(self, property_id: UUID) -> bool: ...

    async def owner_of(self, property_id: UUID) -> UUID: ...


class UserDirectory(Protocol):
    async def role_of(self, user_id: UUID) -> Roles: ...

    async def admins(self) -> list[UUID]: ...


class Notifier(Protocol):
    async def notify(
        self, recipient_id: UUID, kind: NotificationKind, payload: dict[str, Any]
    ) -> None: ...
