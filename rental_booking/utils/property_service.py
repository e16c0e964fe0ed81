from __future__ import annotations

from uuid import UUID

from rental_booking.core.config import Config
from rental_booking.core.exceptions import ExternalServiceError
from rental_booking.utils.service_client import get_json


def extract_owner_id(prop: dict) -> str | None:
    owner = prop.get("ownerId") or prop.get("owner_id") or prop.get("owner")
    if isinstance(owner, dict):
        owner = owner.get("id") or owner.get("_id")
    return owner


def extract_is_available(prop: dict) -> bool:
    availability = prop.get("availability")
    if isinstance(availability, dict) and "isAvailable" in availability:
        return bool(availability["isAvailable"])
    return bool(prop.get("isAvailable", prop.get("is_available", False)))


class HttpPropertyCatalog:
    """PropertyAvailability backed by the catalogue service."""

    def __init__(self, base_url: str | None = None):
        self.base_url = (base_url or Config.CATALOG_SERVICE_URL).rstrip("/")

    async def fetch_property(self, property_id: UUID) -> dict:
        prop = await get_json(
            f"{self.base_url}/api/v1/properties/{property_id}",
            service="catalog service",
            entity="property",
            entity_id=property_id,
        )
        if not isinstance(prop, dict):
            raise ExternalServiceError("Unexpected catalog service response format")
        return prop

    async def is_available(self, property_id: UUID) -> bool:
        return extract_is_available(await self.fetch_property(property_id))

    async def owner_of(self, property_id: UUID) -> UUID:
        owner_id = extract_owner_id(await self.fetch_property(property_id))
        if not owner_id:
            raise ExternalServiceError("ownerId missing from catalog service response")
        return UUID(str(owner_id))
