from __future__ import annotations

from typing import Any

import httpx
from fastapi import status

from rental_booking.core.config import Config
from rental_booking.core.exceptions import ExternalServiceError, NotFound
from rental_booking.core.middlewares import logger


def _unwrap(data: Any, service: str) -> Any:
    # sibling services answer in the ApiResponse envelope; tolerate bare bodies
    if isinstance(data, dict) and "data" in data and "success" in data:
        return data["data"]
    if isinstance(data, (dict, list)):
        return data
    raise ExternalServiceError(f"Unexpected {service} response format")


async def get_json(
    url: str,
    *,
    service: str,
    entity: str,
    entity_id: object,
    params: dict[str, str] | None = None,
) -> Any:
    headers = {"AuthStatus": "AUTHENTICATED"}
    try:
        async with httpx.AsyncClient(timeout=Config.SERVICE_TIMEOUT_SECONDS) as client:
            response = await client.get(url, headers=headers, params=params)
    except httpx.HTTPError as exc:
        logger.error(f"Unexpected error calling {service}: {str(exc)}")
        raise ExternalServiceError(f"Unable to reach {service}") from exc

    if response.status_code == status.HTTP_404_NOT_FOUND:
        raise NotFound(entity, entity_id)
    if response.status_code >= status.HTTP_400_BAD_REQUEST:
        logger.error(f"{service} returned {response.status_code} for {url}")
        raise ExternalServiceError(f"{service} returned an error")

    try:
        data = response.json()
    except ValueError as exc:
        raise ExternalServiceError(f"Invalid {service} response") from exc
    return _unwrap(data, service)
