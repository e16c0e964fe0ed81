from __future__ import annotations

import asyncio
from dataclasses import dataclass
from decimal import Decimal
from typing import Awaitable, Protocol, TypeVar

from rental_booking.core.common.constants import PaymentStatus, PaymentStrategy
from rental_booking.core.config import Config
from rental_booking.core.exceptions import GatewayTimeout

T = TypeVar("T")


@dataclass(frozen=True)
class GatewayIntent:
    external_id: str
    client_secret: str | None = None


@dataclass(frozen=True)
class GatewayOutcome:
    status: PaymentStatus
    reason: str | None = None
    amount: Decimal | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == PaymentStatus.COMPLETED


class PaymentGateway(Protocol):
    strategy: PaymentStrategy

    async def open(
        self, amount: Decimal, payer_number: str | None, reference: str
    ) -> GatewayIntent: ...

    async def settle(self, external_id: str) -> GatewayOutcome: ...


async def bounded(call: Awaitable[T], timeout: float | None = None) -> T:
    try:
        return await asyncio.wait_for(call, timeout or Config.GATEWAY_TIMEOUT_SECONDS)
    except asyncio.TimeoutError as exc:
        raise GatewayTimeout() from exc
