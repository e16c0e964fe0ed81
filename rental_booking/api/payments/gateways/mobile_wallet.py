from __future__ import annotations

from decimal import Decimal

import httpx

from rental_booking.api.payments.gateways.base import GatewayIntent, GatewayOutcome
from rental_booking.core.common.constants import PaymentStatus, PaymentStrategy
from rental_booking.core.config import Config
from rental_booking.core.exceptions import ConfigurationError, GatewayTimeout, PaymentFailed
from rental_booking.core.messages import ErrorMessage
from rental_booking.core.middlewares import logger


class HttpWalletGateway:
    """Mobile-wallet rail with the create/execute handshake of bKash-style APIs."""

    strategy = PaymentStrategy.MOBILE_WALLET

    def __init__(
        self,
        base_url: str | None = None,
        app_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or Config.WALLET_GATEWAY_URL
        self.app_key = app_key or Config.WALLET_APP_KEY
        self.timeout = timeout or Config.GATEWAY_TIMEOUT_SECONDS
        self.transport = transport

    async def _post(self, path: str, payload: dict) -> dict:
        if not self.base_url:
            raise ConfigurationError(ErrorMessage.WALLET_GATEWAY_NOT_CONFIGURED)

        headers = {"X-App-Key": self.app_key} if self.app_key else {}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url.rstrip("/"),
                timeout=httpx.Timeout(self.timeout),
                transport=self.transport,
            ) as client:
                response = await client.post(path, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            logger.error(f"Wallet gateway timed out on {path}")
            raise GatewayTimeout() from exc
        except httpx.HTTPError as exc:
            logger.error(f"Wallet gateway unreachable on {path}: {exc}")
            raise PaymentFailed("Wallet gateway unreachable") from exc

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        if response.status_code >= 400:
            raise PaymentFailed(data.get("message") or f"Wallet gateway returned {response.status_code}")
        return data

    async def open(
        self, amount: Decimal, payer_number: str | None, reference: str
    ) -> GatewayIntent:
        data = await self._post(
            "/payments/create",
            {
                "amount": str(amount),
                "currency": Config.CURRENCY,
                "payerNumber": payer_number,
                "merchantInvoiceNumber": reference,
            },
        )
        external_id = data.get("paymentID") or data.get("externalId")
        if not external_id:
            raise PaymentFailed(data.get("message") or "Wallet payment initiation failed")
        return GatewayIntent(external_id=str(external_id))

    async def settle(self, external_id: str) -> GatewayOutcome:
        data = await self._post("/payments/execute", {"paymentID": external_id})
        if data.get("success") or data.get("transactionStatus") == "Completed":
            return GatewayOutcome(status=PaymentStatus.COMPLETED)
        return GatewayOutcome(
            status=PaymentStatus.FAILED,
            reason=data.get("message") or "Wallet payment execution failed",
        )
