from __future__ import annotations

import asyncio
from decimal import Decimal

import razorpay
from razorpay.errors import SignatureVerificationError

from rental_booking.api.payments.gateways.base import GatewayIntent, GatewayOutcome, bounded
from rental_booking.api.payments.helpers import amount_to_minor_units, minor_units_to_amount
from rental_booking.core.common.constants import PaymentStatus, PaymentStrategy
from rental_booking.core.config import Config
from rental_booking.core.exceptions import (
    ConfigurationError,
    GatewayTimeout,
    PaymentFailed,
    WebhookUnverifiable,
)
from rental_booking.core.messages import ErrorMessage
from rental_booking.core.middlewares import logger


class RazorpayCardGateway:
    """Card rail: an order stands in for the payment intent, capture arrives by webhook."""

    strategy = PaymentStrategy.CARD

    def __init__(
        self,
        key_id: str | None = None,
        key_secret: str | None = None,
        webhook_secret: str | None = None,
    ):
        self.key_id = key_id or Config.RAZORPAY_KEY_ID
        self.key_secret = key_secret or Config.RAZORPAY_KEY_SECRET
        self.webhook_secret = webhook_secret or Config.RAZORPAY_WEBHOOK_SECRET

    def _client(self) -> razorpay.Client:
        if not self.key_id or not self.key_secret:
            raise ConfigurationError(ErrorMessage.CARD_GATEWAY_NOT_CONFIGURED)
        return razorpay.Client(auth=(self.key_id, self.key_secret))

    async def open(
        self, amount: Decimal, payer_number: str | None, reference: str
    ) -> GatewayIntent:
        client = self._client()
        try:
            order = await bounded(
                asyncio.to_thread(
                    client.order.create,
                    {
                        "amount": amount_to_minor_units(amount),
                        "currency": Config.CURRENCY,
                        "receipt": reference,
                        "payment_capture": 1,
                    },
                )
            )
        except GatewayTimeout:
            raise
        except Exception as exc:
            logger.error(f"Razorpay order creation failed for {reference}: {exc}")
            raise PaymentFailed("Failed to create Razorpay order") from exc

        # the checkout widget needs the order id plus the public key id
        return GatewayIntent(external_id=order["id"], client_secret=self.key_id)

    async def settle(self, external_id: str) -> GatewayOutcome:
        client = self._client()
        try:
            order = await bounded(asyncio.to_thread(client.order.fetch, external_id))
        except GatewayTimeout:
            raise
        except Exception as exc:
            logger.error(f"Razorpay order fetch failed for {external_id}: {exc}")
            raise PaymentFailed("Failed to fetch Razorpay order") from exc

        order_status = order.get("status")
        if order_status == "paid":
            return GatewayOutcome(
                status=PaymentStatus.COMPLETED,
                amount=minor_units_to_amount(order.get("amount_paid")),
            )
        # "created" / "attempted": the customer has not finished checkout yet
        return GatewayOutcome(status=PaymentStatus.PENDING, reason=order_status)

    def verify_webhook(self, body: str, signature: str | None) -> None:
        if not self.webhook_secret:
            raise ConfigurationError(ErrorMessage.WEBHOOK_SECRET_NOT_CONFIGURED)
        if not signature:
            raise WebhookUnverifiable()
        try:
            razorpay.Client(auth=(self.key_id or "", self.key_secret or "")).utility.verify_webhook_signature(
                body, signature, self.webhook_secret
            )
        except SignatureVerificationError as exc:
            logger.warning("Rejected card webhook with invalid signature")
            raise WebhookUnverifiable() from exc
