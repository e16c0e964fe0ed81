from __future__ import annotations

from datetime import timedelta
import uuid

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from rental_booking.api.dependencies import (
    get_actor,
    get_card_gateway,
    get_gateways,
    get_notifier,
    get_user_directory,
)
from rental_booking.api.payments.gateways.base import PaymentGateway
from rental_booking.api.payments.gateways.card_rail import RazorpayCardGateway
from rental_booking.api.payments.schemas import (
    PaymentInitiateRequest,
    PaymentInitiateResponse,
    PaymentOut,
    ReconcileRequest,
    ReconcileResponse,
    WebhookAck,
)
from rental_booking.api.payments.services import settlement_service
from rental_booking.api.payments.services.webhook_service import process_card_webhook
from rental_booking.core.common.constants import PaymentStrategy
from rental_booking.core.request_context import Actor, get_razorpay_signature_key
from rental_booking.db.main import get_session
from rental_booking.utils.collaborators import Notifier, UserDirectory
from rental_booking.utils.response import ApiResponse, success_response

payments_router = APIRouter()


@payments_router.post(
    "/initiate",
    response_model=ApiResponse[PaymentInitiateResponse],
    status_code=status.HTTP_201_CREATED,
)
async def initiate_payment(
    payload: PaymentInitiateRequest,
    actor: Actor = Depends(get_actor),
    session: AsyncSession = Depends(get_session),
    gateways: dict[PaymentStrategy, PaymentGateway] = Depends(get_gateways),
):
    record, intent = await settlement_service.initiate(
        session,
        payload.booking_id,
        actor,
        payload.strategy,
        gateways,
        payer_number=payload.payer_number,
        amount=payload.amount,
    )
    return success_response(
        PaymentInitiateResponse(
            payment=PaymentOut.model_validate(record),
            externalId=intent.external_id,
            clientSecret=intent.client_secret,
        ),
        message="Payment initiated",
        status_code=status.HTTP_201_CREATED,
    )


@payments_router.post("/webhook", response_model=ApiResponse[WebhookAck])
async def card_webhook(
    request: Request,
    session: AsyncSession = Depends(get_session),
    gateway: RazorpayCardGateway = Depends(get_card_gateway),
    directory: UserDirectory = Depends(get_user_directory),
    notifier: Notifier = Depends(get_notifier),
):
    ack = await process_card_webhook(
        session,
        await request.body(),
        get_razorpay_signature_key(request),
        request.headers.get("X-Razorpay-Event-Id"),
        gateway,
        directory,
        notifier,
    )
    return success_response(ack)


@payments_router.post("/reconcile", response_model=ApiResponse[ReconcileResponse])
async def reconcile_payments(
    payload: ReconcileRequest | None = None,
    actor: Actor = Depends(get_actor),
    session: AsyncSession = Depends(get_session),
):
    older_than = None
    if payload and payload.older_than_minutes:
        older_than = timedelta(minutes=payload.older_than_minutes)
    expired = await settlement_service.sweep_stale_payments(session, actor, older_than)
    return success_response(ReconcileResponse(expired=expired))


@payments_router.post("/{payment_id}/execute", response_model=ApiResponse[PaymentOut])
async def execute_payment(
    payment_id: uuid.UUID,
    actor: Actor = Depends(get_actor),
    session: AsyncSession = Depends(get_session),
    gateways: dict[PaymentStrategy, PaymentGateway] = Depends(get_gateways),
    directory: UserDirectory = Depends(get_user_directory),
    notifier: Notifier = Depends(get_notifier),
):
    record, _ = await settlement_service.execute(
        session, payment_id, actor, gateways, directory, notifier
    )
    return success_response(PaymentOut.model_validate(record), message=f"Payment {record.status}")


@payments_router.get("/{payment_id}", response_model=ApiResponse[PaymentOut])
async def get_payment_status(
    payment_id: uuid.UUID,
    actor: Actor = Depends(get_actor),
    session: AsyncSession = Depends(get_session),
):
    record = await settlement_service.get_payment_status(session, payment_id, actor)
    return success_response(PaymentOut.model_validate(record))
