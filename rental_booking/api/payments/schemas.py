from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field


class PaymentInitiateRequest(BaseModel):
    booking_id: Annotated[UUID, Field(alias="bookingId")]
    strategy: str
    payer_number: Annotated[str | None, Field(alias="payerNumber")] = None
    amount: Decimal | None = None

    model_config = {"populate_by_name": True}


class PaymentOut(BaseModel):
    id: UUID
    transaction_id: Annotated[str, Field(alias="transactionId")]
    booking_id: Annotated[UUID, Field(alias="bookingId")]
    payer_id: Annotated[UUID, Field(alias="payerId")]
    strategy: str
    amount: Decimal
    commission_percentage: Annotated[Decimal, Field(alias="commissionPercentage")]
    commission: Decimal
    owner_share: Annotated[Decimal, Field(alias="ownerShare")]
    currency: str
    external_transaction_id: Annotated[str | None, Field(alias="externalTransactionId")] = None
    payer_number: Annotated[str | None, Field(alias="payerNumber")] = None
    status: str
    failure_reason: Annotated[str | None, Field(alias="failureReason")] = None
    payment_date: Annotated[datetime | None, Field(alias="paymentDate")] = None
    created_at: Annotated[datetime, Field(alias="createdAt")]
    updated_at: Annotated[datetime, Field(alias="updatedAt")]

    model_config = {"populate_by_name": True, "from_attributes": True}


class PaymentInitiateResponse(BaseModel):
    payment: PaymentOut
    external_id: Annotated[str, Field(alias="externalId")]
    # card rail: public key id for the checkout widget
    client_secret: Annotated[str | None, Field(alias="clientSecret")] = None

    model_config = {"populate_by_name": True}


class ReconcileRequest(BaseModel):
    older_than_minutes: Annotated[int | None, Field(alias="olderThanMinutes", ge=1)] = None

    model_config = {"populate_by_name": True}


class ReconcileResponse(BaseModel):
    expired: int


class WebhookAck(BaseModel):
    status: str = "ok"
    duplicate: bool = False
