from __future__ import annotations

from datetime import datetime
import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from rental_booking.api.payments.helpers import utcnow


class PaymentWebhook(SQLModel, table=True):
    """Verified card-rail events, kept so a redelivered event is applied once."""

    __tablename__ = "payment_webhooks"
    __table_args__ = (
        Index("idx_payment_webhook_external_id", "external_transaction_id"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, nullable=False)
    gateway: str = Field(default="RAZORPAY", sa_column=Column(String(30), nullable=False))
    event_id: str = Field(
        sa_column=Column("event_id", String(100), unique=True, nullable=False)
    )
    event_type: str | None = Field(default=None, sa_column=Column(String(50)))
    external_transaction_id: str | None = Field(default=None, sa_column=Column(String(100)))
    payload: dict | None = Field(
        default=None, sa_column=Column(JSON().with_variant(JSONB(), "postgresql"))
    )
    processed: bool = Field(
        default=False, sa_column=Column(Boolean, nullable=False, server_default="false")
    )
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime, nullable=False))
