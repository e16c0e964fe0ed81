from __future__ import annotations

from datetime import datetime
from decimal import Decimal
import uuid

from sqlalchemy import Column, DateTime, Index, Numeric, String, Text, text
from sqlmodel import Field, SQLModel

from rental_booking.api.payments.helpers import utcnow
from rental_booking.core.common.constants import PaymentStatus

PENDING_ONLY = text("status = 'pending'")


class PaymentRecord(SQLModel, table=True):
    """One settlement attempt against one booking, on either rail."""

    __tablename__ = "payment_records"
    __table_args__ = (
        Index("idx_payment_record_booking_id", "booking_id"),
        Index("idx_payment_record_external_id", "external_transaction_id"),
        # at most one non-terminal attempt per booking
        Index(
            "uq_payment_record_booking_pending",
            "booking_id",
            unique=True,
            postgresql_where=PENDING_ONLY,
            sqlite_where=PENDING_ONLY,
        ),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, nullable=False)
    transaction_id: str = Field(
        sa_column=Column("transaction_id", String(25), unique=True, nullable=False)
    )
    booking_id: uuid.UUID = Field(nullable=False, foreign_key="bookings.id")
    payer_id: uuid.UUID = Field(nullable=False)
    strategy: str = Field(sa_column=Column(String(20), nullable=False))

    amount: Decimal = Field(sa_column=Column(Numeric(12, 2), nullable=False))
    commission_percentage: Decimal = Field(sa_column=Column(Numeric(5, 2), nullable=False))
    commission: Decimal = Field(sa_column=Column(Numeric(12, 2), nullable=False))
    owner_share: Decimal = Field(sa_column=Column(Numeric(12, 2), nullable=False))
    currency: str = Field(default="BDT", sa_column=Column(String(10), nullable=False))

    external_transaction_id: str | None = Field(default=None, sa_column=Column(String(100)))
    payer_number: str | None = Field(default=None, sa_column=Column(String(20)))

    status: str = Field(
        default=PaymentStatus.PENDING.value, sa_column=Column(String(20), nullable=False)
    )
    failure_reason: str | None = Field(default=None, sa_column=Column(Text))
    payment_date: datetime | None = Field(default=None, sa_column=Column(DateTime))

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime, nullable=False))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime, nullable=False))

    @property
    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING

    def mark_completed(self, at: datetime | None = None) -> None:
        at = at or utcnow()
        self.status = PaymentStatus.COMPLETED.value
        self.failure_reason = None
        self.payment_date = at
        self.updated_at = at

    def mark_failed(self, reason: str) -> None:
        self.status = PaymentStatus.FAILED.value
        self.failure_reason = reason
        self.updated_at = utcnow()
