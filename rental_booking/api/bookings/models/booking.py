from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
import uuid

from sqlalchemy import Boolean, Column, Date, DateTime, Index, Integer, Numeric, String, Text
from sqlmodel import Field, SQLModel

from rental_booking.api.bookings.lifecycle import assert_transition, split_commission
from rental_booking.api.bookings.models.booking_timeline import BookingTimelineEntry
from rental_booking.api.payments.helpers import money, utcnow
from rental_booking.core.common.constants import BookingStatus, TimelineAction


class Booking(SQLModel, table=True):
    """The booking aggregate.

    Status, payment fields and timeline only change through the methods
    below; each accepted change returns the timeline entry that has to be
    committed together with it.
    """

    __tablename__ = "bookings"
    __table_args__ = (
        Index("idx_booking_requester_id", "requester_id"),
        Index("idx_booking_status", "status"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, nullable=False)
    property_id: uuid.UUID = Field(nullable=False)
    requester_id: uuid.UUID = Field(nullable=False)
    owner_id: uuid.UUID = Field(nullable=False)

    booking_type: str = Field(sa_column=Column(String(10), nullable=False))
    status: str = Field(
        default=BookingStatus.PENDING.value,
        sa_column=Column(String(20), nullable=False, server_default=BookingStatus.PENDING.value),
    )
    revision: int = Field(default=0, sa_column=Column(Integer, nullable=False, server_default="0"))

    visit_date: date | None = Field(default=None, sa_column=Column(Date))
    visit_time_slot: str | None = Field(default=None, sa_column=Column(String(20)))
    rental_start_date: date | None = Field(default=None, sa_column=Column(Date))
    rental_end_date: date | None = Field(default=None, sa_column=Column(Date))
    rental_duration_months: int | None = Field(default=None, sa_column=Column(Integer))

    is_approved: bool = Field(
        default=False, sa_column=Column(Boolean, nullable=False, server_default="false")
    )
    approved_by: uuid.UUID | None = Field(default=None)
    approved_at: datetime | None = Field(default=None, sa_column=Column(DateTime))
    admin_notes: str | None = Field(default=None, sa_column=Column(Text))

    advance_amount: Decimal | None = Field(default=None, sa_column=Column(Numeric(12, 2)))
    commission_percentage: Decimal | None = Field(default=None, sa_column=Column(Numeric(5, 2)))
    admin_commission: Decimal | None = Field(default=None, sa_column=Column(Numeric(12, 2)))
    owner_amount: Decimal | None = Field(default=None, sa_column=Column(Numeric(12, 2)))
    is_paid: bool = Field(
        default=False, sa_column=Column(Boolean, nullable=False, server_default="false")
    )
    payment_method: str | None = Field(default=None, sa_column=Column(String(20)))
    transaction_id: str | None = Field(default=None, sa_column=Column(String(100)))
    payment_date: datetime | None = Field(default=None, sa_column=Column(DateTime))

    user_message: str | None = Field(default=None, sa_column=Column(String(500)))
    preferred_contact_time: str | None = Field(default=None, sa_column=Column(String(50)))

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime, nullable=False))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime, nullable=False))

    def set_advance(self, amount: Decimal | None, percentage: Decimal | None) -> None:
        self.advance_amount = money(amount) if amount is not None else None
        self.commission_percentage = money(percentage) if percentage is not None else None
        if self.advance_amount is None or self.commission_percentage is None:
            self.admin_commission = None
            self.owner_amount = None
            return
        split = split_commission(self.advance_amount, self.commission_percentage)
        self.admin_commission = split.commission
        self.owner_amount = split.owner_share

    def record(
        self,
        action: TimelineAction,
        performed_by: uuid.UUID | None,
        notes: str | None = None,
        at: datetime | None = None,
    ) -> BookingTimelineEntry:
        at = at or utcnow()
        self.revision = (self.revision or 0) + 1
        self.updated_at = at
        return BookingTimelineEntry(
            booking_id=self.id,
            seq=self.revision,
            action=action.value,
            status=self.status,
            performed_by=performed_by,
            notes=notes,
            timestamp=at,
        )

    def transition(
        self,
        target: BookingStatus,
        action: TimelineAction,
        performed_by: uuid.UUID | None,
        notes: str | None = None,
        at: datetime | None = None,
    ) -> BookingTimelineEntry:
        assert_transition(self.status, target)
        self.status = target.value
        return self.record(action, performed_by, notes, at)

    def approve(self, admin_id: uuid.UUID, notes: str | None) -> BookingTimelineEntry:
        at = utcnow()
        entry = self.transition(
            BookingStatus.CONFIRMED, TimelineAction.APPROVED, admin_id, notes, at
        )
        self.is_approved = True
        self.approved_by = admin_id
        self.approved_at = at
        self.admin_notes = notes
        return entry

    def reject(self, admin_id: uuid.UUID, notes: str | None) -> BookingTimelineEntry:
        entry = self.transition(BookingStatus.REJECTED, TimelineAction.REJECTED, admin_id, notes)
        self.admin_notes = notes
        return entry

    def cancel(self, actor_id: uuid.UUID, notes: str | None) -> BookingTimelineEntry:
        return self.transition(BookingStatus.CANCELLED, TimelineAction.CANCELLED, actor_id, notes)

    def settle(
        self,
        *,
        amount: Decimal,
        payment_method: str,
        transaction_id: str,
        performed_by: uuid.UUID | None,
        at: datetime | None = None,
    ) -> BookingTimelineEntry:
        at = at or utcnow()
        assert_transition(self.status, BookingStatus.COMPLETED)
        self.set_advance(amount, self.commission_percentage)
        self.payment_method = payment_method
        self.transaction_id = transaction_id
        self.payment_date = at
        self.is_paid = True
        return self.transition(
            BookingStatus.COMPLETED,
            TimelineAction.SETTLED,
            performed_by,
            f"Advance payment of {money(amount)} received",
            at,
        )
