from __future__ import annotations

from datetime import datetime
import uuid

from sqlalchemy import Column, DateTime, Index, Integer, String, Text
from sqlmodel import Field, SQLModel

from rental_booking.api.payments.helpers import utcnow


class BookingTimelineEntry(SQLModel, table=True):
    __tablename__ = "booking_timeline"
    __table_args__ = (
        # one entry per booking revision: two writers racing from the same
        # snapshot cannot both commit
        Index("uq_booking_timeline_booking_seq", "booking_id", "seq", unique=True),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, nullable=False)
    booking_id: uuid.UUID = Field(nullable=False, foreign_key="bookings.id")
    seq: int = Field(sa_column=Column("seq", Integer, nullable=False))

    action: str = Field(sa_column=Column(String(50), nullable=False))
    status: str = Field(sa_column=Column(String(20), nullable=False))
    performed_by: uuid.UUID | None = Field(default=None)
    notes: str | None = Field(default=None, sa_column=Column(Text))
    timestamp: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime, nullable=False)
    )
