from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field


class RentalPeriodIn(BaseModel):
    start_date: Annotated[date | None, Field(alias="startDate")] = None
    end_date: Annotated[date | None, Field(alias="endDate")] = None
    duration_months: Annotated[int | None, Field(alias="durationMonths")] = None

    model_config = {"populate_by_name": True}


class BookingCreateRequest(BaseModel):
    property_id: Annotated[UUID, Field(alias="propertyId")]
    booking_type: Annotated[str, Field(alias="bookingType")]
    visit_date: Annotated[date | None, Field(alias="visitDate")] = None
    visit_time_slot: Annotated[str | None, Field(alias="visitTimeSlot")] = None
    rental_period: Annotated[RentalPeriodIn | None, Field(alias="rentalPeriod")] = None
    advance_amount: Annotated[Decimal | None, Field(alias="advanceAmount")] = None
    commission_percentage: Annotated[Decimal | None, Field(alias="commissionPercentage")] = None
    user_message: Annotated[str | None, Field(alias="userMessage", max_length=500)] = None
    preferred_contact_time: Annotated[str | None, Field(alias="preferredContactTime")] = None

    model_config = {"populate_by_name": True}


class AdminActionRequest(BaseModel):
    action: str
    notes: Annotated[str | None, Field(alias="adminNotes")] = None

    model_config = {"populate_by_name": True}


class CancelBookingRequest(BaseModel):
    notes: str | None = None


class RentalPeriodOut(BaseModel):
    start_date: Annotated[date, Field(alias="startDate")]
    end_date: Annotated[date, Field(alias="endDate")]
    duration_months: Annotated[int, Field(alias="durationMonths")]

    model_config = {"populate_by_name": True}


class AdminApprovalOut(BaseModel):
    is_approved: Annotated[bool, Field(alias="isApproved")]
    approved_by: Annotated[UUID | None, Field(alias="approvedBy")] = None
    approved_at: Annotated[datetime | None, Field(alias="approvedAt")] = None
    notes: str | None = None

    model_config = {"populate_by_name": True}


class BookingPaymentOut(BaseModel):
    advance_amount: Annotated[Decimal | None, Field(alias="advanceAmount")] = None
    commission_percentage: Annotated[Decimal | None, Field(alias="commissionPercentage")] = None
    admin_commission: Annotated[Decimal | None, Field(alias="adminCommission")] = None
    owner_amount: Annotated[Decimal | None, Field(alias="ownerAmount")] = None
    is_paid: Annotated[bool, Field(alias="isPaid")] = False
    payment_method: Annotated[str | None, Field(alias="paymentMethod")] = None
    transaction_id: Annotated[str | None, Field(alias="transactionId")] = None
    payment_date: Annotated[datetime | None, Field(alias="paymentDate")] = None

    model_config = {"populate_by_name": True}


class TimelineEntryOut(BaseModel):
    seq: int
    action: str
    status: str
    performed_by: Annotated[UUID | None, Field(alias="performedBy")] = None
    timestamp: datetime
    notes: str | None = None

    model_config = {"populate_by_name": True, "from_attributes": True}


class BookingOut(BaseModel):
    id: UUID
    property_id: Annotated[UUID, Field(alias="propertyId")]
    requester_id: Annotated[UUID, Field(alias="requesterId")]
    booking_type: Annotated[str, Field(alias="bookingType")]
    status: str
    visit_date: Annotated[date | None, Field(alias="visitDate")] = None
    visit_time_slot: Annotated[str | None, Field(alias="visitTimeSlot")] = None
    rental_period: Annotated[RentalPeriodOut | None, Field(alias="rentalPeriod")] = None
    admin_approval: Annotated[AdminApprovalOut, Field(alias="adminApproval")]
    payment: BookingPaymentOut
    user_message: Annotated[str | None, Field(alias="userMessage")] = None
    preferred_contact_time: Annotated[str | None, Field(alias="preferredContactTime")] = None
    timeline: list[TimelineEntryOut] | None = None
    created_at: Annotated[datetime, Field(alias="createdAt")]
    updated_at: Annotated[datetime, Field(alias="updatedAt")]

    model_config = {"populate_by_name": True}
