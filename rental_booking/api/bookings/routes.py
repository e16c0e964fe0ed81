from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rental_booking.api.bookings import timeline
from rental_booking.api.bookings.helpers import to_booking_response
from rental_booking.api.bookings.schemas import (
    AdminActionRequest,
    BookingCreateRequest,
    BookingOut,
    CancelBookingRequest,
    TimelineEntryOut,
)
from rental_booking.api.bookings.services import approval_service, booking_service
from rental_booking.api.dependencies import (
    get_actor,
    get_notifier,
    get_property_catalog,
    get_user_directory,
)
from rental_booking.core.request_context import Actor
from rental_booking.db.main import get_session
from rental_booking.utils.collaborators import Notifier, PropertyAvailability, UserDirectory
from rental_booking.utils.response import ApiResponse, pagination_meta, success_response

bookings_router = APIRouter()


@bookings_router.post(
    "",
    response_model=ApiResponse[BookingOut],
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    payload: BookingCreateRequest,
    actor: Actor = Depends(get_actor),
    session: AsyncSession = Depends(get_session),
    catalog: PropertyAvailability = Depends(get_property_catalog),
    directory: UserDirectory = Depends(get_user_directory),
    notifier: Notifier = Depends(get_notifier),
):
    booking, entries = await booking_service.create_booking(
        session, actor, payload, catalog, directory, notifier
    )
    return success_response(
        to_booking_response(booking, entries),
        message="Booking request created",
        status_code=status.HTTP_201_CREATED,
    )


@bookings_router.get("/me", response_model=ApiResponse[list[BookingOut]])
async def list_my_bookings(
    actor: Actor = Depends(get_actor),
    session: AsyncSession = Depends(get_session),
):
    bookings = await booking_service.list_my_bookings(session, actor)
    return success_response([to_booking_response(booking) for booking in bookings])


@bookings_router.get("", response_model=ApiResponse[list[BookingOut]])
async def list_bookings(
    status_filter: str | None = Query(default=None, alias="status"),
    type_filter: str | None = Query(default=None, alias="type"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100, alias="pageSize"),
    actor: Actor = Depends(get_actor),
    session: AsyncSession = Depends(get_session),
):
    bookings, total = await booking_service.list_bookings(
        session, actor, status_filter, type_filter, page, page_size
    )
    filters = {key: value for key, value in (("status", status_filter), ("type", type_filter)) if value}
    return success_response(
        [to_booking_response(booking) for booking in bookings],
        meta=pagination_meta(page, page_size, total, filters),
    )


@bookings_router.get("/{booking_id}", response_model=ApiResponse[BookingOut])
async def get_booking(
    booking_id: uuid.UUID,
    actor: Actor = Depends(get_actor),
    session: AsyncSession = Depends(get_session),
):
    booking, entries = await approval_service.view(session, booking_id, actor)
    return success_response(to_booking_response(booking, entries))


@bookings_router.get("/{booking_id}/timeline", response_model=ApiResponse[list[TimelineEntryOut]])
async def get_booking_timeline(
    booking_id: uuid.UUID,
    actor: Actor = Depends(get_actor),
    session: AsyncSession = Depends(get_session),
):
    booking = await approval_service.load_booking(session, booking_id)
    approval_service.authorize_view(booking, actor)
    entries = await timeline.list_entries(session, booking.id)
    return success_response([TimelineEntryOut.model_validate(entry) for entry in entries])


@bookings_router.put("/{booking_id}/admin-action", response_model=ApiResponse[BookingOut])
async def admin_action(
    booking_id: uuid.UUID,
    payload: AdminActionRequest,
    actor: Actor = Depends(get_actor),
    session: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    booking = await approval_service.admin_approve_or_reject(
        session, booking_id, actor, payload.action, payload.notes, notifier
    )
    return success_response(
        to_booking_response(booking), message=f"Booking {booking.status}"
    )


@bookings_router.post("/{booking_id}/cancel", response_model=ApiResponse[BookingOut])
async def cancel_booking(
    booking_id: uuid.UUID,
    payload: CancelBookingRequest | None = None,
    actor: Actor = Depends(get_actor),
    session: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    booking = await booking_service.cancel_booking(
        session, booking_id, actor, payload.notes if payload else None, notifier
    )
    return success_response(to_booking_response(booking), message="Booking cancelled")
