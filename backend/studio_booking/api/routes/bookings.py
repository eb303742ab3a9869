"""
Booking endpoints: public submission and availability, staff listing and
status changes.
"""

import math
from datetime import date as date_type
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from studio_booking.api.deps import (
    enforce_rate_limit,
    get_admission_controller,
    get_availability_service,
    get_booking_repository,
    get_current_principal,
    get_lifecycle,
    require_roles,
)
from studio_booking.core.exceptions import BookingValidationError
from studio_booking.core.logging import get_logger
from studio_booking.models.enums import BookingStatus, ResourceType, Role
from studio_booking.schemas.booking import (
    AvailabilityResponse,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    StatusUpdate,
)
from studio_booking.services.admission_service import AdmissionController, BookingRequest
from studio_booking.services.availability_service import AvailabilityService
from studio_booking.services.cache_service import (
    get_cached_availability,
    invalidate_availability,
    set_cached_availability,
)
from studio_booking.services.interfaces.repository import BookingRepository
from studio_booking.services.interfaces.session_verifier import Principal
from studio_booking.services.lifecycle_service import BookingLifecycle
from studio_booking.services.slots import parse_clock

logger = get_logger(__name__)
router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_rate_limit)],
)
async def create_booking(
    booking_data: BookingCreate,
    controller: AdmissionController = Depends(get_admission_controller),
):
    """
    Submit a booking request. It is admitted as `pending` unless it
    overlaps a pending or confirmed booking of the same type on that date (409).
    """
    request = BookingRequest(
        resource_type=booking_data.type,
        date=booking_data.date.date(),
        start=parse_clock(booking_data.start_time),
        end=parse_clock(booking_data.end_time),
        name=booking_data.name,
        email=booking_data.email,
        phone=booking_data.phone,
        message=booking_data.message,
    )
    booking = await controller.submit(request)
    await invalidate_availability(booking.resource_type, booking.date)
    return booking


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    type_filter: Optional[ResourceType] = Query(None, alias="type"),
    date: Optional[date_type] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(require_roles(Role.ADMIN, Role.MODERATOR)),
    repository: BookingRepository = Depends(get_booking_repository),
):
    """List bookings newest first (staff only)."""
    bookings, total = await repository.search(
        status=status_filter,
        resource_type=type_filter,
        day=date,
        limit=limit,
        offset=offset,
    )
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in bookings],
        total=total,
        page=offset // limit + 1,
        totalPages=math.ceil(total / limit),
        hasNext=offset + limit < total,
        hasPrev=offset > 0,
    )


@router.get("/availability", response_model=AvailabilityResponse)
async def get_availability(
    date: Optional[date_type] = Query(None),
    type: Optional[ResourceType] = Query(None),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Free and taken slot starts for one resource type on one date. Advisory."""
    missing = [
        {"field": name, "message": f"{name} is required"}
        for name, value in (("date", date), ("type", type))
        if value is None
    ]
    if missing:
        raise BookingValidationError(missing)

    cached = await get_cached_availability(type, date)
    if cached is not None:
        return cached

    availability = await service.get_availability(type, date)
    response = availability.to_response()
    await set_cached_availability(type, date, response)
    return response


@router.post("/confirm", response_model=BookingResponse)
async def update_booking_status(
    update: StatusUpdate,
    principal: Principal = Depends(get_current_principal),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    """Confirm or cancel a booking (staff only)."""
    booking = await lifecycle.transition(principal, update.bookingId, update.status)
    await invalidate_availability(booking.resource_type, booking.date)
    return booking
