"""
Public booking endpoints used by the website booking form.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from hvac_crm.core.config import settings
from hvac_crm.core.database import get_db
from hvac_crm.core.rate_limiter import limiter
from hvac_crm.schemas.bookings import (
    BookingCreate,
    BookingDetailResponse,
    BookingMutationResponse,
    BookingRecord,
    DispatchBooking,
    ServiceTypeListResponse,
    ServiceTypeResponse,
)
from hvac_crm.services.booking_intake import BookingIntakeService

router = APIRouter()


@router.post(
    "",
    response_model=BookingMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a service booking",
)
@limiter.limit(settings.BOOKING_RATE_LIMIT)
async def create_booking(
    request: Request,
    booking: BookingCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Create a pending service request from the booking form.

    A new customer record is stored with every booking. The request starts in
    ``pending`` and appears on the dispatch board for assignment.
    """
    created = await BookingIntakeService(db).create_booking(booking)
    return BookingMutationResponse(
        message="Booking received. We will call to confirm your appointment.",
        booking=BookingRecord.model_validate(created),
    )


@router.get("/service-types", response_model=ServiceTypeListResponse)
async def list_service_types(db: AsyncSession = Depends(get_db)):
    """Services offered on the booking form."""
    service_types = await BookingIntakeService(db).list_service_types()
    return ServiceTypeListResponse(
        service_types=[ServiceTypeResponse.model_validate(st) for st in service_types]
    )


@router.get("/{request_id}", response_model=BookingDetailResponse)
async def get_booking(request_id: int, db: AsyncSession = Depends(get_db)):
    """Booking confirmation lookup."""
    booking = await BookingIntakeService(db).get_booking(request_id)
    return BookingDetailResponse(booking=DispatchBooking.from_request(booking))
