"""
Dispatch dashboard endpoints: board view, technician roster, assignment,
status changes, detail edits and statistics.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hvac_crm.core.config import settings
from hvac_crm.core.database import get_db
from hvac_crm.models import RequestStatus
from hvac_crm.schemas.bookings import (
    AssignTechnicianRequest,
    BookingListResponse,
    BookingMutationResponse,
    BookingPatch,
    BookingRecord,
    StatsResponse,
    StatusUpdateRequest,
    TechnicianListResponse,
)
from hvac_crm.services.assignment import AssignmentService
from hvac_crm.services.dispatch_query import DispatchQueryService
from hvac_crm.services.stats import StatsService
from hvac_crm.services.store import RequestStore, store_guard
from hvac_crm.utils.notifications import SmsNotifier, get_sms_notifier

router = APIRouter()


@router.get("/bookings", response_model=BookingListResponse)
async def list_dispatch_bookings(
    status: Optional[RequestStatus] = Query(None),
    on_date: Optional[date] = Query(None, alias="date"),
    tech_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Dispatch board, ordered by status rank, priority and dates."""
    bookings = await DispatchQueryService(db).list_bookings(
        status=status, on_date=on_date, tech_id=tech_id
    )
    return BookingListResponse(bookings=bookings, count=len(bookings))


@router.get("/technicians", response_model=TechnicianListResponse)
async def list_technicians(db: AsyncSession = Depends(get_db)):
    """All technicians with their active job counts."""
    technicians = await DispatchQueryService(db).list_technicians()
    return TechnicianListResponse(technicians=technicians)


@router.put("/bookings/{request_id}/assign", response_model=BookingMutationResponse)
async def assign_technician(
    request_id: int,
    payload: AssignTechnicianRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    sms: Optional[SmsNotifier] = Depends(get_sms_notifier),
):
    """Assign a technician and schedule; the booking becomes scheduled."""
    booking = await AssignmentService(db).assign_technician(
        request_id,
        payload.tech_id,
        payload.scheduled_date,
        payload.scheduled_time,
        expected_version=payload.expected_version,
    )

    if settings.SMS_ON_ASSIGNMENT and sms is not None and sms.enabled:
        async with store_guard("assign tech"):
            joined = await RequestStore(db).get_joined_request(request_id)
        background_tasks.add_task(
            sms.send,
            joined.customer.phone,
            "appointment_confirmation",
            {
                "service_type": (
                    joined.service_type.service_name if joined.service_type else "service visit"
                ),
                "date": payload.scheduled_date.strftime("%A, %B %d"),
                "time": payload.scheduled_time.strftime("%I:%M %p").lstrip("0"),
            },
        )

    return BookingMutationResponse(
        message="Tech assigned successfully",
        booking=BookingRecord.model_validate(booking),
    )


@router.put("/bookings/{request_id}/status", response_model=BookingMutationResponse)
async def update_booking_status(
    request_id: int,
    payload: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Set a booking's lifecycle status."""
    booking = await AssignmentService(db).set_status(
        request_id, payload.status, expected_version=payload.expected_version
    )
    return BookingMutationResponse(
        message="Status updated successfully",
        booking=BookingRecord.model_validate(booking),
    )


@router.put("/bookings/{request_id}", response_model=BookingMutationResponse)
async def update_booking(
    request_id: int,
    payload: BookingPatch,
    db: AsyncSession = Depends(get_db),
):
    """Partially update schedule, priority, notes or service type."""
    booking = await AssignmentService(db).update_details(request_id, payload)
    return BookingMutationResponse(
        message="Booking updated successfully",
        booking=BookingRecord.model_validate(booking),
    )


@router.get("/stats", response_model=StatsResponse)
async def get_dispatch_stats(db: AsyncSession = Depends(get_db)):
    """Dashboard counters, computed fresh on each call."""
    stats = await StatsService(db).get_stats()
    return StatsResponse(stats=stats)
