"""
Technician portal endpoints.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hvac_crm.core.database import get_db
from hvac_crm.schemas.bookings import (
    BookingListResponse,
    BookingMutationResponse,
    BookingRecord,
    StatusUpdateRequest,
    TechnicianRecord,
    TechnicianResponse,
    TechnicianStatusUpdate,
)
from hvac_crm.services.assignment import AssignmentService
from hvac_crm.services.dispatch_query import DispatchQueryService
from hvac_crm.services.store import RequestStore, store_guard
from hvac_crm.services.technicians import TechnicianService

router = APIRouter()


@router.get("/{tech_id}/jobs", response_model=BookingListResponse)
async def list_technician_jobs(
    tech_id: int,
    on_date: Optional[date] = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
):
    """Jobs assigned to one technician, in dispatch order."""
    async with store_guard("retrieve jobs"):
        await RequestStore(db).require_technician(tech_id)
    bookings = await DispatchQueryService(db).list_bookings(on_date=on_date, tech_id=tech_id)
    return BookingListResponse(bookings=bookings, count=len(bookings))


@router.put("/{tech_id}/status", response_model=TechnicianResponse)
async def update_technician_status(
    tech_id: int,
    payload: TechnicianStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a technician's availability (available, busy, off_duty, ...)."""
    technician = await TechnicianService(db).set_availability(tech_id, payload.status)
    return TechnicianResponse(
        message="Technician status updated",
        technician=TechnicianRecord.model_validate(technician),
    )


@router.put("/{tech_id}/jobs/{request_id}/status", response_model=BookingMutationResponse)
async def update_job_status(
    tech_id: int,
    request_id: int,
    payload: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Let the assigned technician move a job along (e.g. in_progress, completed)."""
    async with store_guard("update status"):
        await RequestStore(db).require_technician(tech_id)
    booking = await AssignmentService(db).set_status(
        request_id,
        payload.status,
        expected_version=payload.expected_version,
        tech_id=tech_id,
    )
    return BookingMutationResponse(
        message="Status updated successfully",
        booking=BookingRecord.model_validate(booking),
    )
