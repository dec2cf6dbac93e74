"""
Pydantic schemas for booking intake and the dispatch board.

Request payloads validate what customers and dispatchers submit; response
models flatten the ORM rows into the shapes the dashboard pages consume.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from hvac_crm.models import ServiceRequest


# Requests
class BookingCreate(BaseModel):
    """Public booking form submission."""

    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=7, max_length=50)
    email: Optional[EmailStr] = None
    address: str = Field(..., min_length=1)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, min_length=2, max_length=2)
    zip: Optional[str] = Field(None, max_length=10)

    service_type_id: Optional[int] = None
    preferred_date: date
    preferred_time: Optional[str] = Field(None, max_length=50)
    issue_description: Optional[str] = None
    notes: Optional[str] = None
    priority: int = Field(0, ge=0, le=10)

    @field_validator("name", "phone", "address")
    @classmethod
    def strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class BookingPatch(BaseModel):
    """
    Partial update of a service request.

    Only fields present in the payload are written; an explicit ``null``
    clears the column. ``expected_version`` is a concurrency guard, not a
    column to update.
    """

    scheduled_date: Optional[date] = None
    scheduled_time: Optional[time] = None
    priority: Optional[int] = Field(None, ge=0, le=10)
    notes: Optional[str] = None
    service_type_id: Optional[int] = None
    expected_version: Optional[int] = None

    @field_validator("priority")
    @classmethod
    def priority_not_null(cls, value: Optional[int]) -> int:
        if value is None:
            raise ValueError("priority cannot be null")
        return value

    def changes(self) -> Dict[str, Any]:
        """Return exactly the fields the caller supplied."""
        return self.model_dump(exclude_unset=True, exclude={"expected_version"})


class AssignTechnicianRequest(BaseModel):
    tech_id: int
    scheduled_date: date
    scheduled_time: time
    expected_version: Optional[int] = None


class StatusUpdateRequest(BaseModel):
    # Plain string so unknown values reach the service and map to a 400.
    status: str
    expected_version: Optional[int] = None


class TechnicianStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1, max_length=50)


class ContactMessage(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    service: Optional[str] = Field(None, max_length=255)
    message: str = Field(..., min_length=1)


# Responses
class BookingRecord(BaseModel):
    """A service request row as stored."""

    request_id: int
    customer_id: int
    service_type_id: Optional[int]
    assigned_tech_id: Optional[int]
    status: str
    priority: int
    preferred_date: Optional[date]
    preferred_time: Optional[str]
    scheduled_date: Optional[date]
    scheduled_time: Optional[time]
    notes: Optional[str]
    issue_description: Optional[str]
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("status", mode="before")
    @classmethod
    def status_value(cls, value: Any) -> Any:
        return getattr(value, "value", value)


class DispatchBooking(BaseModel):
    """A service request joined with its customer, service type and technician."""

    request_id: int
    status: str
    priority: int
    preferred_date: Optional[date]
    preferred_time: Optional[str]
    scheduled_date: Optional[date]
    scheduled_time: Optional[time]
    created_at: datetime
    updated_at: datetime
    version: int
    notes: Optional[str]
    issue_description: Optional[str]

    customer_id: int
    customer_name: str
    customer_phone: str
    customer_email: Optional[str]
    address: str
    city: Optional[str]
    state: Optional[str]
    zip: Optional[str]

    service_type_id: Optional[int] = None
    service_name: Optional[str] = None
    base_price: Optional[float] = None
    estimated_duration_minutes: Optional[int] = None

    tech_id: Optional[int] = None
    tech_name: Optional[str] = None
    tech_phone: Optional[str] = None
    tech_status: Optional[str] = None

    @classmethod
    def from_request(cls, sr: ServiceRequest) -> "DispatchBooking":
        customer = sr.customer
        service_type = sr.service_type
        tech = sr.technician
        return cls(
            request_id=sr.request_id,
            status=sr.status.value,
            priority=sr.priority,
            preferred_date=sr.preferred_date,
            preferred_time=sr.preferred_time,
            scheduled_date=sr.scheduled_date,
            scheduled_time=sr.scheduled_time,
            created_at=sr.created_at,
            updated_at=sr.updated_at,
            version=sr.version,
            notes=sr.notes,
            issue_description=sr.issue_description,
            customer_id=customer.customer_id,
            customer_name=customer.name,
            customer_phone=customer.phone,
            customer_email=customer.email,
            address=customer.address,
            city=customer.city,
            state=customer.state,
            zip=customer.zip,
            service_type_id=service_type.service_type_id if service_type else None,
            service_name=service_type.service_name if service_type else None,
            base_price=(
                float(service_type.base_price)
                if service_type and service_type.base_price is not None
                else None
            ),
            estimated_duration_minutes=(
                service_type.estimated_duration_minutes if service_type else None
            ),
            tech_id=tech.tech_id if tech else None,
            tech_name=tech.name if tech else None,
            tech_phone=tech.phone if tech else None,
            tech_status=tech.status if tech else None,
        )


class TechnicianRecord(BaseModel):
    tech_id: int
    name: str
    phone: Optional[str]
    email: Optional[str]
    status: str
    specialization: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class TechnicianSummary(TechnicianRecord):
    """Technician row plus the count of scheduled/in-progress jobs."""

    active_jobs: int = 0


class ServiceTypeResponse(BaseModel):
    service_type_id: int
    service_name: str
    base_price: Optional[float]
    estimated_duration_minutes: Optional[int]

    model_config = ConfigDict(from_attributes=True)


class DispatchStats(BaseModel):
    """Dashboard counters over non-cancelled requests."""

    pending_count: int = 0
    scheduled_count: int = 0
    in_progress_count: int = 0
    completed_today: int = 0
    scheduled_today: int = 0
    scheduled_tomorrow: int = 0
    total_active: int = 0


# Envelopes
class BookingListResponse(BaseModel):
    success: bool = True
    bookings: List[DispatchBooking]
    count: int


class BookingDetailResponse(BaseModel):
    success: bool = True
    booking: DispatchBooking


class BookingMutationResponse(BaseModel):
    success: bool = True
    message: str
    booking: BookingRecord


class TechnicianListResponse(BaseModel):
    success: bool = True
    technicians: List[TechnicianSummary]


class TechnicianResponse(BaseModel):
    success: bool = True
    message: str
    technician: TechnicianRecord


class ServiceTypeListResponse(BaseModel):
    success: bool = True
    service_types: List[ServiceTypeResponse]


class StatsResponse(BaseModel):
    success: bool = True
    stats: DispatchStats
