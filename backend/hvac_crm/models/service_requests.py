"""
Service request and service type models.
"""
import enum

from sqlalchemy import (
    Column, String, Integer, Numeric, Date, Time, DateTime, Text,
    ForeignKey, Enum as SQLEnum, Index, CheckConstraint,
)
from sqlalchemy.orm import relationship

from hvac_crm.core.database import Base, utcnow


class RequestStatus(str, enum.Enum):
    """Service request lifecycle."""
    PENDING = "pending"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


ACTIVE_STATUSES = (RequestStatus.SCHEDULED, RequestStatus.IN_PROGRESS)


class ServiceType(Base):
    """
    Static reference data for the services offered on the booking form.
    """
    __tablename__ = "service_types"

    service_type_id = Column(Integer, primary_key=True, autoincrement=True)
    service_name = Column(String(255), nullable=False, unique=True)
    base_price = Column(Numeric(10, 2))
    estimated_duration_minutes = Column(Integer)

    service_requests = relationship("ServiceRequest", back_populates="service_type")


class ServiceRequest(Base):
    """
    A customer's request for HVAC work, tracked from intake to completion.
    """
    __tablename__ = "service_requests"

    request_id = Column(Integer, primary_key=True, autoincrement=True)

    # References
    customer_id = Column(
        Integer, ForeignKey("customers.customer_id"), nullable=False, index=True
    )
    customer = relationship("Customer", back_populates="service_requests")

    service_type_id = Column(Integer, ForeignKey("service_types.service_type_id"))
    service_type = relationship("ServiceType", back_populates="service_requests")

    assigned_tech_id = Column(Integer, ForeignKey("technicians.tech_id"), index=True)
    technician = relationship("Technician", back_populates="assignments")

    # Status
    status = Column(
        SQLEnum(
            RequestStatus,
            name="request_status",
            values_callable=lambda e: [member.value for member in e],
            native_enum=False,
            length=20,
        ),
        nullable=False,
        default=RequestStatus.PENDING,
    )
    priority = Column(Integer, nullable=False, default=0)  # higher is more urgent

    # Customer-requested slot (fixed at intake)
    preferred_date = Column(Date)
    preferred_time = Column(String(50))  # free-form window, e.g. "8am-12pm"

    # Operator-assigned slot
    scheduled_date = Column(Date)
    scheduled_time = Column(Time)

    # Details
    issue_description = Column(Text)
    notes = Column(Text)

    # Concurrency token, incremented on every mutation
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_service_requests_status_priority", "status", "priority"),
        Index("idx_service_requests_dates", "scheduled_date", "preferred_date"),
        CheckConstraint(
            "updated_at >= created_at", name="ck_service_requests_updated_after_created"
        ),
    )

    def __repr__(self) -> str:
        return f"<ServiceRequest(id={self.request_id}, status={self.status})>"
