"""
Dispatch board queries.
"""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import and_, case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hvac_crm.models import ACTIVE_STATUSES, RequestStatus, ServiceRequest, Technician
from hvac_crm.schemas.bookings import DispatchBooking, TechnicianSummary
from hvac_crm.services.store import joined_requests, store_guard

logger = logging.getLogger(__name__)


# in_progress first, then scheduled, then pending, then everything else.
STATUS_RANK = case(
    (ServiceRequest.status == RequestStatus.IN_PROGRESS, 1),
    (ServiceRequest.status == RequestStatus.SCHEDULED, 2),
    (ServiceRequest.status == RequestStatus.PENDING, 3),
    else_=4,
)

DISPATCH_ORDER = (
    STATUS_RANK.asc(),
    ServiceRequest.priority.desc(),
    ServiceRequest.scheduled_date.asc().nulls_last(),
    ServiceRequest.preferred_date.asc().nulls_last(),
    ServiceRequest.created_at.asc(),
    ServiceRequest.request_id.asc(),
)


class DispatchQueryService:
    """Read-only views over service requests and technicians."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_bookings(
        self,
        status: Optional[RequestStatus] = None,
        on_date: Optional[date] = None,
        tech_id: Optional[int] = None,
    ) -> List[DispatchBooking]:
        """
        Return the dispatch board.

        Filters combine with AND. ``on_date`` matches either the scheduled or
        the preferred date.
        """
        stmt = joined_requests()
        if status is not None:
            stmt = stmt.where(ServiceRequest.status == status)
        if on_date is not None:
            stmt = stmt.where(
                or_(
                    ServiceRequest.scheduled_date == on_date,
                    ServiceRequest.preferred_date == on_date,
                )
            )
        if tech_id is not None:
            stmt = stmt.where(ServiceRequest.assigned_tech_id == tech_id)
        stmt = stmt.order_by(*DISPATCH_ORDER).execution_options(populate_existing=True)

        async with store_guard("retrieve bookings"):
            result = await self.db.execute(stmt)
            rows = list(result.unique().scalars().all())

        return [DispatchBooking.from_request(row) for row in rows]

    async def list_technicians(self) -> List[TechnicianSummary]:
        """All technicians with their count of scheduled/in-progress jobs."""
        stmt = (
            select(Technician, func.count(ServiceRequest.request_id).label("active_jobs"))
            .outerjoin(
                ServiceRequest,
                and_(
                    ServiceRequest.assigned_tech_id == Technician.tech_id,
                    ServiceRequest.status.in_(ACTIVE_STATUSES),
                ),
            )
            .group_by(Technician.tech_id)
            .order_by(Technician.name, Technician.tech_id)
        )

        async with store_guard("retrieve technicians"):
            result = await self.db.execute(stmt)
            rows = result.all()

        return [
            TechnicianSummary(
                tech_id=tech.tech_id,
                name=tech.name,
                phone=tech.phone,
                email=tech.email,
                status=tech.status,
                specialization=tech.specialization,
                active_jobs=active_jobs,
            )
            for tech, active_jobs in rows
        ]
