"""
Dashboard statistics.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hvac_crm.core.database import utcnow
from hvac_crm.models import RequestStatus, ServiceRequest
from hvac_crm.schemas.bookings import DispatchStats
from hvac_crm.services.store import store_guard


def _count_when(condition):
    return func.count(case((condition, 1)))


class StatsService:
    """Counters over all non-cancelled requests, computed on every call."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_stats(self, today: Optional[date] = None) -> DispatchStats:
        """
        Compute dashboard counters.

        Days are UTC calendar days; ``today`` can be pinned for reporting or
        tests.
        """
        today = today or utcnow().date()
        tomorrow = today + timedelta(days=1)
        day_start = datetime.combine(today, time.min, tzinfo=timezone.utc)
        day_end = day_start + timedelta(days=1)

        completed_today = and_(
            ServiceRequest.status == RequestStatus.COMPLETED,
            ServiceRequest.updated_at >= day_start,
            ServiceRequest.updated_at < day_end,
        )
        stmt = select(
            _count_when(ServiceRequest.status == RequestStatus.PENDING).label("pending_count"),
            _count_when(ServiceRequest.status == RequestStatus.SCHEDULED).label("scheduled_count"),
            _count_when(ServiceRequest.status == RequestStatus.IN_PROGRESS).label("in_progress_count"),
            _count_when(completed_today).label("completed_today"),
            _count_when(ServiceRequest.scheduled_date == today).label("scheduled_today"),
            _count_when(ServiceRequest.scheduled_date == tomorrow).label("scheduled_tomorrow"),
            func.count(ServiceRequest.request_id).label("total_active"),
        ).where(ServiceRequest.status != RequestStatus.CANCELLED)

        async with store_guard("retrieve stats"):
            result = await self.db.execute(stmt)
            row = result.one()

        return DispatchStats(**row._mapping)
