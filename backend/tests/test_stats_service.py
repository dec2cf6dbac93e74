"""Tests for dashboard statistics."""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from hvac_crm.core.errors import StoreFailureError
from hvac_crm.models import RequestStatus
from hvac_crm.services.stats import StatsService

TODAY = date(2026, 3, 10)


def _at(day: int, hour: int) -> datetime:
    return datetime(2026, 3, day, hour, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_stats_counts_by_status_and_day(db_session, seed):
    await seed.request(status=RequestStatus.PENDING)
    await seed.request(status=RequestStatus.PENDING, scheduled_date=date(2026, 3, 11))
    await seed.request(status=RequestStatus.SCHEDULED, scheduled_date=TODAY)
    await seed.request(status=RequestStatus.SCHEDULED, scheduled_date=date(2026, 3, 11))
    await seed.request(status=RequestStatus.IN_PROGRESS, scheduled_date=TODAY)
    await seed.request(status=RequestStatus.COMPLETED, created_at=_at(9, 8), updated_at=_at(10, 15))
    await seed.request(status=RequestStatus.COMPLETED, created_at=_at(8, 8), updated_at=_at(9, 23))
    await seed.request(status=RequestStatus.CANCELLED, scheduled_date=TODAY)

    stats = await StatsService(db_session).get_stats(today=TODAY)

    assert stats.pending_count == 2
    assert stats.scheduled_count == 2
    assert stats.in_progress_count == 1
    assert stats.completed_today == 1
    assert stats.scheduled_today == 2
    assert stats.scheduled_tomorrow == 2
    assert stats.total_active == 7


@pytest.mark.asyncio
async def test_stats_empty_store(db_session):
    stats = await StatsService(db_session).get_stats(today=TODAY)

    assert stats.model_dump() == {
        "pending_count": 0,
        "scheduled_count": 0,
        "in_progress_count": 0,
        "completed_today": 0,
        "scheduled_today": 0,
        "scheduled_tomorrow": 0,
        "total_active": 0,
    }


@pytest.mark.asyncio
async def test_stats_store_failure_is_wrapped():
    session = AsyncMock()
    session.execute.side_effect = OperationalError("SELECT", {}, Exception("disk I/O error"))

    with pytest.raises(StoreFailureError) as excinfo:
        await StatsService(session).get_stats(today=TODAY)

    assert excinfo.value.message == "Failed to retrieve stats"
    assert excinfo.value.status_code == 500
    assert "disk I/O error" in excinfo.value.detail
