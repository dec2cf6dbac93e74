"""
Application bootstrap helpers (runs during startup).
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hvac_crm.core.database import Database
from hvac_crm.models import ServiceType

logger = logging.getLogger(__name__)


DEFAULT_SERVICE_TYPES = (
    {
        "service_name": "AC Repair",
        "base_price": Decimal("129.00"),
        "estimated_duration_minutes": 90,
    },
    {
        "service_name": "Furnace Repair",
        "base_price": Decimal("129.00"),
        "estimated_duration_minutes": 90,
    },
    {
        "service_name": "Seasonal Maintenance",
        "base_price": Decimal("89.00"),
        "estimated_duration_minutes": 60,
    },
    {
        "service_name": "System Installation",
        "base_price": Decimal("350.00"),
        "estimated_duration_minutes": 480,
    },
    {
        "service_name": "Emergency Service",
        "base_price": Decimal("199.00"),
        "estimated_duration_minutes": 120,
    },
)


async def _ensure_service_types(session: AsyncSession, defaults: Iterable[dict]) -> None:
    """Insert default service types if they are missing."""
    for config in defaults:
        stmt = select(ServiceType).where(ServiceType.service_name == config["service_name"])
        result = await session.execute(stmt)
        if result.scalar_one_or_none():
            continue

        session.add(ServiceType(**config))
        logger.info("Seeded service type %s", config["service_name"])


async def seed_service_types(
    session: AsyncSession | None = None,
    database: Database | None = None,
) -> None:
    """
    Ensure the booking form's service types exist.

    If a session is not provided, a temporary one is opened on ``database``.
    """
    if session is None:
        if database is None:
            raise ValueError("seed_service_types needs a session or a database")
        async with database.session() as temp_session:
            await _ensure_service_types(temp_session, DEFAULT_SERVICE_TYPES)
            await temp_session.commit()
        return

    await _ensure_service_types(session, DEFAULT_SERVICE_TYPES)
    await session.commit()
