"""
Shared data-access helpers for the dispatch services.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from hvac_crm.core.errors import NotFoundError, StoreFailureError
from hvac_crm.models import ServiceRequest, ServiceType, Technician

logger = logging.getLogger(__name__)


@asynccontextmanager
async def store_guard(action: str) -> AsyncIterator[None]:
    """
    Convert data-access errors raised inside the block into StoreFailureError.

    ``action`` completes the user-facing message, e.g. "retrieve bookings"
    becomes "Failed to retrieve bookings".
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Store failure while trying to %s", action)
        raise StoreFailureError(f"Failed to {action}", detail=str(exc)) from exc


def joined_requests() -> Select:
    """Service requests joined with customer, service type and technician."""
    return (
        select(ServiceRequest)
        .join(ServiceRequest.customer)
        .outerjoin(ServiceRequest.service_type)
        .outerjoin(ServiceRequest.technician)
        .options(
            contains_eager(ServiceRequest.customer),
            contains_eager(ServiceRequest.service_type),
            contains_eager(ServiceRequest.technician),
        )
    )


class RequestStore:
    """Lookups shared by intake, dispatch and assignment."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_request(self, request_id: int) -> Optional[ServiceRequest]:
        stmt = select(ServiceRequest).where(ServiceRequest.request_id == request_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def require_request(self, request_id: int) -> ServiceRequest:
        request = await self.get_request(request_id)
        if request is None:
            raise NotFoundError("Booking not found")
        return request

    async def get_joined_request(self, request_id: int) -> ServiceRequest:
        stmt = joined_requests().where(ServiceRequest.request_id == request_id)
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        request = result.unique().scalar_one_or_none()
        if request is None:
            raise NotFoundError("Booking not found")
        return request

    async def require_technician(self, tech_id: int) -> Technician:
        stmt = select(Technician).where(Technician.tech_id == tech_id)
        result = await self.db.execute(stmt)
        technician = result.scalar_one_or_none()
        if technician is None:
            raise NotFoundError("Technician not found")
        return technician

    async def require_service_type(self, service_type_id: int) -> ServiceType:
        stmt = select(ServiceType).where(ServiceType.service_type_id == service_type_id)
        result = await self.db.execute(stmt)
        service_type = result.scalar_one_or_none()
        if service_type is None:
            raise NotFoundError("Service type not found")
        return service_type
