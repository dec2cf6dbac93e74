"""
Booking intake: turns a public booking form submission into a pending request.
"""
import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hvac_crm.core.database import utcnow
from hvac_crm.core.metrics import record_booking_created
from hvac_crm.models import Customer, RequestStatus, ServiceRequest, ServiceType
from hvac_crm.schemas.bookings import BookingCreate
from hvac_crm.services.store import RequestStore, store_guard

logger = logging.getLogger(__name__)


class BookingIntakeService:
    """
    Creates customers and service requests from booking submissions.

    Every booking inserts its own customer row; existing customers are never
    matched or merged.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = RequestStore(db)

    async def create_booking(self, booking: BookingCreate) -> ServiceRequest:
        async with store_guard("create booking"):
            if booking.service_type_id is not None:
                await self.store.require_service_type(booking.service_type_id)

            customer = Customer(
                name=booking.name,
                phone=booking.phone,
                email=str(booking.email) if booking.email else None,
                address=booking.address,
                city=booking.city,
                state=booking.state.upper() if booking.state else None,
                zip=booking.zip,
            )
            self.db.add(customer)
            await self.db.flush()

            now = utcnow()
            request = ServiceRequest(
                customer_id=customer.customer_id,
                service_type_id=booking.service_type_id,
                status=RequestStatus.PENDING,
                priority=booking.priority,
                preferred_date=booking.preferred_date,
                preferred_time=booking.preferred_time,
                issue_description=booking.issue_description,
                notes=booking.notes,
                version=1,
                created_at=now,
                updated_at=now,
            )
            self.db.add(request)
            await self.db.commit()

        record_booking_created()
        logger.info(
            "Booking %s created for customer %s (preferred %s)",
            request.request_id,
            customer.customer_id,
            booking.preferred_date.isoformat(),
        )
        return request

    async def get_booking(self, request_id: int) -> ServiceRequest:
        """Joined view of one request, for confirmation pages."""
        async with store_guard("retrieve booking"):
            return await self.store.get_joined_request(request_id)

    async def list_service_types(self) -> List[ServiceType]:
        stmt = select(ServiceType).order_by(ServiceType.service_name)
        async with store_guard("retrieve service types"):
            result = await self.db.execute(stmt)
            return list(result.scalars().all())
