"""
Technician portal operations.
"""
import logging

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from hvac_crm.core.database import utcnow
from hvac_crm.core.errors import NotFoundError
from hvac_crm.models import Technician
from hvac_crm.services.store import store_guard

logger = logging.getLogger(__name__)


class TechnicianService:
    """Availability updates for technicians."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def set_availability(self, tech_id: int, status: str) -> Technician:
        """Set a technician's free-form availability status (available, busy, ...)."""
        status = status.strip().lower().replace(" ", "_").replace("-", "_")
        stmt = (
            update(Technician)
            .where(Technician.tech_id == tech_id)
            .values(status=status, updated_at=utcnow())
            .returning(Technician)
            .execution_options(populate_existing=True)
        )
        async with store_guard("update technician status"):
            result = await self.db.execute(stmt)
            technician = result.scalar_one_or_none()
            if technician is None:
                await self.db.rollback()
                raise NotFoundError("Technician not found")
            await self.db.commit()

        logger.info("Technician %s availability set to %s", tech_id, status)
        return technician
