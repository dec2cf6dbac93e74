"""
Assignment engine: status changes, technician assignment and detail edits.

Every mutation is a single ``UPDATE ... WHERE ... RETURNING`` against one
service request row. It always bumps ``updated_at`` and ``version``. When the
caller passes ``expected_version`` the WHERE clause also pins the version, so
a concurrent writer makes the update miss instead of being overwritten.

Transition legality is permissive by default: any status can be set and an
assignment always forces ``scheduled``. With ``enforce_transitions`` on, the
guards from ``ALLOWED_TRANSITIONS`` are added to the same WHERE clause.
"""
from __future__ import annotations

import logging
from datetime import date, time
from typing import Any, Callable, Dict, Iterable, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from hvac_crm.core.config import settings
from hvac_crm.core.database import utcnow
from hvac_crm.core.errors import ConflictError, InvalidArgumentError, NotFoundError
from hvac_crm.core.metrics import record_assignment, record_status_transition
from hvac_crm.models import RequestStatus, ServiceRequest
from hvac_crm.schemas.bookings import BookingPatch
from hvac_crm.services.store import RequestStore, store_guard

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: Dict[RequestStatus, frozenset] = {
    RequestStatus.PENDING: frozenset({RequestStatus.SCHEDULED, RequestStatus.CANCELLED}),
    RequestStatus.SCHEDULED: frozenset(
        {RequestStatus.PENDING, RequestStatus.IN_PROGRESS, RequestStatus.CANCELLED}
    ),
    RequestStatus.IN_PROGRESS: frozenset(
        {RequestStatus.COMPLETED, RequestStatus.SCHEDULED, RequestStatus.CANCELLED}
    ),
    RequestStatus.COMPLETED: frozenset(),
    RequestStatus.CANCELLED: frozenset(),
}

ASSIGNABLE_FROM = (RequestStatus.PENDING, RequestStatus.SCHEDULED)

# Statuses that need a technician on the job when transitions are enforced.
REQUIRES_TECHNICIAN = (
    RequestStatus.SCHEDULED,
    RequestStatus.IN_PROGRESS,
    RequestStatus.COMPLETED,
)


def sources_for(target: RequestStatus) -> tuple:
    """Statuses from which ``target`` may be reached."""
    return tuple(
        source for source in RequestStatus if target in ALLOWED_TRANSITIONS[source]
    )


def parse_status(value: Any) -> RequestStatus:
    try:
        return RequestStatus(value)
    except ValueError:
        raise InvalidArgumentError(
            "Invalid status. Must be one of: " + ", ".join(RequestStatus.values())
        ) from None


class AssignmentService:
    """State-machine operations over a single service request."""

    def __init__(self, db: AsyncSession, enforce_transitions: Optional[bool] = None):
        self.db = db
        self.store = RequestStore(db)
        self.enforce_transitions = (
            settings.ENFORCE_STATUS_TRANSITIONS
            if enforce_transitions is None
            else enforce_transitions
        )

    async def assign_technician(
        self,
        request_id: int,
        tech_id: int,
        scheduled_date: date,
        scheduled_time: time,
        expected_version: Optional[int] = None,
    ) -> ServiceRequest:
        """Bind a technician and a schedule; status becomes ``scheduled``."""
        async with store_guard("assign tech"):
            await self.store.require_technician(tech_id)

        guards = []
        if self.enforce_transitions:
            guards.append(ServiceRequest.status.in_(ASSIGNABLE_FROM))

        row = await self._apply(
            request_id,
            {
                "assigned_tech_id": tech_id,
                "scheduled_date": scheduled_date,
                "scheduled_time": scheduled_time,
                "status": RequestStatus.SCHEDULED,
            },
            action="assign tech",
            expected_version=expected_version,
            guards=guards,
            rejection=lambda current: (
                f"Cannot assign a technician to a {current.status.value} booking"
            ),
        )
        record_assignment()
        logger.info(
            "Assigned technician %s to booking %s for %s %s",
            tech_id,
            request_id,
            scheduled_date.isoformat(),
            scheduled_time.isoformat(),
        )
        return row

    async def set_status(
        self,
        request_id: int,
        new_status: Any,
        expected_version: Optional[int] = None,
        tech_id: Optional[int] = None,
    ) -> ServiceRequest:
        """
        Move a request to ``new_status`` (one of the five lifecycle values).

        With ``tech_id`` the update only applies while the request is still
        assigned to that technician.
        """
        target = parse_status(new_status)

        guards = []
        if self.enforce_transitions:
            guards.append(ServiceRequest.status.in_(sources_for(target)))
            if target in REQUIRES_TECHNICIAN:
                guards.append(ServiceRequest.assigned_tech_id.is_not(None))

        def rejection(current: ServiceRequest) -> str:
            if current.status not in sources_for(target):
                return f"Cannot move booking from {current.status.value} to {target.value}"
            return f"Cannot mark booking {target.value} without an assigned technician"

        row = await self._apply(
            request_id,
            {"status": target},
            action="update status",
            expected_version=expected_version,
            owner_id=tech_id,
            guards=guards,
            rejection=rejection,
        )
        record_status_transition(target.value)
        logger.info("Booking %s status set to %s", request_id, target.value)
        return row

    async def update_details(self, request_id: int, patch: BookingPatch) -> ServiceRequest:
        """Apply the fields present in ``patch``; absent fields stay unchanged."""
        changes = patch.changes()
        if not changes:
            raise InvalidArgumentError("No fields to update")

        if changes.get("service_type_id") is not None:
            async with store_guard("update booking"):
                await self.store.require_service_type(changes["service_type_id"])

        row = await self._apply(
            request_id,
            changes,
            action="update booking",
            expected_version=patch.expected_version,
        )
        logger.info("Booking %s updated fields=%s", request_id, sorted(changes))
        return row

    async def _apply(
        self,
        request_id: int,
        values: Dict[str, Any],
        *,
        action: str,
        expected_version: Optional[int] = None,
        owner_id: Optional[int] = None,
        guards: Iterable[Any] = (),
        rejection: Optional[Callable[[ServiceRequest], str]] = None,
    ) -> ServiceRequest:
        stmt = (
            update(ServiceRequest)
            .where(ServiceRequest.request_id == request_id, *guards)
            .values(**values, updated_at=utcnow(), version=ServiceRequest.version + 1)
            .returning(ServiceRequest)
            .execution_options(populate_existing=True)
        )
        if expected_version is not None:
            stmt = stmt.where(ServiceRequest.version == expected_version)
        if owner_id is not None:
            stmt = stmt.where(ServiceRequest.assigned_tech_id == owner_id)

        async with store_guard(action):
            result = await self.db.execute(stmt)
            row = result.scalar_one_or_none()
            if row is None:
                await self.db.rollback()
                await self._explain_miss(request_id, expected_version, owner_id, rejection)
            await self.db.commit()
        return row

    async def _explain_miss(
        self,
        request_id: int,
        expected_version: Optional[int],
        owner_id: Optional[int],
        rejection: Optional[Callable[[ServiceRequest], str]],
    ) -> None:
        """Work out why a guarded UPDATE touched no row and raise accordingly."""
        current = await self.store.get_request(request_id)
        if owner_id is not None and (current is None or current.assigned_tech_id != owner_id):
            raise NotFoundError("Job not found for this technician")
        if current is None:
            raise NotFoundError("Booking not found")
        if expected_version is not None and current.version != expected_version:
            raise ConflictError(
                f"Booking was modified by another user (current version {current.version})"
            )
        message = rejection(current) if rejection else "Booking cannot be updated"
        raise InvalidArgumentError(message)
