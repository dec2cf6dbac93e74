"""Tests for technician assignment, status changes and detail edits."""

from datetime import date, time

import pytest

from hvac_crm.core.errors import ConflictError, InvalidArgumentError, NotFoundError
from hvac_crm.models import RequestStatus
from hvac_crm.schemas.bookings import BookingPatch
from hvac_crm.services.assignment import (
    ALLOWED_TRANSITIONS,
    AssignmentService,
    parse_status,
    sources_for,
)
from hvac_crm.services.store import RequestStore


def test_parse_status_lists_allowed_values():
    assert parse_status("in_progress") is RequestStatus.IN_PROGRESS

    with pytest.raises(InvalidArgumentError) as excinfo:
        parse_status("bogus")
    assert excinfo.value.message == (
        "Invalid status. Must be one of: pending, scheduled, in_progress, completed, cancelled"
    )


def test_terminal_statuses_have_no_exits():
    assert ALLOWED_TRANSITIONS[RequestStatus.COMPLETED] == frozenset()
    assert ALLOWED_TRANSITIONS[RequestStatus.CANCELLED] == frozenset()
    assert sources_for(RequestStatus.COMPLETED) == (RequestStatus.IN_PROGRESS,)


@pytest.mark.asyncio
async def test_assign_forces_scheduled_and_bumps_version(db_session, seed):
    tech = await seed.technician()
    booking = await seed.request(status=RequestStatus.PENDING, preferred_date=date(2026, 3, 10))

    updated = await AssignmentService(db_session).assign_technician(
        booking.request_id, tech.tech_id, date(2026, 3, 11), time(10, 0)
    )

    assert updated.status is RequestStatus.SCHEDULED
    assert updated.assigned_tech_id == tech.tech_id
    assert updated.scheduled_date == date(2026, 3, 11)
    assert updated.scheduled_time == time(10, 0)
    assert updated.version == 2
    assert updated.updated_at >= updated.created_at


@pytest.mark.asyncio
async def test_assign_overrides_any_status_when_not_enforced(db_session, seed):
    tech = await seed.technician()
    booking = await seed.request(status=RequestStatus.COMPLETED)

    updated = await AssignmentService(db_session, enforce_transitions=False).assign_technician(
        booking.request_id, tech.tech_id, date(2026, 3, 11), time(9, 30)
    )

    assert updated.status is RequestStatus.SCHEDULED


@pytest.mark.asyncio
async def test_assign_unknown_technician_is_not_found(db_session, seed):
    booking = await seed.request()

    with pytest.raises(NotFoundError) as excinfo:
        await AssignmentService(db_session).assign_technician(
            booking.request_id, 9999, date(2026, 3, 11), time(10, 0)
        )
    assert excinfo.value.message == "Technician not found"

    current = await RequestStore(db_session).require_request(booking.request_id)
    assert current.assigned_tech_id is None
    assert current.version == 1


@pytest.mark.asyncio
async def test_assign_unknown_booking_is_not_found(db_session, seed):
    tech = await seed.technician()

    with pytest.raises(NotFoundError) as excinfo:
        await AssignmentService(db_session).assign_technician(
            4242, tech.tech_id, date(2026, 3, 11), time(10, 0)
        )
    assert excinfo.value.message == "Booking not found"


@pytest.mark.asyncio
async def test_set_status_accepts_any_target_by_default(db_session, seed):
    booking = await seed.request(status=RequestStatus.PENDING)

    updated = await AssignmentService(db_session, enforce_transitions=False).set_status(
        booking.request_id, "completed"
    )

    assert updated.status is RequestStatus.COMPLETED
    assert updated.version == 2


@pytest.mark.asyncio
async def test_invalid_status_leaves_record_unchanged(db_session, seed):
    booking = await seed.request(status=RequestStatus.SCHEDULED)

    with pytest.raises(InvalidArgumentError):
        await AssignmentService(db_session).set_status(booking.request_id, "bogus")

    current = await RequestStore(db_session).require_request(booking.request_id)
    assert current.status is RequestStatus.SCHEDULED
    assert current.version == 1


@pytest.mark.asyncio
async def test_set_status_missing_booking(db_session):
    with pytest.raises(NotFoundError):
        await AssignmentService(db_session).set_status(777, "cancelled")


@pytest.mark.asyncio
async def test_expected_version_detects_concurrent_write(db_session, seed):
    booking = await seed.request(status=RequestStatus.PENDING)
    service = AssignmentService(db_session)

    first = await service.set_status(booking.request_id, "scheduled", expected_version=1)
    assert first.version == 2

    with pytest.raises(ConflictError) as excinfo:
        await service.set_status(booking.request_id, "cancelled", expected_version=1)
    assert "current version 2" in excinfo.value.message

    current = await RequestStore(db_session).require_request(booking.request_id)
    assert current.status is RequestStatus.SCHEDULED
    assert current.version == 2


@pytest.mark.asyncio
async def test_last_write_wins_without_expected_version(db_session, seed):
    booking = await seed.request()
    service = AssignmentService(db_session)

    await service.set_status(booking.request_id, "scheduled")
    final = await service.set_status(booking.request_id, "cancelled")

    assert final.status is RequestStatus.CANCELLED
    assert final.version == 3


@pytest.mark.asyncio
async def test_enforced_transitions_reject_illegal_moves(db_session, seed):
    pending = await seed.request(status=RequestStatus.PENDING)
    service = AssignmentService(db_session, enforce_transitions=True)

    with pytest.raises(InvalidArgumentError) as excinfo:
        await service.set_status(pending.request_id, "completed")
    assert excinfo.value.message == "Cannot move booking from pending to completed"

    current = await RequestStore(db_session).require_request(pending.request_id)
    assert current.status is RequestStatus.PENDING


@pytest.mark.asyncio
async def test_enforced_transitions_require_technician_to_start(db_session, seed):
    unassigned = await seed.request(status=RequestStatus.SCHEDULED)
    service = AssignmentService(db_session, enforce_transitions=True)

    with pytest.raises(InvalidArgumentError) as excinfo:
        await service.set_status(unassigned.request_id, "in_progress")
    assert "without an assigned technician" in excinfo.value.message


@pytest.mark.asyncio
async def test_enforced_transitions_require_technician_to_schedule(db_session, seed):
    pending = await seed.request(status=RequestStatus.PENDING)
    service = AssignmentService(db_session, enforce_transitions=True)

    with pytest.raises(InvalidArgumentError) as excinfo:
        await service.set_status(pending.request_id, "scheduled")
    assert excinfo.value.message == "Cannot mark booking scheduled without an assigned technician"

    current = await RequestStore(db_session).require_request(pending.request_id)
    assert current.status is RequestStatus.PENDING
    assert current.version == 1


@pytest.mark.asyncio
async def test_set_status_for_technician_checks_ownership(db_session, seed):
    owner = await seed.technician(name="Owner")
    other = await seed.technician(name="Other")
    job = await seed.request(status=RequestStatus.SCHEDULED, technician=owner)
    service = AssignmentService(db_session)

    with pytest.raises(NotFoundError) as excinfo:
        await service.set_status(job.request_id, "in_progress", tech_id=other.tech_id)
    assert excinfo.value.message == "Job not found for this technician"

    current = await RequestStore(db_session).require_request(job.request_id)
    assert current.status is RequestStatus.SCHEDULED
    assert current.version == 1

    with pytest.raises(NotFoundError) as excinfo:
        await service.set_status(job.request_id + 100, "in_progress", tech_id=owner.tech_id)
    assert excinfo.value.message == "Job not found for this technician"

    started = await service.set_status(job.request_id, "in_progress", tech_id=owner.tech_id)
    assert started.status is RequestStatus.IN_PROGRESS
    assert started.version == 2


@pytest.mark.asyncio
async def test_enforced_transitions_allow_normal_lifecycle(db_session, seed):
    tech = await seed.technician()
    booking = await seed.request(status=RequestStatus.PENDING)
    service = AssignmentService(db_session, enforce_transitions=True)

    await service.assign_technician(booking.request_id, tech.tech_id, date(2026, 3, 11), time(8, 0))
    await service.set_status(booking.request_id, "in_progress")
    done = await service.set_status(booking.request_id, "completed")

    assert done.status is RequestStatus.COMPLETED
    assert done.version == 4

    with pytest.raises(InvalidArgumentError) as excinfo:
        await service.assign_technician(
            booking.request_id, tech.tech_id, date(2026, 3, 12), time(8, 0)
        )
    assert excinfo.value.message == "Cannot assign a technician to a completed booking"


@pytest.mark.asyncio
async def test_update_details_writes_only_supplied_fields(db_session, seed):
    booking = await seed.request(
        priority=3, scheduled_date=date(2026, 3, 11), notes="Gate code 1234"
    )

    patch = BookingPatch.model_validate({"priority": 7, "notes": None})
    updated = await AssignmentService(db_session).update_details(booking.request_id, patch)

    assert updated.priority == 7
    assert updated.notes is None
    assert updated.scheduled_date == date(2026, 3, 11)
    assert updated.version == 2


@pytest.mark.asyncio
async def test_update_details_rejects_empty_patch(db_session, seed):
    booking = await seed.request()

    with pytest.raises(InvalidArgumentError) as excinfo:
        await AssignmentService(db_session).update_details(
            booking.request_id, BookingPatch(expected_version=1)
        )
    assert excinfo.value.message == "No fields to update"


@pytest.mark.asyncio
async def test_update_details_validates_service_type(db_session, seed):
    booking = await seed.request()

    with pytest.raises(NotFoundError) as excinfo:
        await AssignmentService(db_session).update_details(
            booking.request_id, BookingPatch(service_type_id=404)
        )
    assert excinfo.value.message == "Service type not found"


@pytest.mark.asyncio
async def test_update_details_honours_expected_version(db_session, seed):
    booking = await seed.request()
    service = AssignmentService(db_session)

    await service.update_details(booking.request_id, BookingPatch(priority=2, expected_version=1))
    with pytest.raises(ConflictError):
        await service.update_details(
            booking.request_id, BookingPatch(priority=5, expected_version=1)
        )


def test_booking_patch_rejects_null_priority():
    with pytest.raises(ValueError):
        BookingPatch.model_validate({"priority": None})
