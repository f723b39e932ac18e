"""Tests for the availability index, event listing and the conflict audit."""

from __future__ import annotations

import pytest

from conftest import add_events, build_campus
from timetable.domain.models import CallerScope, DayOfWeek, ResourceType
from timetable.services.availability_service import AvailabilityService
from timetable.services.errors import ForbiddenError, NotFoundError, SchedulingValidationError


def _service(repository, settings) -> AvailabilityService:
    return AvailabilityService(repository=repository, settings=settings)


def test_everything_is_free_without_events(repository, settings, campus) -> None:
    available = _service(repository, settings).available(
        campus.college_id, DayOfWeek.MONDAY, "09:00", "10:00"
    )
    assert [person.personnel_id for person in available.personnel] == campus.personnel_ids
    assert [room.room_id for room in available.rooms] == campus.room_ids


def test_touching_windows_do_not_conflict(repository, settings, campus) -> None:
    """An event ending at 09:00 leaves its resources free from 09:00."""
    repository.create_scheduled_event(
        campus.schedule_id,
        DayOfWeek.MONDAY,
        "08:00",
        "09:00",
        campus.template_ids[0],
        room_id=campus.room_ids[0],
        personnel_ids=[campus.personnel_ids[0]],
    )

    available = _service(repository, settings).available(
        campus.college_id, "MONDAY", "09:00", "10:00"
    )

    assert available.contains(ResourceType.ROOM, campus.room_ids[0])
    assert available.contains(ResourceType.PERSONNEL, campus.personnel_ids[0])


def test_overlapping_event_makes_resources_busy(repository, settings, campus) -> None:
    repository.create_scheduled_event(
        campus.schedule_id,
        DayOfWeek.MONDAY,
        "09:30",
        "11:00",
        campus.template_ids[0],
        room_id=campus.room_ids[0],
        personnel_ids=[campus.personnel_ids[1]],
    )

    available = _service(repository, settings).available(
        campus.college_id, DayOfWeek.MONDAY, "09:00", "10:00"
    )

    assert [room.room_id for room in available.rooms] == [campus.room_ids[1]]
    assert [person.personnel_id for person in available.personnel] == [campus.personnel_ids[0]]


def test_other_day_does_not_conflict(repository, settings, campus) -> None:
    repository.create_scheduled_event(
        campus.schedule_id,
        DayOfWeek.TUESDAY,
        "09:00",
        "10:00",
        campus.template_ids[0],
        room_id=campus.room_ids[0],
    )

    available = _service(repository, settings).available(
        campus.college_id, DayOfWeek.MONDAY, "09:00", "10:00"
    )

    assert len(available.rooms) == 2


def test_busy_across_schedule_instances_of_same_college(repository, settings, campus) -> None:
    """Bookings in another schedule of the same college still block."""
    other_schedule = repository.create_schedule_instance(
        campus.college_id, "Evening Term", "2026-09-01", "2026-12-18"
    )
    repository.create_scheduled_event(
        other_schedule,
        DayOfWeek.MONDAY,
        "09:00",
        "10:00",
        campus.template_ids[0],
        room_id=campus.room_ids[1],
    )

    available = _service(repository, settings).available_for_schedule(
        campus.schedule_id, DayOfWeek.MONDAY, "09:00", "10:00"
    )

    assert [room.room_id for room in available.rooms] == [campus.room_ids[0]]


def test_other_college_resources_are_never_offered(repository, settings, campus) -> None:
    other = build_campus(repository, code="ART", personnel=1, rooms=1)

    available = _service(repository, settings).available(
        campus.college_id, DayOfWeek.MONDAY, "09:00", "10:00"
    )

    assert other.room_ids[0] not in [room.room_id for room in available.rooms]
    assert other.personnel_ids[0] not in [person.personnel_id for person in available.personnel]


def test_non_assignable_roles_are_excluded(repository, settings, campus) -> None:
    coordinator = repository.create_personnel(campus.college_id, "Coordinator", ("COORDINATOR",))
    assistant = repository.create_personnel(campus.college_id, "Assistant", ("assistant",))

    available = _service(repository, settings).available(
        campus.college_id, DayOfWeek.MONDAY, "09:00", "10:00"
    )

    ids = [person.personnel_id for person in available.personnel]
    assert coordinator not in ids
    assert assistant in ids


def test_unknown_college_and_schedule(repository, settings) -> None:
    service = _service(repository, settings)
    with pytest.raises(NotFoundError):
        service.available(999, DayOfWeek.MONDAY, "09:00", "10:00")
    with pytest.raises(NotFoundError):
        service.available_for_schedule(999, DayOfWeek.MONDAY, "09:00", "10:00")


def test_invalid_window_is_rejected(repository, settings, campus) -> None:
    with pytest.raises(SchedulingValidationError):
        _service(repository, settings).available(
            campus.college_id, DayOfWeek.MONDAY, "10:00", "09:00"
        )


def test_scoped_caller_cannot_read_other_college(repository, settings, campus) -> None:
    other = build_campus(repository, code="ART")
    caller = CallerScope(college_id=other.college_id)
    with pytest.raises(ForbiddenError):
        _service(repository, settings).available_for_schedule(
            campus.schedule_id, DayOfWeek.MONDAY, "09:00", "10:00", caller=caller
        )


def test_list_events_at_timeslot_matches_exact_window(repository, settings, campus) -> None:
    event_ids = add_events(repository, campus, 2)
    add_events(repository, campus, 1, start_time="09:00", end_time="11:00")

    events = _service(repository, settings).list_events_at_timeslot(
        campus.schedule_id, DayOfWeek.MONDAY, "09:00", "10:00"
    )

    assert [event.event_id for event in events] == event_ids


def test_find_conflicts_reports_direct_double_booking(repository, settings, campus) -> None:
    first = repository.create_scheduled_event(
        campus.schedule_id,
        DayOfWeek.MONDAY,
        "09:00",
        "10:00",
        campus.template_ids[0],
        room_id=campus.room_ids[0],
        personnel_ids=[campus.personnel_ids[0]],
    )
    second = repository.create_scheduled_event(
        campus.schedule_id,
        DayOfWeek.MONDAY,
        "09:30",
        "10:30",
        campus.template_ids[0],
        room_id=campus.room_ids[0],
        personnel_ids=[campus.personnel_ids[0]],
    )
    repository.create_scheduled_event(
        campus.schedule_id,
        DayOfWeek.MONDAY,
        "10:30",
        "11:30",
        campus.template_ids[0],
        room_id=campus.room_ids[0],
    )

    conflicts = _service(repository, settings).find_schedule_conflicts(campus.schedule_id)

    pairs = [(item.resource_type, item.first_event_id, item.second_event_id) for item in conflicts]
    assert pairs == [
        (ResourceType.ROOM, first, second),
        (ResourceType.PERSONNEL, first, second),
    ]
