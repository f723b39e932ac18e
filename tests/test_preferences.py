"""Tests for ranked timeslot preferences and replace-all saves.

Covers rank assignment, group replacement, rollback and scope checks.
"""

from __future__ import annotations

import pytest

from conftest import build_campus
from timetable.domain.models import CallerScope, ResourceType
from timetable.repository.data_repository import SchedulingTransaction
from timetable.services.errors import ForbiddenError, NotFoundError, SchedulingValidationError
from timetable.services.preference_service import PreferenceService


def _service(repository, settings) -> PreferenceService:
    return PreferenceService(repository=repository, settings=settings)


def test_save_assigns_contiguous_ranks_in_order(repository, settings, campus) -> None:
    service = _service(repository, settings)
    person = campus.personnel_ids[0]

    saved = service.save_preferences(
        person,
        ResourceType.PERSONNEL,
        campus.schedule_id,
        ["FRIDAY-13:00", "monday-09:00", "WEDNESDAY-10:00"],
    )

    assert saved is True
    preferences = service.get_preferences(person, "PERSONNEL", campus.schedule_id)
    assert [(item.rank, item.timeslot_id) for item in preferences] == [
        (1, "FRIDAY-13:00"),
        (2, "MONDAY-09:00"),
        (3, "WEDNESDAY-10:00"),
    ]


def test_save_replaces_previous_group(repository, settings, campus) -> None:
    service = _service(repository, settings)
    room = campus.room_ids[0]
    service.save_preferences(
        room, "ROOM", campus.schedule_id, ["MONDAY-09:00", "TUESDAY-09:00", "THURSDAY-09:00"]
    )

    service.save_preferences(room, "ROOM", campus.schedule_id, ["TUESDAY-09:00"])

    assert service.preferences_for(room, "ROOM", campus.schedule_id) == ["TUESDAY-09:00"]


def test_groups_are_independent(repository, settings, campus) -> None:
    service = _service(repository, settings)
    service.save_preferences(campus.room_ids[0], "ROOM", campus.schedule_id, ["MONDAY-09:00"])
    service.save_preferences(campus.room_ids[1], "ROOM", campus.schedule_id, ["MONDAY-10:00"])

    assert service.preferences_for(campus.room_ids[0], "ROOM", campus.schedule_id) == [
        "MONDAY-09:00"
    ]
    assert service.preferences_for(campus.room_ids[1], "ROOM", campus.schedule_id) == [
        "MONDAY-10:00"
    ]


def test_empty_list_is_a_no_op(repository, settings, campus) -> None:
    service = _service(repository, settings)
    person = campus.personnel_ids[0]
    service.save_preferences(person, "PERSONNEL", campus.schedule_id, ["MONDAY-09:00"])

    assert service.save_preferences(person, "PERSONNEL", campus.schedule_id, []) is False
    assert service.preferences_for(person, "PERSONNEL", campus.schedule_id) == ["MONDAY-09:00"]


def test_empty_list_still_checks_schedule_and_resource(repository, settings, campus) -> None:
    """An empty list reports a missing schedule or resource instead of returning False."""
    service = _service(repository, settings)
    with pytest.raises(NotFoundError):
        service.save_preferences(campus.room_ids[0], "ROOM", 999, [])
    with pytest.raises(NotFoundError):
        service.save_preferences(999, "ROOM", campus.schedule_id, [])


def test_empty_list_still_checks_caller_scope(repository, settings, campus) -> None:
    """An empty list from another college's caller is forbidden, not ignored."""
    other = build_campus(repository, code="ART")
    caller = CallerScope(college_id=other.college_id)
    with pytest.raises(ForbiddenError):
        _service(repository, settings).save_preferences(
            campus.room_ids[0], "ROOM", campus.schedule_id, [], caller=caller
        )


def test_clear_removes_group(repository, settings, campus) -> None:
    service = _service(repository, settings)
    person = campus.personnel_ids[0]
    service.save_preferences(person, "PERSONNEL", campus.schedule_id, ["MONDAY-09:00", "MONDAY-10:00"])

    assert service.clear_preferences(person, "PERSONNEL", campus.schedule_id) == 2
    assert service.preferences_for(person, "PERSONNEL", campus.schedule_id) == []
    assert service.clear_preferences(person, "PERSONNEL", campus.schedule_id) == 0


def test_failed_insert_keeps_old_group(repository, settings, campus, monkeypatch) -> None:
    service = _service(repository, settings)
    person = campus.personnel_ids[0]
    service.save_preferences(person, "PERSONNEL", campus.schedule_id, ["MONDAY-09:00", "MONDAY-10:00"])

    def failing_insert(self, *args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(SchedulingTransaction, "insert_preferences", failing_insert)
    with pytest.raises(RuntimeError):
        service.save_preferences(person, "PERSONNEL", campus.schedule_id, ["FRIDAY-09:00"])
    monkeypatch.undo()

    assert service.preferences_for(person, "PERSONNEL", campus.schedule_id) == [
        "MONDAY-09:00",
        "MONDAY-10:00",
    ]


@pytest.mark.parametrize(
    "timeslot_ids",
    [
        ["MONDAY-09:00", "MONDAY-09:00"],
        ["MONDAY-09:00", "monday-09:00"],
        ["MONDAY 09:00"],
        ["SOMEDAY-09:00"],
    ],
)
def test_invalid_lists_are_rejected_before_writing(
    repository, settings, campus, timeslot_ids
) -> None:
    service = _service(repository, settings)
    person = campus.personnel_ids[0]
    service.save_preferences(person, "PERSONNEL", campus.schedule_id, ["TUESDAY-09:00"])

    with pytest.raises(SchedulingValidationError):
        service.save_preferences(person, "PERSONNEL", campus.schedule_id, timeslot_ids)

    assert service.preferences_for(person, "PERSONNEL", campus.schedule_id) == ["TUESDAY-09:00"]


def test_unknown_resource_type_is_rejected(repository, settings, campus) -> None:
    with pytest.raises(SchedulingValidationError):
        _service(repository, settings).save_preferences(
            campus.room_ids[0], "PROJECTOR", campus.schedule_id, ["MONDAY-09:00"]
        )


def test_unknown_schedule_or_resource(repository, settings, campus) -> None:
    service = _service(repository, settings)
    with pytest.raises(NotFoundError):
        service.save_preferences(campus.room_ids[0], "ROOM", 999, ["MONDAY-09:00"])
    with pytest.raises(NotFoundError):
        service.save_preferences(999, "ROOM", campus.schedule_id, ["MONDAY-09:00"])


def test_resource_from_other_college_is_forbidden(repository, settings, campus) -> None:
    other = build_campus(repository, code="ART")
    with pytest.raises(ForbiddenError):
        _service(repository, settings).save_preferences(
            other.room_ids[0], "ROOM", campus.schedule_id, ["MONDAY-09:00"]
        )


def test_scoped_caller_cannot_write_other_college(repository, settings, campus) -> None:
    other = build_campus(repository, code="ART")
    caller = CallerScope(college_id=other.college_id)
    service = _service(repository, settings)

    with pytest.raises(ForbiddenError):
        service.save_preferences(
            campus.room_ids[0], "ROOM", campus.schedule_id, ["MONDAY-09:00"], caller=caller
        )
    with pytest.raises(ForbiddenError):
        service.get_preferences(campus.room_ids[0], "ROOM", campus.schedule_id, caller=caller)
    assert repository.count_rows("TimeslotPreferences") == 0
