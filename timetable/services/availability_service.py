"""Availability index: which rooms and personnel are free in a window."""

from __future__ import annotations

from itertools import combinations
from typing import Iterable, Optional

from timetable.domain.constraints import build_timeslot
from timetable.domain.models import (
    AvailableResources,
    CallerScope,
    DayOfWeek,
    EventConflict,
    Personnel,
    ResourceType,
    ScheduledEvent,
    Timeslot,
)
from timetable.repository.data_repository import DataRepository, SchedulingTransaction
from timetable.services.errors import NotFoundError, SchedulingValidationError, ensure_scope
from timetable.utils.config import Settings, get_settings


def busy_resource_ids(
    events: Iterable[ScheduledEvent],
    timeslot: Timeslot,
    exclude_event_id: int | None = None,
) -> tuple[set[int], set[int]]:
    """Room ids and personnel ids held by events overlapping ``timeslot``."""
    busy_rooms: set[int] = set()
    busy_personnel: set[int] = set()
    for event in events:
        if event.event_id == exclude_event_id:
            continue
        if not timeslot.overlaps(event.day, event.start_time, event.end_time):
            continue
        if event.room_id is not None:
            busy_rooms.add(event.room_id)
        busy_personnel.update(event.personnel_ids)
    return busy_rooms, busy_personnel


def is_assignable(personnel: Personnel, assignable_roles: Iterable[str]) -> bool:
    roles = set(assignable_roles)
    return any(role in roles for role in personnel.roles)


def compute_available(
    tx: SchedulingTransaction,
    college_id: int,
    timeslot: Timeslot,
    *,
    assignable_roles: Iterable[str],
    exclude_event_id: int | None = None,
) -> AvailableResources:
    """Recompute availability from the transaction's current view.

    Never cached: callers inside a multi-step unit must see their own writes.
    """
    busy_rooms, busy_personnel = busy_resource_ids(
        tx.list_college_events_on_day(college_id, timeslot.day),
        timeslot,
        exclude_event_id=exclude_event_id,
    )
    roles = tuple(assignable_roles)
    return AvailableResources(
        personnel=[
            person
            for person in tx.list_college_personnel(college_id)
            if person.personnel_id not in busy_personnel and is_assignable(person, roles)
        ],
        rooms=[
            room
            for room in tx.list_college_rooms(college_id)
            if room.room_id not in busy_rooms
        ],
    )


def find_conflicts(events: Iterable[ScheduledEvent]) -> list[EventConflict]:
    conflicts: list[EventConflict] = []
    for first, second in combinations(sorted(events, key=lambda item: item.event_id), 2):
        if not first.timeslot.overlaps(second.day, second.start_time, second.end_time):
            continue
        if first.room_id is not None and first.room_id == second.room_id:
            conflicts.append(
                EventConflict(
                    resource_type=ResourceType.ROOM,
                    resource_id=first.room_id,
                    first_event_id=first.event_id,
                    second_event_id=second.event_id,
                    day=first.day,
                )
            )
        for personnel_id in sorted(set(first.personnel_ids) & set(second.personnel_ids)):
            conflicts.append(
                EventConflict(
                    resource_type=ResourceType.PERSONNEL,
                    resource_id=personnel_id,
                    first_event_id=first.event_id,
                    second_event_id=second.event_id,
                    day=first.day,
                )
            )
    return conflicts


class AvailabilityService:
    """Read-side access to the availability index."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def available(
        self,
        college_id: int,
        day: str | DayOfWeek,
        start_time: str,
        end_time: str,
    ) -> AvailableResources:
        timeslot = parse_timeslot(day, start_time, end_time)
        with self._repository.snapshot() as tx:
            if tx.get_college(college_id) is None:
                raise NotFoundError(f"College {college_id} was not found")
            return compute_available(
                tx,
                college_id,
                timeslot,
                assignable_roles=self._settings.assignable_personnel_roles,
            )

    def available_for_schedule(
        self,
        schedule_instance_id: int,
        day: str | DayOfWeek,
        start_time: str,
        end_time: str,
        caller: CallerScope = CallerScope(),
    ) -> AvailableResources:
        timeslot = parse_timeslot(day, start_time, end_time)
        with self._repository.snapshot() as tx:
            schedule = tx.get_schedule_instance(schedule_instance_id)
            if schedule is None:
                raise NotFoundError(f"Schedule instance {schedule_instance_id} was not found")
            ensure_scope(caller, schedule.college_id)
            return compute_available(
                tx,
                schedule.college_id,
                timeslot,
                assignable_roles=self._settings.assignable_personnel_roles,
            )

    def list_events_at_timeslot(
        self,
        schedule_instance_id: int,
        day: str | DayOfWeek,
        start_time: str,
        end_time: str,
        caller: CallerScope = CallerScope(),
    ) -> list[ScheduledEvent]:
        timeslot = parse_timeslot(day, start_time, end_time)
        with self._repository.snapshot() as tx:
            schedule = tx.get_schedule_instance(schedule_instance_id)
            if schedule is None:
                raise NotFoundError(f"Schedule instance {schedule_instance_id} was not found")
            ensure_scope(caller, schedule.college_id)
            return tx.list_events_at_timeslot(
                schedule_instance_id,
                timeslot.day,
                timeslot.start_time,
                timeslot.end_time,
            )

    def find_schedule_conflicts(
        self,
        schedule_instance_id: int,
        caller: CallerScope = CallerScope(),
    ) -> list[EventConflict]:
        """Double bookings among the events of one schedule instance."""
        with self._repository.snapshot() as tx:
            schedule = tx.get_schedule_instance(schedule_instance_id)
            if schedule is None:
                raise NotFoundError(f"Schedule instance {schedule_instance_id} was not found")
            ensure_scope(caller, schedule.college_id)
            return find_conflicts(tx.list_schedule_events(schedule_instance_id))


def parse_timeslot(day: str | DayOfWeek, start_time: str, end_time: str) -> Timeslot:
    try:
        return build_timeslot(day, start_time, end_time)
    except ValueError as exc:
        raise SchedulingValidationError(str(exc)) from exc
