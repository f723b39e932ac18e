"""Single write path for attaching and detaching resources on events.

Both the solver and the manual controller commit through these functions so
the availability re-check and idempotence rules live in one place. They must
be called inside ``DataRepository.transaction()``.
"""

from __future__ import annotations

from typing import Iterable

from timetable.domain.constraints import parse_resource_type
from timetable.domain.models import (
    CallerScope,
    ResourceType,
    ScheduledEvent,
    ScheduleInstance,
)
from timetable.repository.data_repository import SchedulingTransaction
from timetable.services.availability_service import compute_available
from timetable.services.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    SchedulingValidationError,
    ensure_scope,
)


def resolve_resource_type(resource_type: str | ResourceType) -> ResourceType:
    try:
        return parse_resource_type(resource_type)
    except ValueError as exc:
        raise SchedulingValidationError(str(exc)) from exc


def load_scoped_event(
    tx: SchedulingTransaction,
    event_id: int,
    caller: CallerScope,
) -> tuple[ScheduledEvent, ScheduleInstance]:
    event = tx.get_event(event_id)
    if event is None:
        raise NotFoundError(f"Scheduled event {event_id} was not found")
    schedule = tx.get_schedule_instance(event.schedule_instance_id)
    if schedule is None:
        raise NotFoundError(f"Schedule instance {event.schedule_instance_id} was not found")
    ensure_scope(caller, schedule.college_id)
    return event, schedule


def ensure_resource_in_college(
    tx: SchedulingTransaction,
    resource_type: ResourceType,
    resource_id: int,
    college_id: int,
) -> None:
    if resource_type is ResourceType.ROOM:
        resource = tx.get_room(resource_id)
    else:
        resource = tx.get_personnel(resource_id)
    if resource is None:
        raise NotFoundError(f"{resource_type.value.title()} {resource_id} was not found")
    if resource.college_id != college_id:
        raise ForbiddenError(
            f"{resource_type.value.title()} {resource_id} does not belong to college {college_id}"
        )


def assign_in_transaction(
    tx: SchedulingTransaction,
    event: ScheduledEvent,
    college_id: int,
    resource_type: ResourceType,
    resource_id: int,
    *,
    assignable_roles: Iterable[str],
) -> ScheduledEvent:
    """Re-check availability against the live view, then write.

    Rooms are exclusive (a new room replaces the old one); personnel are
    additive and deduplicated.
    """
    ensure_resource_in_college(tx, resource_type, resource_id, college_id)
    available = compute_available(
        tx,
        college_id,
        event.timeslot,
        assignable_roles=assignable_roles,
        exclude_event_id=event.event_id,
    )
    if not available.contains(resource_type, resource_id):
        raise ConflictError(
            f"{resource_type.value.title()} {resource_id} is not available on "
            f"{event.day.value} {event.start_time}-{event.end_time}"
        )

    if resource_type is ResourceType.ROOM:
        if event.room_id != resource_id:
            tx.set_event_room(event.event_id, resource_id)
    else:
        tx.add_event_personnel(event.event_id, resource_id)

    refreshed = tx.get_event(event.event_id)
    assert refreshed is not None
    return refreshed


def unassign_in_transaction(
    tx: SchedulingTransaction,
    event: ScheduledEvent,
    resource_type: ResourceType,
    resource_id: int,
) -> ScheduledEvent:
    if resource_type is ResourceType.ROOM:
        if event.room_id != resource_id:
            raise NotFoundError(f"Room {resource_id} is not assigned to event {event.event_id}")
        tx.set_event_room(event.event_id, None)
    elif not tx.remove_event_personnel(event.event_id, resource_id):
        raise NotFoundError(
            f"Personnel {resource_id} is not assigned to event {event.event_id}"
        )

    refreshed = tx.get_event(event.event_id)
    assert refreshed is not None
    return refreshed
