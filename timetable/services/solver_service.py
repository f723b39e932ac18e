"""Single-pass greedy allocation of rooms and personnel for one timeslot."""

from __future__ import annotations

from typing import Optional, Sequence

from timetable.domain.models import (
    CallerScope,
    DayOfWeek,
    Personnel,
    ResourceType,
    Room,
    ScheduledEvent,
    SolverResult,
    TimeslotId,
)
from timetable.repository.data_repository import DataRepository
from timetable.services.assignment_service import assign_in_transaction
from timetable.services.availability_service import compute_available, parse_timeslot
from timetable.services.errors import ConflictError, NotFoundError, ensure_scope
from timetable.services.history_service import aggregate_history
from timetable.services.scoring_service import rank_candidates
from timetable.utils.config import Settings, get_settings
from timetable.utils.logger import get_logger


logger = get_logger(__name__)


def choose_room(
    remaining_rooms: Sequence[Room],
    room_preferences: dict[int, list[str]],
    timeslot_id: TimeslotId,
) -> Room | None:
    """First room that ranked this timeslot, else the first room in pool order."""
    if not remaining_rooms:
        return None
    target = str(timeslot_id)
    for room in remaining_rooms:
        if target in room_preferences.get(room.room_id, ()):
            return room
    return remaining_rooms[0]


class SolverService:
    """Fills unfilled events at one timeslot without backtracking.

    Rooms and personnel come from a pool owned by a single invocation; a
    resource taken for one event is removed so later events cannot reuse it.
    Events that already hold a room and at least one person are left alone.
    """

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def run_solver(
        self,
        schedule_instance_id: int,
        day: str | DayOfWeek,
        start_time: str,
        end_time: str,
        caller: CallerScope = CallerScope(),
    ) -> SolverResult:
        timeslot = parse_timeslot(day, start_time, end_time)
        timeslot_id = timeslot.timeslot_id
        roles = self._settings.assignable_personnel_roles

        with self._repository.transaction() as tx:
            schedule = tx.get_schedule_instance(schedule_instance_id)
            if schedule is None:
                raise NotFoundError(f"Schedule instance {schedule_instance_id} was not found")
            ensure_scope(caller, schedule.college_id)

            unfilled = [
                event
                for event in tx.list_events_at_timeslot(
                    schedule_instance_id,
                    timeslot.day,
                    timeslot.start_time,
                    timeslot.end_time,
                )
                if not event.is_filled
            ]
            if not unfilled:
                logger.info(
                    "Solver found nothing to fill | schedule_instance_id=%s | timeslot=%s",
                    schedule_instance_id,
                    timeslot_id,
                )
                return SolverResult(
                    events_considered=0,
                    events_filled=0,
                    historical_factors_considered=0,
                    events=[],
                    unfilled_event_ids=[],
                )

            pool = compute_available(tx, schedule.college_id, timeslot, assignable_roles=roles)
            remaining_rooms: list[Room] = list(pool.rooms)
            remaining_personnel: list[Personnel] = list(pool.personnel)
            room_preferences = tx.list_preferences_by_resource(
                schedule_instance_id, ResourceType.ROOM
            )
            personnel_preferences = tx.list_preferences_by_resource(
                schedule_instance_id, ResourceType.PERSONNEL
            )
            history = aggregate_history(
                tx.list_assignment_history(college_id=schedule.college_id)
            )

            updated_events: list[ScheduledEvent] = []
            for event in unfilled:
                room = (
                    choose_room(remaining_rooms, room_preferences, timeslot_id)
                    if event.room_id is None
                    else None
                )
                if room is not None:
                    remaining_rooms.remove(room)

                person = None
                if not event.personnel_ids and remaining_personnel:
                    ranked = rank_candidates(
                        remaining_personnel,
                        event.course_id,
                        timeslot_id,
                        history,
                        personnel_preferences,
                    )
                    person = ranked[0].personnel
                    remaining_personnel.remove(person)

                current = event
                try:
                    with tx.savepoint():
                        if room is not None:
                            current = assign_in_transaction(
                                tx,
                                current,
                                schedule.college_id,
                                ResourceType.ROOM,
                                room.room_id,
                                assignable_roles=roles,
                            )
                        if person is not None:
                            current = assign_in_transaction(
                                tx,
                                current,
                                schedule.college_id,
                                ResourceType.PERSONNEL,
                                person.personnel_id,
                                assignable_roles=roles,
                            )
                except ConflictError as exc:
                    logger.warning(
                        "Solver skipped event after conflict | event_id=%s | detail=%s",
                        event.event_id,
                        exc,
                    )
                    current = event
                updated_events.append(current)

        unfilled_ids = [event.event_id for event in updated_events if not event.is_filled]
        result = SolverResult(
            events_considered=len(unfilled),
            events_filled=len(updated_events) - len(unfilled_ids),
            historical_factors_considered=len(history),
            events=updated_events,
            unfilled_event_ids=unfilled_ids,
        )
        logger.info(
            (
                "Solver completed | schedule_instance_id=%s | timeslot=%s | considered=%s | "
                "filled=%s | still_unfilled=%s | historical_factors=%s"
            ),
            schedule_instance_id,
            timeslot_id,
            result.events_considered,
            result.events_filled,
            len(unfilled_ids),
            result.historical_factors_considered,
        )
        return result
