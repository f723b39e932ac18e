"""Ranked timeslot preferences with replace-all write semantics."""

from __future__ import annotations

from typing import Optional, Sequence

from timetable.domain.constraints import validate_ordered_timeslot_ids
from timetable.domain.models import (
    CallerScope,
    ResourceType,
    ScheduleInstance,
    TimeslotPreference,
)
from timetable.repository.data_repository import DataRepository, SchedulingTransaction
from timetable.services.assignment_service import (
    ensure_resource_in_college,
    resolve_resource_type,
)
from timetable.services.errors import NotFoundError, SchedulingValidationError, ensure_scope
from timetable.utils.config import Settings, get_settings
from timetable.utils.logger import get_logger


logger = get_logger(__name__)


def _load_scoped_schedule(
    tx: SchedulingTransaction,
    schedule_instance_id: int,
    caller: CallerScope,
) -> ScheduleInstance:
    schedule = tx.get_schedule_instance(schedule_instance_id)
    if schedule is None:
        raise NotFoundError(f"Schedule instance {schedule_instance_id} was not found")
    ensure_scope(caller, schedule.college_id)
    return schedule


class PreferenceService:
    """Reads and atomically replaces one resource's ranked preference group."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def get_preferences(
        self,
        resource_id: int,
        resource_type: str | ResourceType,
        schedule_instance_id: int,
        caller: CallerScope = CallerScope(),
    ) -> list[TimeslotPreference]:
        resolved_type = resolve_resource_type(resource_type)
        with self._repository.snapshot() as tx:
            _load_scoped_schedule(tx, schedule_instance_id, caller)
            return tx.list_preferences(resource_id, resolved_type, schedule_instance_id)

    def preferences_for(
        self,
        resource_id: int,
        resource_type: str | ResourceType,
        schedule_instance_id: int,
        caller: CallerScope = CallerScope(),
    ) -> list[str]:
        """Timeslot ids ordered by ascending rank."""
        return [
            preference.timeslot_id
            for preference in self.get_preferences(
                resource_id,
                resource_type,
                schedule_instance_id,
                caller,
            )
        ]

    def save_preferences(
        self,
        resource_id: int,
        resource_type: str | ResourceType,
        schedule_instance_id: int,
        ordered_timeslot_ids: Sequence[str],
        caller: CallerScope = CallerScope(),
    ) -> bool:
        """Replace the whole group with ranks ``1..N`` in the given order.

        An empty list is a no-op and returns ``False``; use
        :meth:`clear_preferences` to delete a group. Delete and insert run in
        one transaction, so readers observe either the old or the new group.
        """
        resolved_type = resolve_resource_type(resource_type)
        try:
            canonical_ids = validate_ordered_timeslot_ids(ordered_timeslot_ids)
        except ValueError as exc:
            raise SchedulingValidationError(str(exc)) from exc

        with self._repository.transaction() as tx:
            schedule = _load_scoped_schedule(tx, schedule_instance_id, caller)
            ensure_resource_in_college(tx, resolved_type, resource_id, schedule.college_id)
            if not canonical_ids:
                logger.info(
                    "Empty preference list ignored | resource_id=%s | resource_type=%s",
                    resource_id,
                    resolved_type.value,
                )
                return False
            removed = tx.delete_preferences(resource_id, resolved_type, schedule_instance_id)
            tx.insert_preferences(resource_id, resolved_type, schedule_instance_id, canonical_ids)

        logger.info(
            "Preferences replaced | resource_id=%s | resource_type=%s | removed=%s | saved=%s",
            resource_id,
            resolved_type.value,
            removed,
            len(canonical_ids),
        )
        return True

    def clear_preferences(
        self,
        resource_id: int,
        resource_type: str | ResourceType,
        schedule_instance_id: int,
        caller: CallerScope = CallerScope(),
    ) -> int:
        resolved_type = resolve_resource_type(resource_type)
        with self._repository.transaction() as tx:
            _load_scoped_schedule(tx, schedule_instance_id, caller)
            removed = tx.delete_preferences(resource_id, resolved_type, schedule_instance_id)
        logger.info(
            "Preferences cleared | resource_id=%s | resource_type=%s | removed=%s",
            resource_id,
            resolved_type.value,
            removed,
        )
        return removed
