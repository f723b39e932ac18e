"""Interactive add/remove of a single resource on a single event."""

from __future__ import annotations

from typing import Optional

from timetable.domain.models import CallerScope, ResourceType, ScheduledEvent
from timetable.repository.data_repository import DataRepository
from timetable.services.assignment_service import (
    assign_in_transaction,
    load_scoped_event,
    resolve_resource_type,
    unassign_in_transaction,
)
from timetable.utils.config import Settings, get_settings
from timetable.utils.logger import get_logger


logger = get_logger(__name__)


class ManualAllocationService:
    """Each call is one transaction; conflicts are surfaced, never auto-resolved."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def get_event(self, event_id: int, caller: CallerScope = CallerScope()) -> ScheduledEvent:
        with self._repository.snapshot() as tx:
            event, _ = load_scoped_event(tx, event_id, caller)
            return event

    def assign(
        self,
        event_id: int,
        resource_id: int,
        resource_type: str | ResourceType,
        caller: CallerScope = CallerScope(),
    ) -> ScheduledEvent:
        resolved_type = resolve_resource_type(resource_type)
        with self._repository.transaction() as tx:
            event, schedule = load_scoped_event(tx, event_id, caller)
            updated = assign_in_transaction(
                tx,
                event,
                schedule.college_id,
                resolved_type,
                resource_id,
                assignable_roles=self._settings.assignable_personnel_roles,
            )
        logger.info(
            "Manual assign completed | event_id=%s | resource_type=%s | resource_id=%s",
            event_id,
            resolved_type.value,
            resource_id,
        )
        return updated

    def unassign(
        self,
        event_id: int,
        resource_id: int,
        resource_type: str | ResourceType,
        caller: CallerScope = CallerScope(),
    ) -> ScheduledEvent:
        resolved_type = resolve_resource_type(resource_type)
        with self._repository.transaction() as tx:
            event, _ = load_scoped_event(tx, event_id, caller)
            updated = unassign_in_transaction(tx, event, resolved_type, resource_id)
        logger.info(
            "Manual unassign completed | event_id=%s | resource_type=%s | resource_id=%s",
            event_id,
            resolved_type.value,
            resource_id,
        )
        return updated
