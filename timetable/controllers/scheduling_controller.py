"""HTTP controller layer for schedule-scoped availability, solving and preferences."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, ValidationInfo, field_validator

from timetable.controllers.dependencies import (
    get_availability_service,
    get_preference_service,
    get_solver_service,
    require_caller,
    to_http_exception,
)
from timetable.controllers.event_controller import EventResponse
from timetable.domain.models import CallerScope, DayOfWeek, ResourceType, time_to_minutes
from timetable.services.availability_service import AvailabilityService
from timetable.services.errors import SchedulingError
from timetable.services.preference_service import PreferenceService
from timetable.services.solver_service import SolverService
from timetable.utils.config import get_settings
from timetable.utils.logger import get_logger


logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/schedules", tags=["scheduling"])


class PersonnelResponse(BaseModel):
    personnel_id: int = Field(gt=0)
    name: str
    roles: list[str]


class RoomResponse(BaseModel):
    room_id: int = Field(gt=0)
    name: str
    capacity: int = Field(ge=0)
    room_type: str


class AvailabilityResponse(BaseModel):
    personnel: list[PersonnelResponse]
    rooms: list[RoomResponse]


class SolverRequest(BaseModel):
    """Timeslot to fill; validated before entering service layer."""

    day_of_week: DayOfWeek
    start_time: str = Field(pattern=settings.time_format_regex)
    end_time: str = Field(pattern=settings.time_format_regex)

    @field_validator("end_time")
    @classmethod
    def validate_window_order(cls, value: str, info: ValidationInfo) -> str:
        start_time = info.data.get("start_time")
        if start_time is not None and time_to_minutes(start_time) >= time_to_minutes(value):
            raise ValueError("start_time must be earlier than end_time")
        return value


class SolverResponse(BaseModel):
    events_considered: int = Field(ge=0)
    events_filled: int = Field(ge=0)
    historical_factors_considered: int = Field(ge=0)
    unfilled_event_ids: list[int]
    events: list[EventResponse]


class PreferencesRequest(BaseModel):
    resource_id: int = Field(gt=0)
    resource_type: ResourceType
    timeslot_ids: list[str]

    @field_validator("timeslot_ids")
    @classmethod
    def validate_unique_timeslots(cls, value: list[str]) -> list[str]:
        stripped = [item.strip() for item in value]
        if len(set(stripped)) != len(stripped):
            raise ValueError("timeslot_ids must not contain duplicates")
        return stripped


class PreferenceItem(BaseModel):
    timeslot_id: str
    rank: int = Field(ge=1)


class PreferencesResponse(BaseModel):
    resource_id: int
    resource_type: ResourceType
    schedule_instance_id: int
    preferences: list[PreferenceItem]


class SavePreferencesResponse(BaseModel):
    saved: bool
    timeslot_ids: list[str]


class ClearPreferencesResponse(BaseModel):
    removed: int = Field(ge=0)


class ConflictResponse(BaseModel):
    resource_type: ResourceType
    resource_id: int
    first_event_id: int
    second_event_id: int
    day_of_week: DayOfWeek


def _unexpected(action: str, schedule_instance_id: int) -> HTTPException:
    logger.exception(
        "Unexpected %s failure | schedule_instance_id=%s",
        action,
        schedule_instance_id,
    )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


@router.get(
    "/{schedule_instance_id}/availability",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_200_OK,
)
async def get_availability(
    schedule_instance_id: int,
    day_of_week: DayOfWeek,
    start_time: str = Query(pattern=settings.time_format_regex),
    end_time: str = Query(pattern=settings.time_format_regex),
    caller: CallerScope = Depends(require_caller),
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    """Resources of the schedule's college that are free for the whole window."""
    try:
        available = service.available_for_schedule(
            schedule_instance_id,
            day_of_week,
            start_time,
            end_time,
            caller=caller,
        )
        return AvailabilityResponse(
            personnel=[
                PersonnelResponse(
                    personnel_id=person.personnel_id,
                    name=person.name,
                    roles=list(person.roles),
                )
                for person in available.personnel
            ],
            rooms=[
                RoomResponse(
                    room_id=room.room_id,
                    name=room.name,
                    capacity=room.capacity,
                    room_type=room.room_type,
                )
                for room in available.rooms
            ],
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover
        raise _unexpected("load availability", schedule_instance_id) from exc


@router.post(
    "/{schedule_instance_id}/simple-solver",
    response_model=SolverResponse,
    status_code=status.HTTP_200_OK,
)
async def run_simple_solver(
    schedule_instance_id: int,
    payload: SolverRequest,
    caller: CallerScope = Depends(require_caller),
    service: SolverService = Depends(get_solver_service),
) -> SolverResponse:
    """Single greedy pass over the unfilled events of one timeslot."""
    try:
        result = service.run_solver(
            schedule_instance_id,
            payload.day_of_week,
            payload.start_time,
            payload.end_time,
            caller=caller,
        )
        return SolverResponse(
            events_considered=result.events_considered,
            events_filled=result.events_filled,
            historical_factors_considered=result.historical_factors_considered,
            unfilled_event_ids=result.unfilled_event_ids,
            events=[EventResponse.from_event(event) for event in result.events],
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover
        raise _unexpected("run solver", schedule_instance_id) from exc


@router.get(
    "/{schedule_instance_id}/timeslot-preferences",
    response_model=PreferencesResponse,
    status_code=status.HTTP_200_OK,
)
async def get_timeslot_preferences(
    schedule_instance_id: int,
    resource_id: int = Query(gt=0),
    resource_type: ResourceType = Query(),
    caller: CallerScope = Depends(require_caller),
    service: PreferenceService = Depends(get_preference_service),
) -> PreferencesResponse:
    try:
        preferences = service.get_preferences(
            resource_id,
            resource_type,
            schedule_instance_id,
            caller=caller,
        )
        return PreferencesResponse(
            resource_id=resource_id,
            resource_type=resource_type,
            schedule_instance_id=schedule_instance_id,
            preferences=[
                PreferenceItem(timeslot_id=preference.timeslot_id, rank=preference.rank)
                for preference in preferences
            ],
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover
        raise _unexpected("load preferences", schedule_instance_id) from exc


@router.post(
    "/{schedule_instance_id}/timeslot-preferences",
    response_model=SavePreferencesResponse,
    status_code=status.HTTP_200_OK,
)
async def save_timeslot_preferences(
    schedule_instance_id: int,
    payload: PreferencesRequest,
    caller: CallerScope = Depends(require_caller),
    service: PreferenceService = Depends(get_preference_service),
) -> SavePreferencesResponse:
    """Replace the ranked list; an empty list leaves stored preferences untouched."""
    try:
        saved = service.save_preferences(
            payload.resource_id,
            payload.resource_type,
            schedule_instance_id,
            payload.timeslot_ids,
            caller=caller,
        )
        current = service.preferences_for(
            payload.resource_id,
            payload.resource_type,
            schedule_instance_id,
            caller=caller,
        )
        return SavePreferencesResponse(saved=saved, timeslot_ids=current)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover
        raise _unexpected("save preferences", schedule_instance_id) from exc


@router.delete(
    "/{schedule_instance_id}/timeslot-preferences",
    response_model=ClearPreferencesResponse,
    status_code=status.HTTP_200_OK,
)
async def clear_timeslot_preferences(
    schedule_instance_id: int,
    resource_id: int = Query(gt=0),
    resource_type: ResourceType = Query(),
    caller: CallerScope = Depends(require_caller),
    service: PreferenceService = Depends(get_preference_service),
) -> ClearPreferencesResponse:
    try:
        removed = service.clear_preferences(
            resource_id,
            resource_type,
            schedule_instance_id,
            caller=caller,
        )
        return ClearPreferencesResponse(removed=removed)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover
        raise _unexpected("clear preferences", schedule_instance_id) from exc


@router.get(
    "/{schedule_instance_id}/events",
    response_model=list[EventResponse],
    status_code=status.HTTP_200_OK,
)
async def list_events_at_timeslot(
    schedule_instance_id: int,
    day_of_week: DayOfWeek,
    start_time: str = Query(pattern=settings.time_format_regex),
    end_time: str = Query(pattern=settings.time_format_regex),
    caller: CallerScope = Depends(require_caller),
    service: AvailabilityService = Depends(get_availability_service),
) -> list[EventResponse]:
    try:
        events = service.list_events_at_timeslot(
            schedule_instance_id,
            day_of_week,
            start_time,
            end_time,
            caller=caller,
        )
        return [EventResponse.from_event(event) for event in events]
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover
        raise _unexpected("list events", schedule_instance_id) from exc


@router.get(
    "/{schedule_instance_id}/conflicts",
    response_model=list[ConflictResponse],
    status_code=status.HTTP_200_OK,
)
async def list_conflicts(
    schedule_instance_id: int,
    caller: CallerScope = Depends(require_caller),
    service: AvailabilityService = Depends(get_availability_service),
) -> list[ConflictResponse]:
    """Double bookings in the schedule; empty unless rows were written directly."""
    try:
        conflicts = service.find_schedule_conflicts(schedule_instance_id, caller=caller)
        return [
            ConflictResponse(
                resource_type=conflict.resource_type,
                resource_id=conflict.resource_id,
                first_event_id=conflict.first_event_id,
                second_event_id=conflict.second_event_id,
                day_of_week=conflict.day,
            )
            for conflict in conflicts
        ]
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover
        raise _unexpected("list conflicts", schedule_instance_id) from exc
