"""HTTP controller layer for manual event allocation."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from timetable.controllers.dependencies import (
    get_manual_allocation_service,
    require_caller,
    to_http_exception,
)
from timetable.domain.models import CallerScope, ResourceType, ScheduledEvent
from timetable.services.errors import SchedulingError
from timetable.services.manual_allocation_service import ManualAllocationService
from timetable.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


class EventResponse(BaseModel):
    """Full event state returned after every read or write."""

    event_id: int = Field(gt=0)
    schedule_instance_id: int = Field(gt=0)
    day_of_week: str
    start_time: str
    end_time: str
    activity_template_id: int = Field(gt=0)
    course_id: int = Field(gt=0)
    room_id: int | None = None
    personnel_ids: list[int]
    version: int = Field(ge=0)

    @classmethod
    def from_event(cls, event: ScheduledEvent) -> "EventResponse":
        return cls(**event.to_dict())


class AssignResourceRequest(BaseModel):
    resource_id: int = Field(gt=0)
    resource_type: ResourceType


@router.get("/{event_id}", response_model=EventResponse, status_code=status.HTTP_200_OK)
async def get_event(
    event_id: int,
    caller: CallerScope = Depends(require_caller),
    service: ManualAllocationService = Depends(get_manual_allocation_service),
) -> EventResponse:
    try:
        return EventResponse.from_event(service.get_event(event_id, caller))
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected event lookup failure | event_id=%s", event_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load event",
        ) from exc


@router.post(
    "/{event_id}/resources",
    response_model=EventResponse,
    status_code=status.HTTP_200_OK,
)
async def assign_resource(
    event_id: int,
    payload: AssignResourceRequest,
    caller: CallerScope = Depends(require_caller),
    service: ManualAllocationService = Depends(get_manual_allocation_service),
) -> EventResponse:
    """Attach one room or person; 409 when it is busy at the event's time."""
    try:
        updated = service.assign(
            event_id=event_id,
            resource_id=payload.resource_id,
            resource_type=payload.resource_type,
            caller=caller,
        )
        return EventResponse.from_event(updated)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected assign failure | event_id=%s", event_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to assign resource",
        ) from exc


@router.delete(
    "/{event_id}/resources/{resource_type}/{resource_id}",
    response_model=EventResponse,
    status_code=status.HTTP_200_OK,
)
async def unassign_resource(
    event_id: int,
    resource_type: str,
    resource_id: int,
    caller: CallerScope = Depends(require_caller),
    service: ManualAllocationService = Depends(get_manual_allocation_service),
) -> EventResponse:
    try:
        updated = service.unassign(
            event_id=event_id,
            resource_id=resource_id,
            resource_type=resource_type,
            caller=caller,
        )
        return EventResponse.from_event(updated)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected unassign failure | event_id=%s", event_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to unassign resource",
        ) from exc
