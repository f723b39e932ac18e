"""HTTP controller layer for assignment-history reporting."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from timetable.controllers.dependencies import (
    get_history_service,
    require_caller,
    to_http_exception,
)
from timetable.domain.models import CallerScope
from timetable.services.errors import SchedulingError
from timetable.services.history_service import HistoryFilters, HistoryService
from timetable.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/records", tags=["records"])


class AssignmentHistoryResponse(BaseModel):
    record_id: int | None = None
    personnel_id: int
    course_id: int
    activity_template_id: int | None = None
    schedule_instance_id: int | None = None
    college_id: int | None = None
    performance: str | None = None
    assigned_at: str


class RankedCount(BaseModel):
    count: int = Field(ge=0)


class PersonnelCount(RankedCount):
    personnel_id: int


class CourseCount(RankedCount):
    course_id: int


class HistorySummaryResponse(BaseModel):
    total_records: int = Field(ge=0)
    unique_personnel: int = Field(ge=0)
    unique_courses: int = Field(ge=0)
    unique_schedules: int = Field(ge=0)
    performance_breakdown: dict[str, int]
    average_performance_score: float = Field(ge=0.0, le=5.0)
    recent_assignments: int = Field(ge=0)
    top_personnel: list[PersonnelCount]
    top_courses: list[CourseCount]


def history_filters(
    college_id: Optional[int] = Query(default=None, gt=0),
    personnel_id: Optional[int] = Query(default=None, gt=0),
    course_id: Optional[int] = Query(default=None, gt=0),
    schedule_instance_id: Optional[int] = Query(default=None, gt=0),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> HistoryFilters:
    try:
        return HistoryFilters(
            college_id=college_id,
            personnel_id=personnel_id,
            course_id=course_id,
            schedule_instance_id=schedule_instance_id,
            start_date=start_date,
            end_date=end_date,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc


@router.get(
    "/assignment-history",
    response_model=list[AssignmentHistoryResponse],
    status_code=status.HTTP_200_OK,
)
async def list_assignment_history(
    filters: HistoryFilters = Depends(history_filters),
    caller: CallerScope = Depends(require_caller),
    service: HistoryService = Depends(get_history_service),
) -> list[AssignmentHistoryResponse]:
    """Newest first; scoped callers only ever see their own college."""
    try:
        return [
            AssignmentHistoryResponse(
                record_id=record.record_id,
                personnel_id=record.personnel_id,
                course_id=record.course_id,
                activity_template_id=record.activity_template_id,
                schedule_instance_id=record.schedule_instance_id,
                college_id=record.college_id,
                performance=record.performance,
                assigned_at=record.assigned_at,
            )
            for record in service.list_records(filters, caller)
        ]
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected assignment history failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load assignment history",
        ) from exc


@router.get(
    "/summary",
    response_model=HistorySummaryResponse,
    status_code=status.HTTP_200_OK,
)
async def summarize_assignment_history(
    filters: HistoryFilters = Depends(history_filters),
    caller: CallerScope = Depends(require_caller),
    service: HistoryService = Depends(get_history_service),
) -> HistorySummaryResponse:
    try:
        return HistorySummaryResponse(**service.summarize(filters, caller).to_dict())
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected assignment summary failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to summarize assignment history",
        ) from exc
