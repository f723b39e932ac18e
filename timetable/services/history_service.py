"""Historical performance aggregation and assignment-history reporting."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from timetable.domain.models import AssignmentHistoryRecord, CallerScope, HistoricalAggregate
from timetable.repository.data_repository import DataRepository
from timetable.services.errors import SchedulingValidationError, ensure_scope
from timetable.utils.config import Settings, get_settings
from timetable.utils.logger import get_logger


logger = get_logger(__name__)

PERFORMANCE_SCORES: dict[str, int] = {
    "EXCELLENT": 5,
    "GOOD": 4,
    "AVERAGE": 3,
}
# Any other label, including a missing one.
DEFAULT_PERFORMANCE_SCORE = 2

UNRATED_LABEL = "UNRATED"


def performance_score(label: str | None) -> int:
    if label is None:
        return DEFAULT_PERFORMANCE_SCORE
    return PERFORMANCE_SCORES.get(label.strip().upper(), DEFAULT_PERFORMANCE_SCORE)


def aggregate_history(
    records: Iterable[AssignmentHistoryRecord],
) -> dict[tuple[int, int], HistoricalAggregate]:
    """Fold records into per (personnel, course) experience and mean score.

    The mean is updated incrementally in arrival order:
    ``avg' = (avg * count + score) / (count + 1)``.
    """
    aggregates: dict[tuple[int, int], HistoricalAggregate] = {}
    for record in records:
        key = (record.personnel_id, record.course_id)
        existing = aggregates.get(key, HistoricalAggregate(count=0, avg_performance=0.0))
        score = performance_score(record.performance)
        aggregates[key] = HistoricalAggregate(
            count=existing.count + 1,
            avg_performance=(existing.avg_performance * existing.count + score)
            / (existing.count + 1),
        )
    return aggregates


@dataclass(frozen=True)
class HistoryFilters:
    college_id: int | None = None
    personnel_id: int | None = None
    course_id: int | None = None
    schedule_instance_id: int | None = None
    start_date: date | None = None
    end_date: date | None = None

    def __post_init__(self) -> None:
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise SchedulingValidationError("start_date must not be after end_date")


@dataclass(frozen=True)
class HistorySummary:
    total_records: int
    unique_personnel: int
    unique_courses: int
    unique_schedules: int
    performance_breakdown: dict[str, int]
    average_performance_score: float
    recent_assignments: int
    top_personnel: list[tuple[int, int]]
    top_courses: list[tuple[int, int]]

    def to_dict(self) -> dict[str, object]:
        return {
            "total_records": self.total_records,
            "unique_personnel": self.unique_personnel,
            "unique_courses": self.unique_courses,
            "unique_schedules": self.unique_schedules,
            "performance_breakdown": dict(self.performance_breakdown),
            "average_performance_score": self.average_performance_score,
            "recent_assignments": self.recent_assignments,
            "top_personnel": [
                {"personnel_id": personnel_id, "count": count}
                for personnel_id, count in self.top_personnel
            ],
            "top_courses": [
                {"course_id": course_id, "count": count} for course_id, count in self.top_courses
            ],
        }


def _empty_summary() -> HistorySummary:
    return HistorySummary(
        total_records=0,
        unique_personnel=0,
        unique_courses=0,
        unique_schedules=0,
        performance_breakdown={},
        average_performance_score=0.0,
        recent_assignments=0,
        top_personnel=[],
        top_courses=[],
    )


def _top_counts(frame: pd.DataFrame, column: str, limit: int) -> list[tuple[int, int]]:
    counts = frame.groupby(column).size().sort_values(ascending=False, kind="stable")
    return [(int(key), int(value)) for key, value in counts.head(limit).items()]


def summarize_records(
    records: list[AssignmentHistoryRecord],
    *,
    recent_window_days: int,
    top_n: int,
    now: datetime | None = None,
) -> HistorySummary:
    if not records:
        return _empty_summary()

    frame = pd.DataFrame(
        {
            "personnel_id": [record.personnel_id for record in records],
            "course_id": [record.course_id for record in records],
            "schedule_instance_id": [record.schedule_instance_id for record in records],
            "performance": [
                record.performance.strip().upper() if record.performance else UNRATED_LABEL
                for record in records
            ],
            "assigned_at": pd.to_datetime(
                [record.assigned_at for record in records],
                utc=True,
                format="ISO8601",
            ),
        }
    )

    labels = list(PERFORMANCE_SCORES)
    frame["score"] = np.select(
        [frame["performance"] == label for label in labels],
        [PERFORMANCE_SCORES[label] for label in labels],
        default=DEFAULT_PERFORMANCE_SCORE,
    )

    reference = pd.Timestamp(now or datetime.now(timezone.utc))
    if reference.tzinfo is None:
        reference = reference.tz_localize("UTC")
    recent_cutoff = reference - timedelta(days=recent_window_days)

    breakdown = frame["performance"].value_counts().sort_index()
    return HistorySummary(
        total_records=int(len(frame)),
        unique_personnel=int(frame["personnel_id"].nunique()),
        unique_courses=int(frame["course_id"].nunique()),
        unique_schedules=int(frame["schedule_instance_id"].dropna().nunique()),
        performance_breakdown={str(label): int(value) for label, value in breakdown.items()},
        average_performance_score=round(float(frame["score"].mean()), 4),
        recent_assignments=int((frame["assigned_at"] > recent_cutoff).sum()),
        top_personnel=_top_counts(frame, "personnel_id", top_n),
        top_courses=_top_counts(frame, "course_id", top_n),
    )


class HistoryService:
    """Scoped access to immutable assignment-history records."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def _scoped_filters(self, filters: HistoryFilters, caller: CallerScope) -> HistoryFilters:
        if caller.is_super_admin:
            return filters
        if filters.college_id is not None:
            ensure_scope(caller, filters.college_id)
        return HistoryFilters(
            college_id=caller.college_id,
            personnel_id=filters.personnel_id,
            course_id=filters.course_id,
            schedule_instance_id=filters.schedule_instance_id,
            start_date=filters.start_date,
            end_date=filters.end_date,
        )

    def list_records(
        self,
        filters: HistoryFilters = HistoryFilters(),
        caller: CallerScope = CallerScope(),
    ) -> list[AssignmentHistoryRecord]:
        """Matching records, newest first."""
        scoped = self._scoped_filters(filters, caller)
        with self._repository.snapshot() as tx:
            return tx.list_assignment_history(
                college_id=scoped.college_id,
                personnel_id=scoped.personnel_id,
                course_id=scoped.course_id,
                schedule_instance_id=scoped.schedule_instance_id,
                assigned_from=scoped.start_date.isoformat() if scoped.start_date else None,
                assigned_to=(
                    # inclusive end date: every timestamp on that day sorts below the next day
                    (scoped.end_date + timedelta(days=1)).isoformat()
                    if scoped.end_date
                    else None
                ),
                newest_first=True,
            )

    def summarize(
        self,
        filters: HistoryFilters = HistoryFilters(),
        caller: CallerScope = CallerScope(),
        now: datetime | None = None,
    ) -> HistorySummary:
        records = self.list_records(filters, caller)
        summary = summarize_records(
            records,
            recent_window_days=self._settings.history_recent_window_days,
            top_n=self._settings.history_top_n,
            now=now,
        )
        logger.info(
            "History summary computed | records=%s | unique_personnel=%s",
            summary.total_records,
            summary.unique_personnel,
        )
        return summary

    def aggregate_for_college(self, college_id: int) -> dict[tuple[int, int], HistoricalAggregate]:
        with self._repository.snapshot() as tx:
            return aggregate_history(tx.list_assignment_history(college_id=college_id))
