"""Tests for assignment history aggregation, listing filters and the summary."""

from __future__ import annotations

from datetime import date, datetime, timezone

import numpy as np
import pytest

from conftest import build_campus
from timetable.domain.models import AssignmentHistoryRecord, CallerScope
from timetable.services.errors import ForbiddenError, SchedulingValidationError
from timetable.services.history_service import (
    HistoryFilters,
    HistoryService,
    aggregate_history,
    performance_score,
    summarize_records,
)


def _record(
    personnel_id: int,
    course_id: int,
    performance,
    assigned_at: str = "2026-01-01T00:00:00+00:00",
) -> AssignmentHistoryRecord:
    return AssignmentHistoryRecord(
        personnel_id=personnel_id,
        course_id=course_id,
        performance=performance,
        assigned_at=assigned_at,
    )


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("EXCELLENT", 5),
        ("GOOD", 4),
        ("AVERAGE", 3),
        ("POOR", 2),
        (None, 2),
        (" good ", 4),
        ("", 2),
    ],
)
def test_performance_score_mapping(label, expected) -> None:
    assert performance_score(label) == expected


def test_incremental_mean_matches_batch_mean() -> None:
    """Running mean agrees with numpy's mean over the same scores."""
    labels = ["EXCELLENT", "GOOD", None, "AVERAGE", "EXCELLENT", "POOR", "GOOD"]
    records = [_record(1, 10, label) for label in labels]
    records += [_record(2, 10, "GOOD"), _record(1, 11, "AVERAGE")]

    aggregates = aggregate_history(records)

    batch = np.mean([performance_score(label) for label in labels])
    assert aggregates[(1, 10)].count == len(labels)
    assert aggregates[(1, 10)].avg_performance == pytest.approx(float(batch))
    assert aggregates[(2, 10)].count == 1
    assert aggregates[(2, 10)].avg_performance == 4.0
    assert aggregates[(1, 11)].avg_performance == 3.0


def test_aggregate_of_nothing_is_empty() -> None:
    assert aggregate_history([]) == {}


def test_summarize_records_counts_and_breakdown() -> None:
    now = datetime(2026, 3, 1, tzinfo=timezone.utc)
    records = [
        _record(1, 10, "EXCELLENT", "2026-02-20T09:00:00+00:00"),
        _record(1, 10, "good", "2026-02-25T09:00:00+00:00"),
        _record(2, 11, None, "2025-11-01T09:00:00+00:00"),
        _record(1, 11, "AVERAGE", "2025-12-01T09:00:00+00:00"),
    ]

    summary = summarize_records(records, recent_window_days=30, top_n=1, now=now)

    assert summary.total_records == 4
    assert summary.unique_personnel == 2
    assert summary.unique_courses == 2
    assert summary.performance_breakdown == {
        "AVERAGE": 1,
        "EXCELLENT": 1,
        "GOOD": 1,
        "UNRATED": 1,
    }
    assert summary.average_performance_score == pytest.approx(np.mean([5, 4, 2, 3]))
    assert summary.recent_assignments == 2
    assert summary.top_personnel == [(1, 3)]
    assert summary.top_courses == [(10, 2)]


def test_summarize_nothing_returns_zeroes() -> None:
    summary = summarize_records([], recent_window_days=30, top_n=3)
    assert summary.total_records == 0
    assert summary.to_dict()["top_personnel"] == []


def test_filters_reject_inverted_date_range() -> None:
    with pytest.raises(SchedulingValidationError):
        HistoryFilters(start_date=date(2026, 2, 1), end_date=date(2026, 1, 1))


def _seed_two_colleges(repository):
    first = build_campus(repository, code="ENG")
    second = build_campus(repository, code="ART")
    repository.create_assignment_history(
        personnel_id=first.personnel_ids[0],
        course_id=first.course_ids[0],
        college_id=first.college_id,
        performance="GOOD",
        assigned_at="2026-01-10T08:00:00+00:00",
    )
    repository.create_assignment_history(
        personnel_id=first.personnel_ids[1],
        course_id=first.course_ids[0],
        college_id=first.college_id,
        performance="EXCELLENT",
        assigned_at="2026-01-31T23:30:00+00:00",
    )
    repository.create_assignment_history(
        personnel_id=second.personnel_ids[0],
        course_id=second.course_ids[0],
        college_id=second.college_id,
        performance="AVERAGE",
        assigned_at="2026-01-15T08:00:00+00:00",
    )
    return first, second


def test_list_records_is_newest_first_with_inclusive_end_date(repository, settings) -> None:
    """Records on the end date are included."""
    first, _ = _seed_two_colleges(repository)
    service = HistoryService(repository=repository, settings=settings)

    records = service.list_records(
        HistoryFilters(college_id=first.college_id, end_date=date(2026, 1, 31))
    )

    assert [record.performance for record in records] == ["EXCELLENT", "GOOD"]


def test_list_records_date_window(repository, settings) -> None:
    _seed_two_colleges(repository)
    service = HistoryService(repository=repository, settings=settings)

    records = service.list_records(
        HistoryFilters(start_date=date(2026, 1, 11), end_date=date(2026, 1, 30))
    )

    assert [record.performance for record in records] == ["AVERAGE"]


def test_scoped_caller_only_sees_own_college(repository, settings) -> None:
    first, second = _seed_two_colleges(repository)
    service = HistoryService(repository=repository, settings=settings)
    caller = CallerScope(college_id=second.college_id)

    records = service.list_records(HistoryFilters(), caller)

    assert {record.college_id for record in records} == {second.college_id}
    with pytest.raises(ForbiddenError):
        service.list_records(HistoryFilters(college_id=first.college_id), caller)


def test_summarize_through_service(repository, settings) -> None:
    first, _ = _seed_two_colleges(repository)
    service = HistoryService(repository=repository, settings=settings)

    summary = service.summarize(
        HistoryFilters(college_id=first.college_id),
        now=datetime(2026, 2, 1, tzinfo=timezone.utc),
    )

    assert summary.total_records == 2
    assert summary.average_performance_score == pytest.approx(4.5)
    assert summary.recent_assignments == 2


def test_aggregate_for_college(repository, settings) -> None:
    first, _ = _seed_two_colleges(repository)
    service = HistoryService(repository=repository, settings=settings)

    aggregates = service.aggregate_for_college(first.college_id)

    assert set(aggregates) == {
        (first.personnel_ids[0], first.course_ids[0]),
        (first.personnel_ids[1], first.course_ids[0]),
    }
