"""Tests for candidate suitability scores and their stable ranking."""

from __future__ import annotations

import pytest

from timetable.domain.models import DayOfWeek, HistoricalAggregate, Personnel, TimeslotId
from timetable.services.scoring_service import rank_candidates, score_candidate


SLOT = TimeslotId(DayOfWeek.MONDAY, "09:00")


def _person(personnel_id: int) -> Personnel:
    return Personnel(personnel_id=personnel_id, college_id=1, name=f"P{personnel_id}")


def test_experience_saturates_and_performance_scales() -> None:
    """min(3 * 0.2, 0.5) + 4.5 * 0.1."""
    history = HistoricalAggregate(count=3, avg_performance=4.5)
    assert score_candidate(history, [], SLOT) == pytest.approx(0.95)


def test_matching_preference_adds_bonus() -> None:
    history = HistoricalAggregate(count=3, avg_performance=4.5)
    assert score_candidate(history, ["MONDAY-09:00"], SLOT) == pytest.approx(1.25)


def test_no_history_scores_only_preference() -> None:
    assert score_candidate(None, [], SLOT) == 0.0
    assert score_candidate(None, ["MONDAY-09:00"], SLOT) == pytest.approx(0.3)
    assert score_candidate(None, ["MONDAY-10:00"], SLOT) == 0.0


def test_score_saturates_at_maximum() -> None:
    history = HistoricalAggregate(count=10, avg_performance=5.0)
    assert score_candidate(history, ["MONDAY-09:00"], SLOT) == pytest.approx(1.3)


def test_single_assignment_is_below_cap() -> None:
    history = HistoricalAggregate(count=1, avg_performance=2.0)
    assert score_candidate(history, [], SLOT) == pytest.approx(0.4)


def test_rank_orders_by_descending_score() -> None:
    candidates = [_person(1), _person(2), _person(3)]
    history = {
        (2, 7): HistoricalAggregate(count=3, avg_performance=5.0),
        (3, 7): HistoricalAggregate(count=1, avg_performance=3.0),
    }
    ranked = rank_candidates(candidates, 7, SLOT, history, {})
    assert [item.personnel.personnel_id for item in ranked] == [2, 3, 1]


def test_history_for_other_course_is_ignored() -> None:
    candidates = [_person(1), _person(2)]
    history = {(2, 99): HistoricalAggregate(count=5, avg_performance=5.0)}
    ranked = rank_candidates(candidates, 7, SLOT, history, {})
    assert [item.score for item in ranked] == [0.0, 0.0]
    assert ranked[0].personnel.personnel_id == 1


def test_ties_keep_enumeration_order() -> None:
    """Equal scores keep the order candidates were enumerated in."""
    candidates = [_person(5), _person(3), _person(9)]
    preferences = {5: ["MONDAY-09:00"], 3: ["MONDAY-09:00"], 9: ["MONDAY-09:00"]}
    ranked = rank_candidates(candidates, 7, SLOT, {}, preferences)
    assert [item.personnel.personnel_id for item in ranked] == [5, 3, 9]


def test_preference_breaks_equal_history() -> None:
    candidates = [_person(1), _person(2)]
    history = {
        (1, 7): HistoricalAggregate(count=2, avg_performance=4.0),
        (2, 7): HistoricalAggregate(count=2, avg_performance=4.0),
    }
    ranked = rank_candidates(candidates, 7, SLOT, history, {2: ["MONDAY-09:00"]})
    assert ranked[0].personnel.personnel_id == 2


def test_equal_sums_tie_despite_float_rounding() -> None:
    """0.2 + 0.5 and 0.4 + 0.3 are the same score, so enumeration order wins."""
    candidates = [_person(1), _person(2)]
    history = {
        (1, 7): HistoricalAggregate(count=1, avg_performance=5.0),
        (2, 7): HistoricalAggregate(count=2, avg_performance=3.0),
    }
    ranked = rank_candidates(candidates, 7, SLOT, history, {})
    assert [item.score for item in ranked] == [0.7, 0.7]
    assert ranked[0].personnel.personnel_id == 1
