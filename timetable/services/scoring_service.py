"""Suitability scoring of personnel candidates for one event."""

from __future__ import annotations

from typing import Mapping, Sequence

from timetable.domain.constraints import ScoringWeights, validate_scoring_weights
from timetable.domain.models import HistoricalAggregate, Personnel, ScoredCandidate, TimeslotId

# Each prior assignment on the same course adds this much experience credit.
EXPERIENCE_PER_ASSIGNMENT = 0.2
# Experience saturates after a few assignments so it never outweighs performance.
EXPERIENCE_CAP = 0.5
# Mean performance score (2..5) is scaled so the term stays <= 0.5.
PERFORMANCE_WEIGHT = 0.1
# Flat bonus when the candidate ranked this exact timeslot.
PREFERENCE_BONUS = 0.3
# Decimal places kept in a score.
SCORE_PRECISION = 6

DEFAULT_WEIGHTS = ScoringWeights(
    experience_per_assignment=EXPERIENCE_PER_ASSIGNMENT,
    experience_cap=EXPERIENCE_CAP,
    performance_weight=PERFORMANCE_WEIGHT,
    preference_bonus=PREFERENCE_BONUS,
)
validate_scoring_weights(DEFAULT_WEIGHTS)


def score_candidate(
    history: HistoricalAggregate | None,
    preferred_timeslot_ids: Sequence[str],
    timeslot_id: TimeslotId,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    """experience + performance + preference; saturates at 1.3, not normalised."""
    score = 0.0
    if history is not None and history.count > 0:
        score += min(history.count * weights.experience_per_assignment, weights.experience_cap)
        score += history.avg_performance * weights.performance_weight
    if str(timeslot_id) in preferred_timeslot_ids:
        score += weights.preference_bonus
    # equal sums must compare equal so ties keep enumeration order
    return round(score, SCORE_PRECISION)


def rank_candidates(
    candidates: Sequence[Personnel],
    course_id: int,
    timeslot_id: TimeslotId,
    history: Mapping[tuple[int, int], HistoricalAggregate],
    preferences: Mapping[int, Sequence[str]],
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> list[ScoredCandidate]:
    """Candidates by descending score; equal scores keep enumeration order."""
    scored = [
        ScoredCandidate(
            personnel=person,
            score=score_candidate(
                history.get((person.personnel_id, course_id)),
                preferences.get(person.personnel_id, ()),
                timeslot_id,
                weights,
            ),
        )
        for person in candidates
    ]
    # list.sort is stable, including with reverse=True
    scored.sort(key=lambda candidate: candidate.score, reverse=True)
    return scored
