"""Domain-level validation rules for allocation inputs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from timetable.domain.models import DayOfWeek, ResourceType, Timeslot, TimeslotId


@dataclass(frozen=True)
class ScoringWeights:
    experience_per_assignment: float
    experience_cap: float
    performance_weight: float
    preference_bonus: float


def validate_scoring_weights(weights: ScoringWeights) -> None:
    if weights.experience_per_assignment < 0.0:
        raise ValueError("experience_per_assignment must be >= 0")
    if weights.experience_cap < 0.0:
        raise ValueError("experience_cap must be >= 0")
    if weights.performance_weight < 0.0:
        raise ValueError("performance_weight must be >= 0")
    if weights.preference_bonus < 0.0:
        raise ValueError("preference_bonus must be >= 0")


def parse_resource_type(value: str | ResourceType) -> ResourceType:
    if isinstance(value, ResourceType):
        return value
    try:
        return ResourceType(str(value).strip().upper())
    except ValueError as exc:
        raise ValueError(f"resource_type must be PERSONNEL or ROOM, got {value!r}") from exc


def parse_day(value: str | DayOfWeek) -> DayOfWeek:
    if isinstance(value, DayOfWeek):
        return value
    try:
        return DayOfWeek(str(value).strip().upper())
    except ValueError as exc:
        raise ValueError(f"unknown day_of_week {value!r}") from exc


def build_timeslot(day: str | DayOfWeek, start_time: str, end_time: str) -> Timeslot:
    return Timeslot(day=parse_day(day), start_time=start_time, end_time=end_time)


def validate_ordered_timeslot_ids(timeslot_ids: Sequence[str]) -> list[str]:
    """Return canonical timeslot ids; duplicates would break rank uniqueness."""
    canonical = [str(TimeslotId.parse(value)) for value in timeslot_ids]
    if len(set(canonical)) != len(canonical):
        raise ValueError("timeslot ids must be unique within one preference list")
    return canonical
