"""Domain models for timetable resource allocation."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Union


_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class DayOfWeek(str, Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"


class ResourceType(str, Enum):
    PERSONNEL = "PERSONNEL"
    ROOM = "ROOM"


class ScheduleStatus(str, Enum):
    DRAFT = "DRAFT"
    LOCKED = "LOCKED"
    COMPLETED = "COMPLETED"


def time_to_minutes(value: str) -> int:
    """Convert a validated ``HH:MM`` string to minutes after midnight."""
    if not _TIME_PATTERN.match(value):
        raise ValueError(f"time must follow HH:MM format, got {value!r}")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


@dataclass(frozen=True)
class TimeslotId:
    """Stable identifier of a recurring slot, shared by preferences and events.

    The string form is ``"{DAY}-{HH:MM}"``; parsing and formatting both go
    through this type so the two sides can never drift apart.
    """

    day: DayOfWeek
    start_time: str

    def __post_init__(self) -> None:
        time_to_minutes(self.start_time)

    def __str__(self) -> str:
        return f"{self.day.value}-{self.start_time}"

    @classmethod
    def parse(cls, value: str) -> "TimeslotId":
        day_part, separator, time_part = value.strip().partition("-")
        if not separator:
            raise ValueError(f"timeslot id must follow DAY-HH:MM format, got {value!r}")
        try:
            day = DayOfWeek(day_part.upper())
        except ValueError as exc:
            raise ValueError(f"unknown day in timeslot id {value!r}") from exc
        return cls(day=day, start_time=time_part)


@dataclass(frozen=True)
class Timeslot:
    day: DayOfWeek
    start_time: str
    end_time: str

    def __post_init__(self) -> None:
        if time_to_minutes(self.start_time) >= time_to_minutes(self.end_time):
            raise ValueError("start_time must be earlier than end_time")

    @property
    def timeslot_id(self) -> TimeslotId:
        return TimeslotId(day=self.day, start_time=self.start_time)

    def overlaps(self, day: DayOfWeek, start_time: str, end_time: str) -> bool:
        """Half-open overlap test: touching windows do not conflict."""
        if day != self.day:
            return False
        return (
            time_to_minutes(start_time) < time_to_minutes(self.end_time)
            and time_to_minutes(end_time) > time_to_minutes(self.start_time)
        )


@dataclass(frozen=True)
class College:
    college_id: int
    name: str
    code: str


@dataclass(frozen=True)
class ScheduleInstance:
    schedule_instance_id: int
    college_id: int
    name: str
    status: ScheduleStatus
    start_date: str
    end_date: str


@dataclass(frozen=True)
class Personnel:
    personnel_id: int
    college_id: int
    name: str
    roles: tuple[str, ...] = ()

    resource_type = ResourceType.PERSONNEL

    @property
    def resource_id(self) -> int:
        return self.personnel_id


@dataclass(frozen=True)
class Room:
    room_id: int
    college_id: int
    name: str
    capacity: int
    room_type: str

    resource_type = ResourceType.ROOM

    @property
    def resource_id(self) -> int:
        return self.room_id


Resource = Union[Personnel, Room]


@dataclass(frozen=True)
class ScheduledEvent:
    event_id: int
    schedule_instance_id: int
    day: DayOfWeek
    start_time: str
    end_time: str
    activity_template_id: int
    course_id: int
    room_id: int | None = None
    personnel_ids: tuple[int, ...] = ()
    version: int = 0

    @property
    def timeslot(self) -> Timeslot:
        return Timeslot(day=self.day, start_time=self.start_time, end_time=self.end_time)

    @property
    def is_filled(self) -> bool:
        return self.room_id is not None and bool(self.personnel_ids)

    def to_dict(self) -> dict[str, object]:
        return {
            "event_id": self.event_id,
            "schedule_instance_id": self.schedule_instance_id,
            "day_of_week": self.day.value,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "activity_template_id": self.activity_template_id,
            "course_id": self.course_id,
            "room_id": self.room_id,
            "personnel_ids": list(self.personnel_ids),
            "version": self.version,
        }


@dataclass(frozen=True)
class TimeslotPreference:
    resource_id: int
    resource_type: ResourceType
    schedule_instance_id: int
    timeslot_id: str
    rank: int


@dataclass(frozen=True)
class AssignmentHistoryRecord:
    personnel_id: int
    course_id: int
    performance: str | None
    assigned_at: str
    activity_template_id: int | None = None
    schedule_instance_id: int | None = None
    college_id: int | None = None
    record_id: int | None = None


@dataclass(frozen=True)
class HistoricalAggregate:
    count: int
    avg_performance: float


@dataclass(frozen=True)
class AvailableResources:
    personnel: list[Personnel] = field(default_factory=list)
    rooms: list[Room] = field(default_factory=list)

    def contains(self, resource_type: ResourceType, resource_id: int) -> bool:
        pool = self.rooms if resource_type is ResourceType.ROOM else self.personnel
        return any(resource.resource_id == resource_id for resource in pool)


@dataclass(frozen=True)
class ScoredCandidate:
    personnel: Personnel
    score: float


@dataclass(frozen=True)
class EventConflict:
    resource_type: ResourceType
    resource_id: int
    first_event_id: int
    second_event_id: int
    day: DayOfWeek


@dataclass(frozen=True)
class SolverResult:
    events_considered: int
    events_filled: int
    historical_factors_considered: int
    events: list[ScheduledEvent]
    unfilled_event_ids: list[int]


@dataclass(frozen=True)
class CallerScope:
    """Organisation scope of an authenticated caller; ``None`` means unscoped."""

    college_id: int | None = None

    @property
    def is_super_admin(self) -> bool:
        return self.college_id is None

    def can_access(self, college_id: int) -> bool:
        return self.is_super_admin or self.college_id == college_id
