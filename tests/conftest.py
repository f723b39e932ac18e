"""Shared fixtures: temporary databases, settings and small campus builders."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

import pytest

from timetable.domain.models import DayOfWeek
from timetable.repository.data_repository import DataRepository
from timetable.utils.config import Settings, get_settings


@dataclass(frozen=True)
class Campus:
    college_id: int
    schedule_id: int
    course_ids: list[int]
    template_ids: list[int]
    personnel_ids: list[int]
    room_ids: list[int]


def build_test_settings(tmp_path, filename: str = "timetable.db", **overrides) -> Settings:
    get_settings.cache_clear()
    values = {
        "database_path": tmp_path / filename,
        "admin_token": "",
        "seed_demo_data": False,
    }
    values.update(overrides)
    return replace(get_settings(), **values)


def build_campus(
    repository: DataRepository,
    *,
    code: str = "ENG",
    personnel: int = 2,
    rooms: int = 2,
    courses: int = 1,
    personnel_roles: Sequence[str] = ("INSTRUCTOR",),
) -> Campus:
    college_id = repository.create_college(f"{code} College", code)
    schedule_id = repository.create_schedule_instance(
        college_id,
        f"{code} Term",
        start_date="2026-09-01",
        end_date="2026-12-18",
    )
    course_ids = [
        repository.create_course(college_id, f"{code}{100 + index}", f"Course {index}")
        for index in range(courses)
    ]
    template_ids = [
        repository.create_activity_template(course_id, "Lecture") for course_id in course_ids
    ]
    personnel_ids = [
        repository.create_personnel(college_id, f"{code} Person {index}", personnel_roles)
        for index in range(personnel)
    ]
    room_ids = [
        repository.create_room(college_id, f"{code} Room {index}") for index in range(rooms)
    ]
    return Campus(
        college_id=college_id,
        schedule_id=schedule_id,
        course_ids=course_ids,
        template_ids=template_ids,
        personnel_ids=personnel_ids,
        room_ids=room_ids,
    )


def add_events(
    repository: DataRepository,
    campus: Campus,
    count: int,
    day: DayOfWeek = DayOfWeek.MONDAY,
    start_time: str = "09:00",
    end_time: str = "10:00",
    template_index: int = 0,
) -> list[int]:
    return [
        repository.create_scheduled_event(
            campus.schedule_id,
            day,
            start_time,
            end_time,
            campus.template_ids[template_index],
        )
        for _ in range(count)
    ]


@pytest.fixture
def settings(tmp_path) -> Settings:
    return build_test_settings(tmp_path)


@pytest.fixture
def repository(settings) -> DataRepository:
    repo = DataRepository(settings)
    repo.initialize_database()
    return repo


@pytest.fixture
def campus(repository) -> Campus:
    return build_campus(repository)
