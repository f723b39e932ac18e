"""Error taxonomy shared by the allocation services."""

from __future__ import annotations

from timetable.domain.models import CallerScope


class SchedulingError(Exception):
    """Base exception for scheduling workflow failures."""


class NotFoundError(SchedulingError):
    """Raised when a schedule instance, event or resource does not exist."""


class ForbiddenError(SchedulingError):
    """Raised when the caller's college does not own the target."""


class ConflictError(SchedulingError):
    """Raised when a resource is already committed at an overlapping time."""


class SchedulingValidationError(SchedulingError):
    """Raised when input is malformed; checked before any read or write."""


def ensure_scope(caller: CallerScope, college_id: int) -> None:
    if not caller.can_access(college_id):
        raise ForbiddenError(f"Caller is not allowed to access college {college_id}")
