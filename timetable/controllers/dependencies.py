"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from typing import Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from timetable.domain.models import CallerScope
from timetable.services.auth_service import AuthenticationError, AuthService
from timetable.services.availability_service import AvailabilityService
from timetable.services.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    SchedulingError,
    SchedulingValidationError,
)
from timetable.services.history_service import HistoryService
from timetable.services.manual_allocation_service import ManualAllocationService
from timetable.services.preference_service import PreferenceService
from timetable.services.solver_service import SolverService
from timetable.utils.config import get_settings


bearer_scheme = HTTPBearer(auto_error=False)

_STATUS_BY_ERROR: tuple[tuple[type[SchedulingError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (ConflictError, status.HTTP_409_CONFLICT),
    (SchedulingValidationError, status.HTTP_400_BAD_REQUEST),
)


def to_http_exception(exc: SchedulingError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _service_from_state(request: Request, attribute: str, label: str) -> Any:
    service = getattr(request.app.state, attribute, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} service is not initialized",
        )
    return service


def get_auth_service(request: Request) -> AuthService:
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        service = AuthService(settings=get_settings())
        request.app.state.auth_service = service
    return service


def get_availability_service(request: Request) -> AvailabilityService:
    return _service_from_state(request, "availability_service", "Availability")


def get_preference_service(request: Request) -> PreferenceService:
    return _service_from_state(request, "preference_service", "Preference")


def get_solver_service(request: Request) -> SolverService:
    return _service_from_state(request, "solver_service", "Solver")


def get_manual_allocation_service(request: Request) -> ManualAllocationService:
    return _service_from_state(request, "manual_allocation_service", "Manual allocation")


def get_history_service(request: Request) -> HistoryService:
    return _service_from_state(request, "history_service", "History")


async def require_caller(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> CallerScope:
    try:
        return auth_service.resolve_scope(
            credentials.credentials if credentials is not None else None
        )
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
