"""
app.py - FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires all services, registers routers, and runs startup initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from timetable.controllers.auth_controller import router as auth_router
from timetable.controllers.event_controller import router as event_router
from timetable.controllers.records_controller import router as records_router
from timetable.controllers.scheduling_controller import router as scheduling_router
from timetable.repository.data_repository import DataRepository
from timetable.services.auth_service import AuthService
from timetable.services.availability_service import AvailabilityService
from timetable.services.history_service import HistoryService
from timetable.services.manual_allocation_service import ManualAllocationService
from timetable.services.preference_service import PreferenceService
from timetable.services.solver_service import SolverService
from timetable.utils.config import Settings, get_settings
from timetable.utils.logger import configure_logging, get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Every service shares one repository and is exposed through app.state so
    controllers resolve them via dependency providers.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    # --- Repository (SQLite connection factory) ---
    repository = DataRepository(settings)

    # --- Services ---
    availability_service = AvailabilityService(repository=repository, settings=settings)
    preference_service = PreferenceService(repository=repository, settings=settings)
    solver_service = SolverService(repository=repository, settings=settings)
    manual_allocation_service = ManualAllocationService(repository=repository, settings=settings)
    history_service = HistoryService(repository=repository, settings=settings)
    auth_service = AuthService(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app, settings)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(auth_router)
    app.include_router(scheduling_router)
    app.include_router(event_router)
    app.include_router(records_router)

    # --- Inject services into app.state for dependency resolution ---
    app.state.settings = settings
    app.state.repository = repository
    app.state.availability_service = availability_service
    app.state.preference_service = preference_service
    app.state.solver_service = solver_service
    app.state.manual_allocation_service = manual_allocation_service
    app.state.history_service = history_service
    app.state.auth_service = auth_service

    return app


def _startup(app: FastAPI, settings: Settings) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    The schema must exist before the optional demo seed, which itself is
    skipped once any college is present.
    """
    repository: DataRepository = app.state.repository

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    if settings.seed_demo_data:
        logger.info("Startup: seeding demo college (skipped if any college exists)")
        repository.seed_demo_data()

    if not settings.admin_token:
        logger.warning("ADMIN_TOKEN is not set; requests run without authentication")

    logger.info("Startup complete | database=%s", repository.database_path)


# Module-level app object for uvicorn
app = create_app()
