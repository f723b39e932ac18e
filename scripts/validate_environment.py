#!/usr/bin/env python3
"""Validate local timetable service environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from timetable.domain.models import DayOfWeek
from timetable.repository.data_repository import DataRepository
from timetable.services.availability_service import AvailabilityService
from timetable.services.solver_service import SolverService
from timetable.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="timetable-env-")

    # CHECK 1 - Python version >= 3.11
    if sys.version_info >= (3, 11):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.11",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2 - Required packages importable
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("numpy", "numpy"),
        ("pandas", "pandas"),
        ("httpx", "httpx"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            version(dist_name)
        except (ImportError, PackageNotFoundError) as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        validation_settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "timetable_validation.db",
            seed_demo_data=True,
        )
        repository = DataRepository(validation_settings)

        # CHECK 3 - Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except RuntimeError as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4 - Demo seed
        try:
            repository.seed_demo_data()
            events = repository.count_rows("ScheduledEvents")
            history = repository.count_rows("AssignmentHistory")
            if events == 0 or history == 0:
                raise RuntimeError(f"expected seeded rows, got events={events} history={history}")
            ok, line = _print_result(
                "Demo seed",
                True,
                f": {events} events, {history} history rows",
            )
        except Exception as exc:
            ok, line = _print_result("Demo seed", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5 - Solver pass over the first demo timeslot
        try:
            solver = SolverService(repository=repository, settings=validation_settings)
            result = solver.run_solver(1, DayOfWeek.MONDAY, "09:00", "10:00")
            if result.events_filled == 0:
                raise RuntimeError("solver filled no events")
            ok, line = _print_result(
                "Solver run",
                True,
                f": filled={result.events_filled}/{result.events_considered}",
            )
        except Exception as exc:
            ok, line = _print_result("Solver run", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 6 - No double booking after the solver pass
        try:
            conflicts = AvailabilityService(
                repository=repository,
                settings=validation_settings,
            ).find_schedule_conflicts(1)
            if conflicts:
                raise RuntimeError(f"{len(conflicts)} double bookings found")
            ok, line = _print_result("Conflict audit", True)
        except Exception as exc:
            ok, line = _print_result("Conflict audit", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Timetable Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
