"""Environment-backed runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_tuple(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if not raw:
        return default
    return tuple(item.strip().upper() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Immutable settings snapshot shared by every layer."""

    app_name: str
    app_version: str
    log_level: str
    database_path: Path
    sqlite_busy_timeout_seconds: float
    admin_token: str
    seed_demo_data: bool
    demo_random_seed: int
    assignable_personnel_roles: tuple[str, ...]
    time_format_regex: str
    history_recent_window_days: int
    history_top_n: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Resolve settings from the environment once per process."""
    return Settings(
        app_name=os.getenv("APP_NAME", "Timetable Allocation Service"),
        app_version=os.getenv("APP_VERSION", "1.0.0"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        database_path=Path(os.getenv("DATABASE_PATH", "data/timetable.db")),
        sqlite_busy_timeout_seconds=float(os.getenv("SQLITE_BUSY_TIMEOUT_SECONDS", "30")),
        admin_token=os.getenv("ADMIN_TOKEN", ""),
        seed_demo_data=_env_bool("SEED_DEMO_DATA", True),
        demo_random_seed=int(os.getenv("DEMO_RANDOM_SEED", "42")),
        assignable_personnel_roles=_env_tuple(
            "ASSIGNABLE_PERSONNEL_ROLES",
            ("INSTRUCTOR", "ASSISTANT"),
        ),
        time_format_regex=r"^([01]\d|2[0-3]):[0-5]\d$",
        history_recent_window_days=int(os.getenv("HISTORY_RECENT_WINDOW_DAYS", "30")),
        history_top_n=int(os.getenv("HISTORY_TOP_N", "3")),
    )
