"""Admin token authentication bound to a college scope."""

from __future__ import annotations

import secrets
from threading import Lock
from typing import Optional

from timetable.domain.models import CallerScope
from timetable.utils.config import Settings, get_settings


class AuthenticationError(Exception):
    """Base authentication failure."""


class AdminTokenNotConfiguredError(AuthenticationError):
    """Raised when ADMIN_TOKEN is missing."""


class InvalidAdminTokenError(AuthenticationError):
    """Raised when provided token is invalid."""


class AuthService:
    """Exchanges the admin token for session tokens that carry a caller scope."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        # one live session token per scope; a new login replaces it
        self._sessions: dict[CallerScope, str] = {}
        self._lock = Lock()

    @property
    def auth_enabled(self) -> bool:
        return bool(self._settings.admin_token)

    def _expected_token(self) -> str:
        if not self._settings.admin_token:
            raise AdminTokenNotConfiguredError(
                "ADMIN_TOKEN is not configured. Set ADMIN_TOKEN in environment variables."
            )
        return self._settings.admin_token

    def login(self, provided_admin_token: str, college_id: int | None = None) -> str:
        """Issue a session token; omitting ``college_id`` grants super-admin scope."""
        expected = self._expected_token()
        if not secrets.compare_digest(provided_admin_token, expected):
            raise InvalidAdminTokenError("Invalid admin token")
        session_token = secrets.token_urlsafe(32)
        with self._lock:
            self._sessions[CallerScope(college_id=college_id)] = session_token
        return session_token

    def resolve_scope(self, bearer_token: str | None) -> CallerScope:
        if not self.auth_enabled:
            return CallerScope()
        if not bearer_token:
            raise InvalidAdminTokenError("Authorization header with Bearer token is required")
        with self._lock:
            for scope, session_token in self._sessions.items():
                if secrets.compare_digest(bearer_token, session_token):
                    return scope
        raise InvalidAdminTokenError("Invalid bearer token")
