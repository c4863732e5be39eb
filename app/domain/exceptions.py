"""Centralized exception hierarchy for AgroTrack.

All domain and service exceptions inherit from :class:`AgroTrackError` so that
callers can catch a single base class when they need a broad safety net, yet
still match on specific subclasses where narrower handling is appropriate.

Blueprint-level error handling (see ``app/utils/http.safe_route``) maps these
to the correct HTTP status codes automatically.

Hierarchy
---------
::

    AgroTrackError (base, maps to 500)
    ├── ValidationError              (400, bad input from caller)
    ├── AuthenticationError          (401, missing or invalid credentials)
    ├── NotFoundError                (404, entity does not exist)
    ├── ConflictError                (409, duplicate / state conflict)
    │   └── InvalidTransitionError   (409, reminder lifecycle violation)
    ├── ServiceError                 (500, business-logic failure)
    │   ├── RepositoryError          (500, database / persistence)
    │   └── ExternalServiceError     (502, third-party / network)
    ├── FeatureUnavailableError      (503, optional integration disabled)
    └── ConfigurationError           (500, missing / invalid config)
"""

from __future__ import annotations


class AgroTrackError(Exception):
    """Base exception for all AgroTrack application errors.

    Parameters
    ----------
    message:
        Human-readable description (logged server-side, **not** leaked to
        the HTTP client unless the exception class opts in).
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging.
    """

    http_status: int = 500

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


# ── Client errors (4xx) ──────────────────────────────────────────────


class ValidationError(AgroTrackError):
    """Caller supplied invalid or incomplete input (HTTP 400)."""

    http_status: int = 400


class AuthenticationError(AgroTrackError):
    """Credentials are missing or wrong (HTTP 401)."""

    http_status: int = 401


class NotFoundError(AgroTrackError):
    """Requested entity does not exist (HTTP 404)."""

    http_status: int = 404


class ConflictError(AgroTrackError):
    """Operation conflicts with existing state (HTTP 409)."""

    http_status: int = 409


class InvalidTransitionError(ConflictError):
    """A reminder cannot move from its current status to the requested one."""

    def __init__(self, current: str, action: str, message: str = "") -> None:
        super().__init__(
            message or f"Cannot {action} a reminder that is {current}",
            detail={"status": current, "action": action},
        )
        self.current = current
        self.action = action


# ── Server errors (5xx) ──────────────────────────────────────────────


class ServiceError(AgroTrackError):
    """Business-logic failure in a service method (HTTP 500)."""

    http_status: int = 500


class RepositoryError(ServiceError):
    """Database / persistence layer failure (HTTP 500)."""

    http_status: int = 500


class ExternalServiceError(ServiceError):
    """Third-party or network dependency failure (HTTP 502)."""

    http_status: int = 502


class FeatureUnavailableError(AgroTrackError):
    """An optional integration (LLM provider) is not configured (HTTP 503)."""

    http_status: int = 503


class ConfigurationError(AgroTrackError):
    """Missing or invalid application configuration (HTTP 500)."""

    http_status: int = 500
