# Kalk API Errors
"""
Error taxonomy for the API.

Every ``ApiError`` carries the HTTP status and the user-facing message it
renders as. ``main.py`` registers the handler that turns them into
``{"error": ..., "details": ...}`` responses.

``UpstreamQueryError`` is not an ``ApiError``: it is raised by the database
client and recovered locally (search lookups, archive probes) or converted
by the caller.
"""

from typing import Dict, Optional


class ApiError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None

    def to_dict(self) -> Dict[str, str]:
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class AuthenticationRequired(ApiError):
    """No bearer credential, or a malformed Authorization header."""

    status_code = 401
    message = "Authentication required"

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class AuthenticationInvalid(AuthenticationRequired):
    """Bearer credential rejected by the identity service."""

    message = "Invalid authentication token"


class AuthorizationDenied(ApiError):
    status_code = 403
    message = "Insufficient permissions. Marker editing privileges required."


class RequestValidationFailed(ApiError):
    status_code = 400
    message = "Invalid request"


class ArchiveNotFound(ApiError):
    status_code = 404
    message = "Archive tables not found"


class InternalError(ApiError):
    status_code = 500
    message = "Internal server error"


class UpstreamQueryError(Exception):
    """A request to the hosted database failed."""

    # Postgres undefined_table, and the gateway's schema-cache miss
    MISSING_RELATION_CODES = {"42P01", "PGRST205"}

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_missing_table(self) -> bool:
        """True when the error says the queried table does not exist."""
        if self.code in self.MISSING_RELATION_CODES:
            return True
        return "does not exist" in (self.message or "")
