# Kalk API Dependencies
"""
FastAPI dependencies for authentication and authorization.

Checks run in a fixed order and the first failure wins:

1. ``get_bearer_token``: an ``Authorization: Bearer <token>`` header is
   present and well formed, else 401 "Authentication required".
2. ``get_current_user``: the identity service accepts the token, else 401
   "Invalid authentication token".
3. ``require_marker_editor``: the user's record carries
   ``can_edit_markers = true``, else 403.

Usage:
    @router.post("/archive")
    async def create_archive(user: AuthenticatedUser = Depends(require_marker_editor)):
        ...
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .errors import (
    AuthenticationInvalid,
    AuthenticationRequired,
    AuthorizationDenied,
    RequestValidationFailed,
    UpstreamQueryError,
)
from .models import AuthUser
from .services.supabase_client import supabase_client
from .services.user_repository import CAN_EDIT_MARKERS, user_repository

logger = logging.getLogger("kalk.dependencies")

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthenticatedUser:
    """A validated identity together with the token it was validated from."""

    user: AuthUser
    token: str

    @property
    def email(self) -> Optional[str]:
        return self.user.email


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """The raw bearer token; 401 when the header is missing or malformed."""
    if not credentials or not credentials.credentials:
        raise AuthenticationRequired()
    return credentials.credentials


async def get_current_user(token: str = Depends(get_bearer_token)) -> AuthenticatedUser:
    """Validate the token against the identity service."""
    try:
        user = await supabase_client.get_user(token)
    except UpstreamQueryError as e:
        logger.warning(f"Authentication failed: {e.message}")
        raise AuthenticationInvalid()

    logger.debug(f"Authenticated user: {user.email}")
    return AuthenticatedUser(user=user, token=token)


async def require_marker_editor(
    current: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """Require the ``can_edit_markers`` capability on the user's record."""
    allowed = await user_repository.has_capability(current.email, CAN_EDIT_MARKERS, token=current.token)
    if not allowed:
        logger.warning(f"Permission denied: {current.email} lacks {CAN_EDIT_MARKERS}")
        raise AuthorizationDenied()
    return current


async def require_search_query(q: Optional[str] = Query(None, description="Search text")) -> str:
    """
    The trimmed search query. Declared ahead of the auth dependencies so a
    short query is rejected before any upstream call.
    """
    term = (q or "").strip()
    if len(term) < settings.search_min_query_length:
        raise RequestValidationFailed(
            f"Search query must be at least {settings.search_min_query_length} characters long"
        )
    return term
