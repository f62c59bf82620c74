# User Repository Service
"""Capability lookups against the application's user records."""

import logging
from typing import Optional

from ..config import settings
from ..errors import UpstreamQueryError
from ..models import UserRecord
from .supabase_client import SupabaseClient, supabase_client

logger = logging.getLogger("kalk.services.user_repository")

CAN_EDIT_MARKERS = "can_edit_markers"


class UserRepository:
    """Reads user records (one row per email) and their capability flags."""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or supabase_client

    async def get_by_email(self, email: str, token: Optional[str] = None) -> Optional[UserRecord]:
        """
        Fetch the user record for an email, as seen by the token's owner.

        Returns None when there is no such record or the lookup fails.
        """
        try:
            rows = await self._client.select(
                settings.users_table,
                columns=f"{CAN_EDIT_MARKERS},email",
                filters={"email": f"eq.{email}"},
                limit=1,
                token=token,
            )
        except UpstreamQueryError as e:
            logger.warning(f"User record lookup failed for {email}: {e.message}")
            return None

        if not rows:
            return None
        return UserRecord(**rows[0])

    async def has_capability(self, email: Optional[str], capability: str, token: Optional[str] = None) -> bool:
        """True only when the user's record carries an explicit true flag."""
        if not email:
            return False

        record = await self.get_by_email(email, token=token)
        if record is None:
            return False
        return getattr(record, capability, False) is True


user_repository = UserRepository()
