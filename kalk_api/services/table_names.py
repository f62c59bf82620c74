# Table Names Service
"""
Resolves which physical tables the application currently reads.

The ``app_config`` row names an active year and prefix. Year ``current``
(or empty) means the live tables; any other year maps each base table to
``<year>_[<prefix>_]<base>``. A configured archive whose ``vass_vann`` table
does not exist falls back to the live tables.
"""

import logging
import time
from typing import Callable, Optional, Tuple

from pydantic import ValidationError

from ..config import settings
from ..errors import UpstreamQueryError
from ..models import AppConfigRow, TableNames
from .supabase_client import SupabaseClient, supabase_client

logger = logging.getLogger("kalk.services.table_names")

CURRENT_YEAR = "current"

BASE_TABLE_NAMES: Tuple[str, ...] = tuple(TableNames.model_fields.keys())


def build_table_name(base_name: str, year: Optional[str], prefix: Optional[str]) -> str:
    """Physical name of ``base_name`` for an archive year/prefix."""
    if not year or year == CURRENT_YEAR:
        return base_name
    if prefix:
        return f"{year}_{prefix}_{base_name}"
    return f"{year}_{base_name}"


def default_table_names() -> TableNames:
    return TableNames()


class TableNameResolver:
    """Caches the active table names for ``table_names_cache_ttl`` seconds."""

    def __init__(
        self,
        client: Optional[SupabaseClient] = None,
        ttl: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client or supabase_client
        self._ttl = settings.table_names_cache_ttl if ttl is None else ttl
        self._clock = clock
        self._cached: Optional[TableNames] = None
        self._cached_at: float = 0.0

    def clear(self) -> None:
        """Drop the cache; call after the active archive changes."""
        self._cached = None
        self._cached_at = 0.0

    async def get_active(self) -> TableNames:
        now = self._clock()
        if self._cached is not None and (now - self._cached_at) < self._ttl:
            return self._cached

        try:
            rows = await self._client.select(settings.app_config_table, limit=1)
        except UpstreamQueryError as e:
            logger.error(f"Error fetching app config, using default table names: {e.message}")
            return default_table_names()

        if not rows:
            logger.warning("No app_config found, using default table names")
            return default_table_names()

        try:
            config = AppConfigRow(**rows[0])
        except (TypeError, ValidationError) as e:
            logger.error(f"Malformed app_config row, using default table names: {e}")
            return default_table_names()

        names = TableNames(
            **{
                base: build_table_name(base, config.active_year, config.active_prefix)
                for base in BASE_TABLE_NAMES
            }
        )

        if config.active_year and config.active_year != CURRENT_YEAR:
            try:
                await self._client.select(names.vass_vann, columns="id", limit=1)
            except UpstreamQueryError as e:
                if e.is_missing_table:
                    logger.warning(
                        f'Configured table "{names.vass_vann}" does not exist, '
                        f"falling back to default table names"
                    )
                    return default_table_names()
                logger.warning(f"Could not validate {names.vass_vann}: {e.message}")

        self._cached = names
        self._cached_at = now
        return names


table_name_resolver = TableNameResolver()
