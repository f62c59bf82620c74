# Archive Service
"""Archive discovery, app config reads, and switching the active archive."""

import asyncio
import logging
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple

from ..config import settings
from ..errors import ArchiveNotFound, UpstreamQueryError
from ..models import AppConfigRow, ArchiveEntry
from .supabase_client import SupabaseClient, supabase_client
from .table_names import CURRENT_YEAR, TableNameResolver, build_table_name, table_name_resolver

logger = logging.getLogger("kalk.services.archive_service")

PROBE_TABLE = "vass_vann"
APP_CONFIG_ID = 1


def candidate_years(today: Optional[date] = None) -> List[int]:
    """Last year through two years ahead."""
    year = (today or date.today()).year
    return [year - 1, year, year + 1, year + 2]


class ArchiveService:
    """Reads and switches archive state held in the hosted database."""

    def __init__(
        self,
        client: Optional[SupabaseClient] = None,
        resolver: Optional[TableNameResolver] = None,
    ):
        self._client = client or supabase_client
        self._resolver = resolver or table_name_resolver

    async def table_exists(self, table: str) -> bool:
        """
        Zero-row probe. Only a "does not exist" error means absent; any
        other outcome, including other errors, counts as present.
        """
        try:
            await self._client.select(table, columns="id", limit=1, use_service_key=True)
        except UpstreamQueryError as e:
            if e.is_missing_table:
                return False
            logger.debug(f"Probe on {table} failed but table assumed present: {e.message}")
        return True

    async def list_archives(self, today: Optional[date] = None) -> List[ArchiveEntry]:
        """
        Enumerate switchable archives.

        Always starts with the live tables (``year='current'``), then every
        probed ``<year>_[<prefix>_]vass_vann`` that exists.
        """
        # Result unused: membership is decided by the probes below.
        # TODO: remove this catalog query, it never affects the listing.
        try:
            tables = await self._client.select(
                "information_schema.tables",
                columns="table_name",
                filters={
                    "table_schema": "eq.public",
                    "or": f"(table_name.eq.{PROBE_TABLE},table_name.like.*_{PROBE_TABLE})",
                },
                use_service_key=True,
            )
            logger.debug(f"information_schema listed {len(tables)} tables")
        except UpstreamQueryError as e:
            logger.debug(f"information_schema query unavailable: {e.message}")

        candidates: List[Tuple[str, str]] = [
            (str(year), prefix)
            for year in candidate_years(today)
            for prefix in settings.archive_probe_prefixes
        ]
        present = await asyncio.gather(
            *(self.table_exists(build_table_name(PROBE_TABLE, year, prefix)) for year, prefix in candidates)
        )

        archives = [ArchiveEntry(year=CURRENT_YEAR, prefix="")]
        archives.extend(
            ArchiveEntry(year=year, prefix=prefix)
            for (year, prefix), exists in zip(candidates, present)
            if exists
        )
        return archives

    async def get_config(self) -> Optional[AppConfigRow]:
        """
        The singleton app_config row, or None when the table is empty.

        Raises:
            UpstreamQueryError: the read failed
        """
        rows = await self._client.select(settings.app_config_table, limit=1)
        if not rows:
            return None
        return AppConfigRow(**rows[0])

    async def switch_active(
        self,
        year: str,
        prefix: str,
        updated_by: Optional[str],
        token: str,
    ) -> AppConfigRow:
        """
        Point app_config at another archive and drop the table-name cache.

        Raises:
            ArchiveNotFound: the archive's tables do not exist
            UpstreamQueryError: the update failed or matched no row
        """
        if year == CURRENT_YEAR:
            prefix = ""
        else:
            table = build_table_name(PROBE_TABLE, year, prefix)
            if not await self.table_exists(table):
                raise ArchiveNotFound(details=f'Table "{table}" does not exist')

        rows = await self._client.update(
            settings.app_config_table,
            values={
                "active_year": year,
                "active_prefix": prefix,
                "updated_at": datetime.now(timezone.utc).isoformat(),
                "updated_by": updated_by,
            },
            filters={"id": f"eq.{APP_CONFIG_ID}"},
            token=token,
        )
        if not rows:
            raise UpstreamQueryError(f"{settings.app_config_table}: no row with id {APP_CONFIG_ID}")

        self._resolver.clear()
        logger.info(f"Active archive switched to year={year} prefix='{prefix}' by {updated_by}")
        return AppConfigRow(**rows[0])


archive_service = ArchiveService()
