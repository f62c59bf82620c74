# Search Service
"""
Substring search over water bodies and landing sites.

Two lookups run against the active tables: water bodies by ``name`` and
landing sites by ``lp`` or ``kode``. A failing lookup never fails the
search; it is logged, counted as empty, and followed by a small diagnostic
query whose outcome is only logged. Hits from both sources are tagged,
merged, sorted exact-match-first then alphabetically, and truncated.
"""

import asyncio
import logging
import unicodedata
from typing import Any, Dict, Iterable, List, Optional

from ..config import settings
from ..errors import UpstreamQueryError
from ..models import SearchResponse, SearchResult, SearchSource
from .supabase_client import SupabaseClient, supabase_client
from .table_names import TableNameResolver, table_name_resolver

logger = logging.getLogger("kalk.services.search_service")

# Letters with no canonical decomposition, folded to their base-letter spelling
_LETTER_FOLDS = str.maketrans({
    "ø": "o",
    "æ": "ae",
    "œ": "oe",
    "đ": "d",
    "ð": "d",
    "ł": "l",
    "þ": "th",
    "ı": "i",
})


def build_search_pattern(query: str) -> str:
    """Case-insensitive substring pattern for a trimmed query."""
    return f"%{query.strip()}%"


def _quote_filter_value(value: str) -> str:
    """Double-quote a value inside an ``or=(...)`` filter so ``,.()`` survive."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def dedupe_by_id(rows: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep the first row for each id; rows without an id are all kept."""
    seen = set()
    unique = []
    for row in rows:
        row_id = row.get("id")
        if row_id is not None:
            if row_id in seen:
                continue
            seen.add(row_id)
        unique.append(row)
    return unique


def merge_results(
    water_rows: Iterable[Dict[str, Any]],
    landing_rows: Iterable[Dict[str, Any]],
) -> List[SearchResult]:
    """Tag rows with their source; water hits first, then landing sites."""
    results = [SearchResult.from_row(row, SearchSource.WATER) for row in water_rows]
    results.extend(SearchResult.from_row(row, SearchSource.LANDING_SITE) for row in landing_rows)
    return results


def collation_key(name: str) -> str:
    """
    Accent- and case-insensitive sort key: 'Åsvatnet' sorts with the A's,
    'Ørnevatn' with the O's.
    """
    text = unicodedata.normalize("NFKD", name or "")
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return text.casefold().translate(_LETTER_FOLDS)


def sort_results(results: List[SearchResult], query: str) -> List[SearchResult]:
    """
    Exact (case-insensitive) display-name matches first, then alphabetical.

    Alphabetical order compares accent-folded names (see ``collation_key``),
    with the raw name as the tiebreak so the order is deterministic.
    """
    needle = query.strip().lower()

    def sort_key(result: SearchResult):
        name = result.displayName or ""
        return (name.lower() != needle, collation_key(name), name)

    return sorted(results, key=sort_key)


class SearchService:
    """Runs the two source lookups and assembles the response."""

    def __init__(
        self,
        client: Optional[SupabaseClient] = None,
        resolver: Optional[TableNameResolver] = None,
    ):
        self._client = client or supabase_client
        self._resolver = resolver or table_name_resolver

    async def search(self, query: str, token: str) -> SearchResponse:
        """
        Search both sources for ``query`` as the token's owner.

        Args:
            query: Raw query string (already validated for length)
            token: Caller's access token

        Returns:
            SearchResponse with at most ``search_result_limit`` results and the
            pre-truncation total
        """
        term = query.strip()
        pattern = build_search_pattern(term)
        tables = await self._resolver.get_active()

        logger.info(f"Searching for '{term}' with pattern '{pattern}'")

        water_rows, landing_rows = await asyncio.gather(
            self._lookup(
                tables.vass_vann,
                filters={"name": f"ilike.{pattern}"},
                token=token,
            ),
            self._lookup(
                tables.vass_lasteplass,
                filters={
                    "or": (
                        f"(lp.ilike.{_quote_filter_value(pattern)},"
                        f"kode.ilike.{_quote_filter_value(pattern)})"
                    )
                },
                token=token,
            ),
        )

        landing_rows = dedupe_by_id(landing_rows)
        results = sort_results(merge_results(water_rows, landing_rows), term)
        logger.info(
            f"Search '{term}': {len(water_rows)} water, {len(landing_rows)} landing sites"
        )

        return SearchResponse(
            results=results[: settings.search_result_limit],
            total=len(results),
        )

    async def _lookup(
        self,
        table: str,
        filters: Dict[str, str],
        token: str,
    ) -> List[Dict[str, Any]]:
        """One source lookup; failures yield an empty list."""
        try:
            return await self._client.select(
                table,
                filters=filters,
                limit=settings.search_source_limit,
                token=token,
            )
        except UpstreamQueryError as e:
            logger.warning(f"Lookup on {table} failed, continuing without it: {e.message}")
            await self._diagnostic_fallback(table)
            return []

    async def _diagnostic_fallback(self, table: str) -> None:
        """Unfiltered anon query, logged for operators; errors are swallowed."""
        try:
            rows = await self._client.select(table, limit=settings.search_fallback_limit)
            logger.info(f"{table} sample data: {rows[0] if rows else None}")
        except Exception as e:
            logger.error(f"Error accessing {table} table: {e}")


search_service = SearchService()
