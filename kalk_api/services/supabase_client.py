# Supabase Client Service
"""HTTP client for the hosted database's table gateway and identity service."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..errors import UpstreamQueryError
from ..models import AuthUser

logger = logging.getLogger("kalk.services.supabase_client")


class SupabaseClient:
    """
    Thin async client over the REST table gateway (``/rest/v1``) and the
    identity service (``/auth/v1``).

    Every call sends the public ``apikey``. The ``Authorization`` bearer is the
    caller's access token when one is given, so row-level security applies
    to that user; otherwise the anon key (or service key) is used.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        anon_key: Optional[str] = None,
        service_key: Optional[str] = None,
        timeout: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else settings.supabase_anon_key
        self.service_key = service_key if service_key is not None else settings.supabase_service_key
        self.timeout = timeout or settings.supabase_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _build_headers(
        self,
        token: Optional[str] = None,
        use_service_key: bool = False,
    ) -> Dict[str, str]:
        """Build request headers."""
        if token:
            bearer = token
        elif use_service_key and self.service_key:
            bearer = self.service_key
        else:
            bearer = self.anon_key

        headers = {
            "apikey": self.anon_key,
            "Content-Type": "application/json",
        }
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        return headers

    @staticmethod
    def _query_error(response: httpx.Response, table: str) -> UpstreamQueryError:
        """Turn a gateway error body into an UpstreamQueryError."""
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        message = body.get("message") or body.get("msg") or response.text or f"HTTP {response.status_code}"
        return UpstreamQueryError(
            message=f"{table}: {message}",
            code=body.get("code"),
            status_code=response.status_code,
        )

    @staticmethod
    def _decode(response: httpx.Response, table: str) -> Any:
        """Parse a 2xx body. A non-JSON body (a proxy error page) raises UpstreamQueryError."""
        if not response.content:
            return []
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamQueryError(
                f"{table}: response is not JSON ({response.headers.get('content-type', 'unknown')})",
                status_code=response.status_code,
            ) from e

    async def get_user(self, token: str) -> AuthUser:
        """
        Resolve an access token to its user via the identity service.

        Raises:
            UpstreamQueryError: token rejected, or the service is unreachable
        """
        client = await self._get_client()
        headers = self._build_headers(token)

        try:
            response = await client.get("/auth/v1/user", headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Identity service request failed: {e}")
            raise UpstreamQueryError(f"auth: {e}") from e

        if response.status_code != 200:
            raise self._query_error(response, "auth")

        data = self._decode(response, "auth")
        if not isinstance(data, dict) or not data.get("id"):
            raise UpstreamQueryError("auth: no user for token", status_code=response.status_code)
        return AuthUser(**data)

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, str]] = None,
        limit: Optional[int] = None,
        token: Optional[str] = None,
        use_service_key: bool = False,
    ) -> List[Dict[str, Any]]:
        """
        Select rows from a table.

        Args:
            table: Table (or view) name
            columns: Gateway ``select`` expression
            filters: Column -> gateway operator expression, e.g.
                ``{"name": "ilike.%fjell%"}`` or ``{"or": "(lp.ilike.x,kode.ilike.x)"}``
            limit: Maximum rows
            token: Caller's access token (RLS applies to that user)
            use_service_key: Authenticate with the service key instead of anon

        Returns:
            List of row dictionaries

        Raises:
            UpstreamQueryError: on transport failure or a non-2xx response
        """
        client = await self._get_client()
        headers = self._build_headers(token, use_service_key)

        params: Dict[str, Any] = {"select": columns}
        if filters:
            params.update(filters)
        if limit is not None:
            params["limit"] = str(limit)

        try:
            response = await client.get(f"/rest/v1/{table}", headers=headers, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Select on {table} failed: {e}")
            raise UpstreamQueryError(f"{table}: {e}") from e

        if response.status_code >= 400:
            raise self._query_error(response, table)

        data = self._decode(response, table)
        return data if isinstance(data, list) else [data]

    async def update(
        self,
        table: str,
        values: Dict[str, Any],
        filters: Dict[str, str],
        token: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Update matching rows and return them as stored.

        Raises:
            UpstreamQueryError: on transport failure or a non-2xx response
        """
        client = await self._get_client()
        headers = self._build_headers(token)
        headers["Prefer"] = "return=representation"

        try:
            response = await client.patch(
                f"/rest/v1/{table}",
                headers=headers,
                params=filters,
                json=values,
            )
        except httpx.HTTPError as e:
            logger.error(f"Update on {table} failed: {e}")
            raise UpstreamQueryError(f"{table}: {e}") from e

        if response.status_code >= 400:
            raise self._query_error(response, table)

        data = self._decode(response, table)
        return data if isinstance(data, list) else [data]


# Global client instance
supabase_client = SupabaseClient()
