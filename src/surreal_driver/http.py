"""
SurrealHTTP - stateless HTTP client for SurrealDB.

Each operation is one HTTP request against the ``/key`` or ``/sql``
endpoints, scoped by the ``NS``/``DB`` headers and basic auth.
"""

from __future__ import annotations

import json
import logging
from types import TracebackType
from typing import Any
from urllib.parse import quote

import httpx

from .config import build_http_url, get_config
from .errors import ConnectionError, SurrealException
from .response import QueryResponse, SurrealResponse

__all__ = ["SurrealHTTP"]

logger = logging.getLogger(__name__)

_DEFAULT: Any = object()


def _key_path(table: str, key: str | None = None) -> str:
    """Build ``/key/{table}[/{key}]`` with each segment percent-encoded."""
    path = f"/key/{quote(table, safe='')}"
    if key is not None:
        path += f"/{quote(str(key), safe='')}"
    return path


class SurrealHTTP:
    """
    Represents a http connection to a SurrealDB server.

    Example:
        async with SurrealHTTP("http://localhost:8000", "test", "test", "root", "root") as db:
            await db.create_with_id("hospital", "central", {"name": "Central"})
            print((await db.select_all("hospital")).data)
    """

    def __init__(
        self,
        url: str | None = None,
        namespace: str | None = None,
        database: str | None = None,
        username: str | None = None,
        password: str | None = None,
        *,
        timeout: float | None = _DEFAULT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            url: Server URL; http(s)://, ws(s):// or host[:port]
            namespace: Value of the NS header
            database: Value of the DB header
            username: Basic auth username
            password: Basic auth password
            timeout: Request timeout in seconds; None disables it
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests)
        """
        config = get_config()
        self._url = build_http_url(url or config.url)
        self._namespace = namespace or config.namespace
        self._database = database or config.database
        self._username = username or config.username
        self._password = password or config.password
        self._timeout = config.timeout if timeout is _DEFAULT else timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "NS": self._namespace,
            "DB": self._database,
        }

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._url,
                headers=self.headers,
                auth=(self._username, self._password),
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def signin(self, username: str, password: str) -> bool:
        """Use other credentials for subsequent requests."""
        self._username = username
        self._password = password
        await self.close()
        return True

    async def use(self, namespace: str, database: str) -> bool:
        """Change the namespace and database sent with subsequent requests."""
        self._namespace = namespace
        self._database = database
        await self.close()
        return True

    async def _send(self, method: str, path: str, body: str | None = None) -> Any:
        client = self._get_client()
        logger.debug("%s %s", method, path)
        try:
            response = await client.request(method, path, content=body)
        except httpx.RequestError as e:
            raise ConnectionError(f"{method} {path} failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise SurrealException(
                response.status_code, response.reason_phrase, response.text
            ) from e

        if not response.is_success:
            if isinstance(data, dict):
                raise SurrealException.from_payload(data)
            raise SurrealException(response.status_code, response.reason_phrase, response.text)
        return data

    async def _record_request(
        self, method: str, path: str, data: dict[str, Any] | None = None
    ) -> SurrealResponse:
        body = json.dumps(data) if data is not None else None
        return SurrealResponse(await self._send(method, path, body))

    async def execute(self, query: str) -> QueryResponse:
        """
        Execute a query against the SurrealDB server.

        Args:
            query: SurrealQL to execute

        Returns:
            QueryResponse with the list of statement results
        """
        data = await self._send("POST", "/sql", query)
        if not isinstance(data, list):
            raise SurrealException(None, "Invalid response", repr(data))
        return QueryResponse(data)

    async def create(self, table: str, data: dict[str, Any]) -> SurrealResponse:
        """Create a record with a generated id."""
        return await self._record_request("POST", _key_path(table), data)

    async def create_with_id(self, table: str, key: str, data: dict[str, Any]) -> SurrealResponse:
        """Create the record ``table:key``."""
        return await self._record_request("POST", _key_path(table, key), data)

    async def select_all(self, table: str) -> SurrealResponse:
        """Select all records in a table."""
        return await self._record_request("GET", _key_path(table))

    async def select_one(self, table: str, key: str) -> SurrealResponse:
        """Select a single record."""
        return await self._record_request("GET", _key_path(table, key))

    async def update(self, table: str, key: str, data: dict[str, Any]) -> SurrealResponse:
        """
        Replace a single record.

        This method requires the entire data structure
        to be sent and will create or update the record.
        """
        return await self._record_request("PUT", _key_path(table, key), data)

    async def merge(self, table: str, key: str, data: dict[str, Any]) -> SurrealResponse:
        """
        Upsert a single record.

        Only the fields to change are sent. If the record doesn't
        exist it is created with the data.
        """
        return await self._record_request("PATCH", _key_path(table, key), data)

    async def delete_all(self, table: str) -> SurrealResponse:
        """Delete all records in a table."""
        return await self._record_request("DELETE", _key_path(table))

    async def delete(self, table: str, key: str) -> SurrealResponse:
        """Delete a single record."""
        return await self._record_request("DELETE", _key_path(table, key))

    async def __aenter__(self) -> SurrealHTTP:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
