"""
Client - picks the transport from the URL scheme.

``ws://`` and ``wss://`` URLs (and bare hosts) use the stateful SurrealWS
client; ``http://`` and ``https://`` URLs use the stateless SurrealHTTP
client. Operations are forwarded to the selected transport.
"""

from __future__ import annotations

from types import TracebackType
from typing import Any

from .config import get_config
from .http import SurrealHTTP
from .ws import SurrealWS

__all__ = ["Client", "connect"]


def _is_http_url(url: str) -> bool:
    return url.startswith("http://") or url.startswith("https://")


class Client:
    """
    Driver for SurrealDB over either transport.

    Example:
        db = Client("ws://localhost:8000/rpc", "test", "test", "root", "root")
        await db.connect()
        result = await db.execute("SELECT * FROM person")
        await db.close()
    """

    __slots__ = ("_db",)

    def __init__(
        self,
        url: str | None = None,
        namespace: str | None = None,
        database: str | None = None,
        username: str | None = None,
        password: str | None = None,
        **options: Any,
    ) -> None:
        url = url or get_config().url
        cls = SurrealHTTP if _is_http_url(url) else SurrealWS
        self._db: SurrealWS | SurrealHTTP = cls(
            url, namespace, database, username, password, **options
        )

    @property
    def transport(self) -> SurrealWS | SurrealHTTP:
        return self._db

    @property
    def is_stateful(self) -> bool:
        return isinstance(self._db, SurrealWS)

    def __getattr__(self, name: str) -> Any:
        """Forward operations to the selected transport."""
        if name.startswith("_"):
            raise AttributeError(f"'{type(self).__name__}' has no attribute '{name}'")
        return getattr(self._db, name)

    async def connect(self) -> Client:
        """Open the stateful connection; a no-op for HTTP."""
        if isinstance(self._db, SurrealWS):
            await self._db.connect()
        return self

    async def close(self) -> None:
        await self._db.close()

    async def __aenter__(self) -> Client:
        return await self.connect()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"Client({self._db!r})"


async def connect(url: str | None = None, **options: Any) -> Client:
    """
    Connect to a SurrealDB server.

    Args:
        url: Server URL; defaults to the configured URL
        **options: namespace, database, username, password, timeout

    Returns:
        Connected Client instance

    Example:
        db = await connect("ws://localhost:8000/rpc", namespace="test", database="test")
        people = await db.select_all("person")
    """
    client = Client(url, **options)
    await client.connect()
    return client
