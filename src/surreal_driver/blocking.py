"""
BlockingClient - SurrealWS for threaded code.

A daemon thread runs a private event loop that owns the socket. Public
methods submit coroutines to that loop and block the calling thread until
they finish, so any number of threads can share one connection.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from types import TracebackType
from typing import Any, Coroutine, Iterable, TypeVar

from .errors import ConnectionError
from .patch import Patch
from .response import CrudResponse, PatchResponse, QueryResponse
from .types import ConnectionState
from .ws import SurrealWS

__all__ = ["BlockingClient"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BlockingClient:
    """
    Synchronous facade over SurrealWS.

    Example:
        with BlockingClient("ws://localhost:8000/rpc", "test", "test", "root", "root") as db:
            db.create_with_id("person", "tobie", {"name": "Tobie"})
            print(db.select_one("person", "tobie").data)
    """

    def __init__(
        self,
        url: str | None = None,
        namespace: str | None = None,
        database: str | None = None,
        username: str | None = None,
        password: str | None = None,
        **options: Any,
    ) -> None:
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop, name="surreal-driver-loop", daemon=True
        )
        self._thread.start()
        self._closed = False

        async def create() -> SurrealWS:
            return SurrealWS(url, namespace, database, username, password, **options)

        self._db = self._call(create())

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def _call(self, coro: Coroutine[Any, Any, T]) -> T:
        if self._loop.is_closed():
            coro.close()
            raise ConnectionError("Client is closed")
        if threading.current_thread() is self._thread:
            coro.close()
            raise RuntimeError("BlockingClient cannot be called from its own event loop")
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result()

    @property
    def connection(self) -> SurrealWS:
        return self._db

    @property
    def state(self) -> ConnectionState:
        return self._db.state

    @property
    def ready(self) -> bool:
        return self._db.ready

    def connect(self) -> BlockingClient:
        self._call(self._db.connect())
        return self

    def reconnect(self, url: str | None = None) -> BlockingClient:
        self._call(self._db.reconnect(url))
        return self

    def close(self) -> None:
        """Close the connection and stop the background loop."""
        if self._closed:
            return
        self._closed = True
        try:
            self._call(self._db.close())
        finally:
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join()
            self._loop.close()
            logger.debug("Background event loop stopped")

    def signin(self, username: str, password: str) -> bool:
        return self._call(self._db.signin(username, password))

    def use(self, namespace: str, database: str) -> bool:
        return self._call(self._db.use(namespace, database))

    def execute(self, query: str, vars: dict[str, Any] | None = None) -> QueryResponse:
        return self._call(self._db.execute(query, vars))

    def create(self, table: str, data: dict[str, Any]) -> CrudResponse:
        return self._call(self._db.create(table, data))

    def create_with_id(self, table: str, key: str, data: dict[str, Any]) -> CrudResponse:
        return self._call(self._db.create_with_id(table, key, data))

    def select_all(self, table: str) -> CrudResponse:
        return self._call(self._db.select_all(table))

    def select_one(self, table: str, key: str) -> CrudResponse:
        return self._call(self._db.select_one(table, key))

    def update(self, table: str, key: str, data: dict[str, Any]) -> CrudResponse:
        return self._call(self._db.update(table, key, data))

    def update_all(self, table: str, data: dict[str, Any]) -> CrudResponse:
        return self._call(self._db.update_all(table, data))

    def modify(
        self, table: str, key: str, patches: Iterable[Patch | dict[str, Any]]
    ) -> PatchResponse:
        return self._call(self._db.modify(table, key, list(patches)))

    def modify_all(self, table: str, patches: Iterable[Patch | dict[str, Any]]) -> PatchResponse:
        return self._call(self._db.modify_all(table, list(patches)))

    def delete_all(self, table: str) -> CrudResponse:
        return self._call(self._db.delete_all(table))

    def delete(self, table: str, key: str) -> CrudResponse:
        return self._call(self._db.delete(table, key))

    def __enter__(self) -> BlockingClient:
        return self.connect()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
