"""
SurrealWS - stateful WebSocket RPC client for SurrealDB.

Once the socket opens the client signs in and selects the namespace and
database. User requests wait until both replies have arrived, then go out
with a fresh id and are matched to their reply by that id.
"""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import Any, Iterable

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from .config import build_ws_url, get_config
from .correlator import ResponseCorrelator
from .errors import ConnectionError, RpcError, SerializationError, TimeoutError
from .patch import Patch, patches_to_json
from .records import table_record_id
from .request import (
    RequestIdCounter,
    RpcMessage,
    RpcRequest,
    decode_message,
    encode_request,
    signin_params,
)
from .response import CrudResponse, PatchResponse, QueryResponse, shape_response
from .types import GRACEFUL_CLOSE_CODES, ConnectionState, ResponseKind, RpcMethod

__all__ = ["SurrealWS"]

logger = logging.getLogger(__name__)

# Replies that acknowledge the handshake commands
SIGNIN_OK: Any = ""
USE_OK: Any = None

_DEFAULT: Any = object()


class SurrealWS:
    """
    WebSocket RPC client.

    The connection starts CLOSED; ``connect()`` (or the first request)
    opens it. Requests issued while CLOSED reconnect first.

    Example:
        async with SurrealWS("ws://localhost:8000/rpc", "test", "test", "root", "root") as db:
            await db.create_with_id("person", "tobie", {"name": "Tobie"})
            person = await db.select_one("person", "tobie")
            print(person.table, person.data)  # person {'id': 'tobie', 'name': 'Tobie'}
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
    ) -> None:
        """
        Args:
            url: Server URL; ws(s)://, http(s):// or host[:port]
            namespace: Namespace to select after connecting
            database: Database to select after connecting
            username: Username to sign in with
            password: Password to sign in with
            timeout: Seconds to wait for readiness and for each reply;
                None waits indefinitely. Defaults to the configured timeout.
        """
        config = get_config()
        self._url = build_ws_url(url or config.url)
        self._namespace = namespace or config.namespace
        self._database = database or config.database
        self._username = username or config.username
        self._password = password or config.password
        self._timeout = config.timeout if timeout is _DEFAULT else timeout

        self._ws: Any = None
        self._receive_task: asyncio.Task[None] | None = None
        self._state = ConnectionState.CLOSED
        self._authenticated = False
        self._namespace_selected = False
        self._ready = asyncio.Event()
        self._connect_lock = asyncio.Lock()
        self._ids = RequestIdCounter()
        self._correlator = ResponseCorrelator()
        self._handshake_ids: dict[str, str] = {}

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def url(self) -> str:
        return self._url

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    @property
    def namespace_selected(self) -> bool:
        return self._namespace_selected

    @property
    def ready(self) -> bool:
        """True when user requests may be transmitted."""
        return self._ready.is_set()

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def database(self) -> str:
        return self._database

    @property
    def username(self) -> str:
        return self._username

    @property
    def timeout(self) -> float | None:
        return self._timeout

    def _set_state(self, state: ConnectionState) -> None:
        self._state = state
        if state is not ConnectionState.CONNECTED:
            self._authenticated = False
            self._namespace_selected = False
            self._handshake_ids.clear()
        self._update_ready()

    def _update_ready(self) -> None:
        if (
            self._state is ConnectionState.CONNECTED
            and self._authenticated
            and self._namespace_selected
        ):
            self._ready.set()
        else:
            self._ready.clear()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> SurrealWS:
        """
        Open the socket and start the handshake.

        Returns once the handshake commands are sent; readiness is reached
        when both replies arrive. A no-op unless the connection is CLOSED.

        Raises:
            ConnectionError: If the socket cannot be opened.
        """
        async with self._connect_lock:
            if self._state is not ConnectionState.CLOSED:
                return self

            self._set_state(ConnectionState.CONNECTING)
            try:
                self._ws = await ws_connect(self._url)
            except (OSError, WebSocketException, asyncio.TimeoutError) as e:
                logger.error("Could not connect to %s: %s", self._url, e)
                self._set_state(ConnectionState.CLOSED)
                raise ConnectionError(f"Could not connect to {self._url}: {e}") from e

            try:
                await self._on_open()
            except ConnectionError as e:
                self._on_error(e)
                raise
        return self

    async def reconnect(self, url: str | None = None) -> SurrealWS:
        """Close the current connection (if any) and connect again."""
        if url is not None:
            self._url = build_ws_url(url)
        if self._state is not ConnectionState.CLOSED:
            await self.close()
        return await self.connect()

    async def close(self) -> None:
        """Close the WebSocket connection and fail requests still waiting."""
        ws, task = self._ws, self._receive_task
        self._ws = None
        self._receive_task = None
        self._set_state(ConnectionState.CLOSED)

        if task:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if ws is not None:
            await ws.close()

        failed = self._correlator.fail_all(ConnectionError("Connection closed by client"))
        if failed:
            logger.debug("Failed %d pending request(s) on close", failed)

    async def disconnect(self) -> None:
        await self.close()

    async def _on_open(self) -> None:
        logger.info("WebSocket connection established to %s", self._url)
        self._set_state(ConnectionState.CONNECTED)
        self._receive_task = asyncio.create_task(self._receive_loop(self._ws))
        await self._handshake()

    async def _handshake(self) -> None:
        """Send signin and use without waiting for either reply."""
        await self._send_handshake("signin", signin_params(self._username, self._password))
        await self._send_handshake("use", [self._namespace, self._database])

    async def _send_handshake(self, method: RpcMethod, params: list[Any]) -> None:
        request_id = self._ids.next()
        self._handshake_ids[request_id] = method
        await self._transmit(RpcRequest(request_id, method, params))

    def _on_close(self, code: int | None) -> None:
        if code in GRACEFUL_CLOSE_CODES:
            logger.debug("WebSocket connection closed.")
        else:
            logger.warning("WebSocket connection closed with status code: %s", code)
        self._drop_connection(ConnectionError("Connection closed", close_code=code))

    def _on_error(self, error: BaseException) -> None:
        logger.error("WebSocket error occurred: %s", error)
        self._drop_connection(ConnectionError(f"Connection failed: {error}"))

    def _drop_connection(self, error: ConnectionError) -> None:
        task = self._receive_task
        if task is not None and task is not asyncio.current_task():
            task.cancel()
        self._ws = None
        self._receive_task = None
        self._set_state(ConnectionState.CLOSED)
        self._correlator.fail_all(error)

    # ------------------------------------------------------------------
    # Receive path
    # ------------------------------------------------------------------

    async def _receive_loop(self, ws: Any) -> None:
        """Background task that owns the socket and dispatches frames."""
        try:
            async for message in ws:
                self._handle_message(message)
        except ConnectionClosed:
            pass
        except Exception as e:
            if ws is self._ws:
                self._on_error(e)
            return

        if ws is self._ws:
            self._on_close(ws.close_code)

    def _handle_message(self, message: str | bytes) -> None:
        try:
            msg = decode_message(message)
        except SerializationError as e:
            logger.warning("Discarding frame: %s", e.message)
            return

        logger.debug("<<< %s", message)

        if msg.is_error:
            self._handle_error(msg)
        elif msg.id is None:
            logger.debug("Ignoring result without id")
        elif msg.id in self._handshake_ids:
            self._handle_handshake(msg)
        else:
            self._correlator.deliver(msg.id, msg.result)

    def _handle_handshake(self, msg: RpcMessage) -> None:
        assert msg.id is not None
        method = self._handshake_ids.pop(msg.id)

        if method == "signin" and msg.result == SIGNIN_OK:
            self._authenticated = True
        elif method == "use" and msg.result == USE_OK:
            self._namespace_selected = True
        else:
            logger.warning("Unexpected reply to %s: %r", method, msg.result)
        self._update_ready()

    def _handle_error(self, msg: RpcMessage) -> None:
        """Fail the owning request on a critical error, log and drop the rest."""
        assert msg.error is not None
        error = RpcError(msg.error.code, msg.error.message, request_id=msg.id)

        if not error.critical:
            logger.warning("Error: %s", error)
            return

        method = self._handshake_ids.pop(msg.id, None) if msg.id is not None else None
        if method is not None:
            logger.error("Handshake %s failed: %s", method, error)
        elif msg.id is None or not self._correlator.fail(msg.id, error):
            logger.error("RPC error with no waiting request: %s", error)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def _transmit(self, request: RpcRequest) -> None:
        ws = self._ws
        if ws is None or self._state is not ConnectionState.CONNECTED:
            raise ConnectionError(f"Cannot send {request.method}: not connected")

        frame = encode_request(request)
        logger.debug(">>> %s request %s", request.method, request.id)
        try:
            await ws.send(frame)
        except ConnectionClosed as e:
            raise ConnectionError(f"Connection closed while sending {request.method}") from e

    async def wait_until_ready(self) -> None:
        """
        Wait until the connection is CONNECTED, signed in and using a
        namespace, reconnecting first if it is CLOSED.

        Raises:
            TimeoutError: If readiness is not reached within the timeout.
            ConnectionError: If a reconnect fails.
        """
        loop = asyncio.get_running_loop()
        deadline = None if self._timeout is None else loop.time() + self._timeout

        while not self._ready.is_set():
            remaining = None if deadline is None else deadline - loop.time()
            try:
                if remaining is not None and remaining <= 0:
                    raise asyncio.TimeoutError
                if self._state is ConnectionState.CLOSED:
                    await self.connect()
                    continue
                await asyncio.wait_for(self._ready.wait(), remaining)
            except asyncio.TimeoutError:
                raise TimeoutError(
                    f"Connection to {self._url} not ready within {self._timeout}s "
                    f"(authenticated={self._authenticated}, "
                    f"namespace_selected={self._namespace_selected})",
                    timeout=self._timeout,
                ) from None

    async def _request(self, kind: ResponseKind, method: RpcMethod, params: list[Any]) -> Any:
        await self.wait_until_ready()

        request_id = self._ids.next()
        self._correlator.register(request_id)
        try:
            await self._transmit(RpcRequest(request_id, method, params))
        except BaseException:
            self._correlator.discard(request_id)
            raise

        raw = await self._correlator.await_result(request_id, self._timeout)
        return shape_response(kind, raw)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    async def signin(self, username: str, password: str) -> bool:
        """
        Sign in as another user.

        The credentials are kept for later reconnects. When connected the
        signin command is sent right away and new requests wait for its
        reply; if the server rejects it they time out.
        """
        self._username = username
        self._password = password
        if self._state is ConnectionState.CONNECTED:
            self._authenticated = False
            self._update_ready()
            await self._send_handshake("signin", signin_params(username, password))
        return True

    async def use(self, namespace: str, database: str) -> bool:
        """
        Change the namespace and database to use.

        When connected, new requests wait for the server to acknowledge
        the change.
        """
        self._namespace = namespace
        self._database = database
        if self._state is ConnectionState.CONNECTED:
            self._namespace_selected = False
            self._update_ready()
            await self._send_handshake("use", [namespace, database])
        return True

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def execute(self, query: str, vars: dict[str, Any] | None = None) -> QueryResponse:
        """
        Execute a query against the SurrealDB server.

        Args:
            query: SurrealQL to execute
            vars: Optional query parameters
        """
        params: list[Any] = [query] if vars is None else [query, vars]
        return await self._request(ResponseKind.QUERY, "query", params)

    async def create(self, table: str, data: dict[str, Any]) -> CrudResponse:
        """Create a record with a generated id."""
        return await self._request(ResponseKind.CRUD, "create", [table, data])

    async def create_with_id(self, table: str, key: str, data: dict[str, Any]) -> CrudResponse:
        """Create the record ``table:key``."""
        return await self._request(
            ResponseKind.CRUD, "create", [table_record_id(table, key), data]
        )

    async def select_all(self, table: str) -> CrudResponse:
        """Select all records in a table."""
        return await self._request(ResponseKind.CRUD, "select", [table])

    async def select_one(self, table: str, key: str) -> CrudResponse:
        """Select a single record; an empty key selects the whole table."""
        return await self._request(
            ResponseKind.CRUD, "select", [table_record_id(table, key)]
        )

    async def update(self, table: str, key: str, data: dict[str, Any]) -> CrudResponse:
        """
        Replace a single record.

        The entire record must be sent; it is created if missing.
        """
        return await self._request(
            ResponseKind.CRUD, "update", [table_record_id(table, key), data]
        )

    async def update_all(self, table: str, data: dict[str, Any]) -> CrudResponse:
        """Replace every record in a table."""
        return await self._request(ResponseKind.CRUD, "update", [table, data])

    async def modify(
        self, table: str, key: str, patches: Iterable[Patch | dict[str, Any]]
    ) -> PatchResponse:
        """Apply JSON Patch operations to a record."""
        return await self._request(
            ResponseKind.PATCH,
            "modify",
            [table_record_id(table, key), patches_to_json(patches)],
        )

    async def modify_all(
        self, table: str, patches: Iterable[Patch | dict[str, Any]]
    ) -> PatchResponse:
        """Apply JSON Patch operations to every record in a table."""
        return await self._request(
            ResponseKind.PATCH, "modify", [table, patches_to_json(patches)]
        )

    async def delete_all(self, table: str) -> CrudResponse:
        """Delete all records in a table."""
        return await self._request(ResponseKind.CRUD, "delete", [table])

    async def delete(self, table: str, key: str) -> CrudResponse:
        """Delete a single record."""
        return await self._request(
            ResponseKind.CRUD, "delete", [table_record_id(table, key)]
        )

    async def __aenter__(self) -> SurrealWS:
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    def __repr__(self) -> str:
        return (
            f"SurrealWS({self._url!r}, state={self._state.value}, "
            f"authenticated={self._authenticated}, "
            f"namespace_selected={self._namespace_selected})"
        )
