"""
surreal-driver - SurrealDB client over WebSocket RPC or HTTP.

This package provides:
- SurrealWS: a stateful WebSocket client that signs in, selects the
  namespace/database and matches concurrent requests to their replies
- SurrealHTTP: a stateless HTTP client for the same operations
- Client/connect: pick the transport from the URL scheme
- BlockingClient: the WebSocket client for threaded code

Example usage:
    from surreal_driver import connect

    async def main():
        db = await connect("ws://localhost:8000/rpc", namespace="test", database="test")

        await db.create_with_id("person", "tobie", {"name": "Tobie"})
        person = await db.select_one("person", "tobie")
        print(person.table, person.data)  # person {'id': 'tobie', 'name': 'Tobie'}

        await db.close()

    import asyncio
    asyncio.run(main())
"""

from __future__ import annotations

__version__ = "0.1.0"

from .blocking import BlockingClient
from .client import Client, connect
from .config import build_http_url, build_ws_url, configure, configure_from_env, get_config
from .correlator import ResponseCorrelator
from .errors import (
    SAFE_CODES,
    ConnectionError,
    ErrorCode,
    RpcError,
    SerializationError,
    SurrealError,
    SurrealException,
    TimeoutError,
)
from .http import SurrealHTTP
from .patch import AddPatch, Patch, RemovePatch, ReplacePatch
from .records import split_record_id, table_record_id
from .request import RequestIdCounter, RpcRequest, decode_request, encode_request
from .response import CrudResponse, PatchResponse, QueryResponse, SurrealResponse
from .types import ConnectionState, ResponseKind, SurrealConfig
from .ws import SurrealWS

__all__ = [
    # Main API
    "connect",
    "Client",
    "SurrealWS",
    "SurrealHTTP",
    "BlockingClient",
    # Responses
    "QueryResponse",
    "CrudResponse",
    "PatchResponse",
    "SurrealResponse",
    # Patches
    "Patch",
    "AddPatch",
    "ReplacePatch",
    "RemovePatch",
    # Protocol
    "RpcRequest",
    "RequestIdCounter",
    "ResponseCorrelator",
    "encode_request",
    "decode_request",
    "table_record_id",
    "split_record_id",
    # Errors
    "SurrealError",
    "SurrealException",
    "RpcError",
    "ConnectionError",
    "TimeoutError",
    "SerializationError",
    "ErrorCode",
    "SAFE_CODES",
    # Configuration
    "configure",
    "configure_from_env",
    "get_config",
    "build_ws_url",
    "build_http_url",
    "SurrealConfig",
    "ConnectionState",
    "ResponseKind",
    # Version
    "__version__",
]
