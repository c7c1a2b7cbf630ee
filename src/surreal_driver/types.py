"""
Type definitions for surreal-driver

This module contains the enums and configuration dataclasses shared across
the package.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, TypeAlias


class ConnectionState(str, Enum):
    """Lifecycle of the stateful connection."""
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


class ResponseKind(str, Enum):
    """How a raw RPC result is shaped before it reaches the caller."""
    QUERY = "query"
    CRUD = "crud"
    PATCH = "patch"


RpcMethod: TypeAlias = Literal[
    "signin", "use", "query", "create", "select", "update", "modify", "delete"
]

# Close codes treated as an orderly shutdown
GRACEFUL_CLOSE_CODES: tuple[int, ...] = (1000, 1002)


@dataclass
class SurrealConfig:
    """Connection settings."""
    url: str = "ws://localhost:8000/rpc"
    namespace: str = "test"
    database: str = "test"
    username: str = "root"
    password: str = "root"
    timeout: float | None = 30.0
