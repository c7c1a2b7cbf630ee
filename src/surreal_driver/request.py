"""
Wire envelopes for the stateful transport.

Outbound requests are ``{"id", "method", "params"}`` objects with a decimal
string id. Inbound frames are ``{"id", "result"}`` or ``{"id", "error"}``
and are validated with pydantic before they reach the client.
"""

from __future__ import annotations

import json
import threading
from dataclasses import asdict, dataclass, field
from typing import Any

from pydantic import BaseModel, ValidationError, field_validator

from .errors import SerializationError

__all__ = [
    "ID_MODULUS",
    "RequestIdCounter",
    "RpcRequest",
    "RpcErrorPayload",
    "RpcMessage",
    "encode_request",
    "decode_request",
    "decode_message",
    "signin_params",
]

ID_MODULUS = 2**32


class RequestIdCounter:
    """
    Mints request ids for one connection.

    Ids are decimal strings that wrap modulo 2^32. Reuse after wraparound
    is only safe while the earlier request with that id has long been
    resolved or abandoned; that is accepted for long-lived sessions.
    """

    __slots__ = ("_next", "_lock")

    def __init__(self, start: int = 0) -> None:
        self._next = start % ID_MODULUS
        self._lock = threading.Lock()

    def next(self) -> str:
        with self._lock:
            value = self._next
            self._next = (value + 1) % ID_MODULUS
        return str(value)

    def peek(self) -> str:
        """Return the id the next call to next() will produce."""
        with self._lock:
            return str(self._next)


@dataclass
class RpcRequest:
    """Outbound request envelope."""
    id: str
    method: str
    params: list[Any] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def encode_request(request: RpcRequest) -> str:
    """Serialize a request envelope to JSON text."""
    try:
        return json.dumps(request.to_dict())
    except (TypeError, ValueError) as e:
        raise SerializationError(
            f"Cannot encode {request.method} request: {e}", is_deserialize=False
        ) from e


def decode_request(message: str | bytes) -> RpcRequest:
    """Parse a JSON request envelope (used by tests and tooling)."""
    try:
        data = json.loads(message)
    except ValueError as e:
        raise SerializationError(f"Invalid JSON request: {e}") from e

    if not isinstance(data, dict) or "id" not in data or "method" not in data:
        raise SerializationError(f"Not a request envelope: {data!r}")

    return RpcRequest(
        id=str(data["id"]),
        method=str(data["method"]),
        params=list(data.get("params") or []),
    )


class RpcErrorPayload(BaseModel):
    """Error object carried by an error response."""

    code: int
    message: str = ""

    model_config = {"extra": "ignore"}


class RpcMessage(BaseModel):
    """Inbound frame on the stateful transport.

    Numeric ids are coerced to strings so they match the ids the client
    minted. Extra fields are ignored.
    """

    id: str | None = None
    result: Any = None
    error: RpcErrorPayload | None = None

    model_config = {"extra": "ignore"}

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, bool):
            raise ValueError("id must be a string or integer")
        if isinstance(value, int):
            return str(value)
        return value

    @property
    def has_result(self) -> bool:
        return "result" in self.model_fields_set

    @property
    def is_error(self) -> bool:
        return self.error is not None


def decode_message(message: str | bytes) -> RpcMessage:
    """
    Decode and validate an inbound frame.

    Raises:
        SerializationError: If the frame is not JSON, not an object, or
            carries neither ``result`` nor ``error``.
    """
    try:
        data = json.loads(message)
    except ValueError as e:
        raise SerializationError(f"Invalid JSON frame: {e}") from e

    if not isinstance(data, dict):
        raise SerializationError(f"Frame is not an object: {data!r}")

    try:
        msg = RpcMessage.model_validate(data)
    except ValidationError as e:
        raise SerializationError(f"Invalid frame: {e}") from e

    if not msg.has_result and not msg.is_error:
        raise SerializationError(f"Frame has neither result nor error: {data!r}")
    return msg


def signin_params(username: str, password: str) -> list[dict[str, str]]:
    """Params for the ``signin`` method."""
    return [{"user": username, "pass": password}]
