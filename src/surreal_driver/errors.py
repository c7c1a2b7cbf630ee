"""
Error types for the SurrealDB driver.

Error Code Ranges:
- 1xxx: Connection errors
- 2xxx: RPC errors
- 3xxx: Timeout errors
- 4xxx: Server (stateless transport) errors
- 5xxx: Serialization errors

RPC errors additionally carry the JSON-RPC code sent by the server
(for example ``-32601``). Only the codes in ``SAFE_CODES`` are
recoverable; every other code is critical.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any


# ============================================================================
# Standard Error Codes
# ============================================================================


class ErrorCode(IntEnum):
    """Driver-level error codes."""

    # Socket failures, unexpected close
    CONNECTION_ERROR = 1001

    # Error envelope received on the stateful transport
    RPC_ERROR = 2001

    # Bounded wait expired
    TIMEOUT_ERROR = 3001

    # Invalid envelope or error body from the stateless transport
    SURREAL_ERROR = 4001

    # Undecodable frame
    SERIALIZATION_ERROR = 5001


ERROR_CODE_NAMES: dict[ErrorCode, str] = {
    ErrorCode.CONNECTION_ERROR: "CONNECTION_ERROR",
    ErrorCode.RPC_ERROR: "RPC_ERROR",
    ErrorCode.TIMEOUT_ERROR: "TIMEOUT_ERROR",
    ErrorCode.SURREAL_ERROR: "SURREAL_ERROR",
    ErrorCode.SERIALIZATION_ERROR: "SERIALIZATION_ERROR",
}

# RPC error codes the client logs and carries on from
SAFE_CODES: tuple[int, ...] = (-32602, -32000)


# ============================================================================
# Base Error Class
# ============================================================================


class SurrealError(Exception):
    """
    Base error class for all driver errors.

    Example:
        ```python
        try:
            await db.select_all("person")
        except SurrealError as error:
            print(f"[{error.code_name}] {error.message}")
        ```

    Attributes:
        message: Human-readable error message.
        code: Driver error code (see ErrorCode).
        code_name: String name of the error code.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        code_name: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.code_name = code_name or ERROR_CODE_NAMES.get(code, "UNKNOWN_ERROR")

    def __str__(self) -> str:
        return f"{self.code_name}({int(self.code)}): {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, code={self.code!r})"

    def to_dict(self) -> dict[str, Any]:
        """Return a dictionary representation of the error."""
        return {
            "name": self.__class__.__name__,
            "message": self.message,
            "code": int(self.code),
            "code_name": self.code_name,
        }


# ============================================================================
# Specific Error Types
# ============================================================================


class ConnectionError(SurrealError):
    """
    Raised when the socket fails, is closed under a pending request,
    or when a call is made on a client the caller already closed.
    """

    def __init__(self, message: str, close_code: int | None = None) -> None:
        super().__init__(message, ErrorCode.CONNECTION_ERROR)
        self.close_code = close_code


class RpcError(SurrealError):
    """
    Error envelope received on the stateful transport.

    ``code`` is the server's JSON-RPC code rather than an ErrorCode;
    ``critical`` is False only for codes listed in SAFE_CODES.

    Example:
        ```python
        try:
            await db.execute("SELEC * FROM person")
        except RpcError as error:
            print(error.code, error.message)
        ```
    """

    def __init__(
        self,
        code: int,
        message: str,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.RPC_ERROR, "RPC_ERROR")
        self.code = code
        self.request_id = request_id

    @classmethod
    def from_payload(cls, payload: dict[str, Any], request_id: str | None = None) -> RpcError:
        """Build an RpcError from an ``{"code", "message"}`` error object."""
        return cls(
            int(payload.get("code", 0)),
            str(payload.get("message", "")),
            request_id=request_id,
        )

    @property
    def critical(self) -> bool:
        return self.code not in SAFE_CODES

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["code"] = self.code
        data["critical"] = self.critical
        data["request_id"] = self.request_id
        return data


class TimeoutError(SurrealError):
    """
    Raised when a bounded wait expires.

    Attributes:
        timeout: The timeout duration in seconds.
    """

    def __init__(
        self, message: str = "Request timed out", timeout: float | None = None
    ) -> None:
        super().__init__(message, ErrorCode.TIMEOUT_ERROR)
        self.timeout = timeout


class SurrealException(SurrealError):
    """
    Error body or malformed envelope from the stateless transport.

    Built from the server's ``{"code", "details", "description"}`` triple.
    """

    def __init__(
        self,
        status: int | str | None = None,
        details: str | None = None,
        description: str | None = None,
    ) -> None:
        super().__init__(
            f"{status} {details}: {description}", ErrorCode.SURREAL_ERROR
        )
        self.status = status
        self.details = details
        self.description = description

    @classmethod
    def from_payload(cls, payload: Any) -> SurrealException:
        if not isinstance(payload, dict):
            return cls(None, "Invalid response", repr(payload))
        return cls(
            payload.get("code"),
            payload.get("details"),
            payload.get("description") or payload.get("information"),
        )

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            status=self.status,
            details=self.details,
            description=self.description,
        )
        return data


class SerializationError(SurrealError):
    """Raised when a frame cannot be decoded into a valid envelope."""

    def __init__(self, message: str, is_deserialize: bool = True) -> None:
        super().__init__(message, ErrorCode.SERIALIZATION_ERROR)
        self.is_deserialize = is_deserialize


# ============================================================================
# Error Utilities
# ============================================================================


def is_error_code(error: BaseException, code: ErrorCode) -> bool:
    """Check if an error is a SurrealError carrying a specific driver code."""
    if isinstance(error, RpcError):
        return code == ErrorCode.RPC_ERROR
    return isinstance(error, SurrealError) and error.code == code
