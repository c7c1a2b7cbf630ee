"""
Configuration management for surreal-driver

This module provides global connection defaults, seeded from the environment.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import SurrealConfig


def _get_env(key: str) -> str | None:
    """Get environment variable value."""
    return os.environ.get(key)


def _parse_timeout(value: str | None) -> float | None:
    if value is None:
        return 30.0
    if value.strip().lower() in ("", "none"):
        return None
    return float(value)


# Global configuration
_global_config: dict[str, str | float | None] = {
    "url": _get_env("SURREAL_URL") or "ws://localhost:8000/rpc",
    "namespace": _get_env("SURREAL_NAMESPACE") or _get_env("SURREAL_NS") or "test",
    "database": _get_env("SURREAL_DATABASE") or _get_env("SURREAL_DB") or "test",
    "username": _get_env("SURREAL_USERNAME") or _get_env("SURREAL_USER") or "root",
    "password": _get_env("SURREAL_PASSWORD") or _get_env("SURREAL_PASS") or "root",
    "timeout": _parse_timeout(_get_env("SURREAL_TIMEOUT")),
}

_UNSET = object()


def configure(
    *,
    url: str | None = None,
    namespace: str | None = None,
    database: str | None = None,
    username: str | None = None,
    password: str | None = None,
    timeout: float | None | object = _UNSET,
) -> None:
    """
    Configure connection defaults.

    Args:
        url: Server URL (ws://, wss://, http:// or https://)
        namespace: Namespace selected after connecting
        database: Database selected after connecting
        username: Username used to sign in
        password: Password used to sign in
        timeout: Seconds to wait for readiness and for each reply; None waits forever

    Example::

        from surreal_driver import configure

        configure(url="ws://db.internal:8000/rpc", namespace="app", database="prod")
    """
    global _global_config

    if url is not None:
        _global_config["url"] = url
    if namespace is not None:
        _global_config["namespace"] = namespace
    if database is not None:
        _global_config["database"] = database
    if username is not None:
        _global_config["username"] = username
    if password is not None:
        _global_config["password"] = password
    if timeout is not _UNSET:
        _global_config["timeout"] = timeout  # type: ignore[assignment]


def get_config() -> "SurrealConfig":
    """
    Get current connection defaults.

    Returns:
        Current SurrealConfig object
    """
    from .types import SurrealConfig

    timeout = _global_config["timeout"]
    return SurrealConfig(
        url=str(_global_config["url"] or "ws://localhost:8000/rpc"),
        namespace=str(_global_config["namespace"] or "test"),
        database=str(_global_config["database"] or "test"),
        username=str(_global_config["username"] or "root"),
        password=str(_global_config["password"] or "root"),
        timeout=float(timeout) if timeout is not None else None,
    )


def configure_from_env() -> None:
    """
    Configure from environment variables.

    Reads from:
        - SURREAL_URL
        - SURREAL_NAMESPACE or SURREAL_NS
        - SURREAL_DATABASE or SURREAL_DB
        - SURREAL_USERNAME or SURREAL_USER
        - SURREAL_PASSWORD or SURREAL_PASS
        - SURREAL_TIMEOUT
    """
    configure(
        url=_get_env("SURREAL_URL"),
        namespace=_get_env("SURREAL_NAMESPACE") or _get_env("SURREAL_NS"),
        database=_get_env("SURREAL_DATABASE") or _get_env("SURREAL_DB"),
        username=_get_env("SURREAL_USERNAME") or _get_env("SURREAL_USER"),
        password=_get_env("SURREAL_PASSWORD") or _get_env("SURREAL_PASS"),
    )
    if _get_env("SURREAL_TIMEOUT") is not None:
        configure(timeout=_parse_timeout(_get_env("SURREAL_TIMEOUT")))


def build_ws_url(url: str) -> str:
    """
    Build the RPC WebSocket URL from a server URL.

    Args:
        url: ws(s):// URL (returned as-is), http(s):// base URL, or bare host[:port]

    Returns:
        WebSocket URL ending in /rpc for http(s) and bare hosts
    """
    if url.startswith("wss://") or url.startswith("ws://"):
        return url

    if url.startswith("https://"):
        base = url.replace("https://", "wss://", 1).rstrip("/")
        return f"{base}/rpc" if not base.endswith("/rpc") else base

    if url.startswith("http://"):
        base = url.replace("http://", "ws://", 1).rstrip("/")
        return f"{base}/rpc" if not base.endswith("/rpc") else base

    # Just a host like "localhost:8000"
    return f"ws://{url.rstrip('/')}/rpc"


def build_http_url(url: str) -> str:
    """Build the HTTP base URL from a server URL, dropping any /rpc suffix."""
    if url.startswith("wss://"):
        url = url.replace("wss://", "https://", 1)
    elif url.startswith("ws://"):
        url = url.replace("ws://", "http://", 1)
    elif not (url.startswith("http://") or url.startswith("https://")):
        url = f"http://{url}"

    url = url.rstrip("/")
    if url.endswith("/rpc"):
        url = url[: -len("/rpc")]
    return url
