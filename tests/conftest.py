"""
Pytest configuration and fixtures for surreal-driver tests.

This module provides fixtures for:
- A scripted in-memory SurrealDB server patched in place of the socket
- Connected SurrealWS clients
- Loading wire conformance cases from tests/conformance/*.yaml
- Isolating the global configuration between tests
"""

from pathlib import Path
from typing import Any, AsyncGenerator, Callable
from unittest.mock import AsyncMock, patch

import pytest
import yaml

from fake_server import FakeSurrealServer

CONFORMANCE_DIR = Path(__file__).parent / "conformance"


# ============================================================================
# Unit Test Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def isolated_config():
    """Restore the global configuration after each test."""
    from surreal_driver import config

    saved = dict(config._global_config)
    yield
    config._global_config.clear()
    config._global_config.update(saved)


@pytest.fixture
def server() -> FakeSurrealServer:
    """A fake server that answers the handshake and data requests."""
    return FakeSurrealServer()


@pytest.fixture
def held_server() -> FakeSurrealServer:
    """A fake server that holds the handshake until ack_handshake()."""
    return FakeSurrealServer(auto_handshake=False)


@pytest.fixture
def mock_connect(server: FakeSurrealServer):
    """Patch the WebSocket connect call to open fake sockets on ``server``."""
    with patch("surreal_driver.ws.ws_connect", AsyncMock(side_effect=server.accept)) as m:
        yield m


@pytest.fixture
def make_client() -> Callable[..., Any]:
    from surreal_driver import SurrealWS

    def factory(**overrides: Any) -> SurrealWS:
        options: dict[str, Any] = {
            "url": "ws://localhost:8000/rpc",
            "namespace": "test",
            "database": "test",
            "username": "root",
            "password": "root",
            "timeout": 1.0,
        }
        options.update(overrides)
        url = options.pop("url")
        return SurrealWS(url, **options)

    return factory


@pytest.fixture
async def client(mock_connect, make_client) -> AsyncGenerator[Any, None]:
    """A SurrealWS client connected to the fake server and ready."""
    db = make_client()
    await db.connect()
    await db.wait_until_ready()
    yield db
    await db.close()


# ============================================================================
# Conformance Fixtures
# ============================================================================

def load_conformance_cases(directory: Path) -> list[dict[str, Any]]:
    """Load all wire conformance cases from YAML files."""
    cases = []
    if not directory.exists():
        return cases

    for path in sorted(directory.glob("*.yaml")):
        with open(path) as f:
            doc = yaml.safe_load(f)
            if doc and "cases" in doc:
                for case in doc["cases"]:
                    case["_file"] = path.name
                    case["_category"] = doc.get("name", path.stem)
                    cases.append(case)
    return cases


def pytest_generate_tests(metafunc):
    """Generate test cases from the conformance files.

    Cases with a ``call`` key run an operation against a connected client;
    cases with a ``frame`` key decode a single inbound frame.
    """
    for fixture, key in (("operation_case", "call"), ("frame_case", "frame")):
        if fixture in metafunc.fixturenames:
            cases = [c for c in load_conformance_cases(CONFORMANCE_DIR) if key in c]
            metafunc.parametrize(
                fixture,
                cases,
                ids=[f"{c['_category']}::{c['name']}" for c in cases],
            )
