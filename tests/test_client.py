"""
Unit tests for the Client facade, connect() and BlockingClient.
"""

from concurrent.futures import ThreadPoolExecutor

import httpx
import pytest

from surreal_driver import (
    BlockingClient,
    Client,
    ConnectionError,
    ConnectionState,
    SurrealHTTP,
    SurrealWS,
    connect,
)


class TestClient:
    """Tests for transport selection by URL scheme."""

    @pytest.mark.parametrize(
        "url, cls",
        [
            ("ws://localhost:8000/rpc", SurrealWS),
            ("wss://db.example.com/rpc", SurrealWS),
            ("localhost:8000", SurrealWS),
            ("http://localhost:8000", SurrealHTTP),
            ("https://db.example.com", SurrealHTTP),
        ],
    )
    def test_transport_by_scheme(self, url, cls):
        assert isinstance(Client(url).transport, cls)

    def test_is_stateful(self):
        assert Client("ws://localhost:8000/rpc").is_stateful
        assert not Client("http://localhost:8000").is_stateful

    def test_defaults_to_configured_url(self):
        from surreal_driver import configure

        configure(url="http://db.internal:8000")
        client = Client()

        assert isinstance(client.transport, SurrealHTTP)
        assert client.url == "http://db.internal:8000"

    def test_forwards_operations(self):
        client = Client("ws://localhost:8000/rpc")
        assert client.select_all == client.transport.select_all

    def test_private_attributes_are_not_forwarded(self):
        client = Client("ws://localhost:8000/rpc")
        with pytest.raises(AttributeError):
            client._correlator

    async def test_http_operations(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(
                200, json=[{"status": "OK", "time": "1ms", "result": [{"id": "person:tobie"}]}]
            )
        )
        async with Client("http://localhost:8000", transport=transport) as db:
            response = await db.select_one("person", "tobie")

        assert response.data == {"id": "tobie"}

    async def test_ws_context_manager(self, mock_connect, server):
        async with Client("ws://localhost:8000/rpc", timeout=1.0) as db:
            assert db.state is ConnectionState.CONNECTED
            await db.create_with_id("person", "tobie", {"name": "Tobie"})

        assert db.state is ConnectionState.CLOSED
        assert server.tables["person"]["tobie"]["name"] == "Tobie"


class TestConnect:
    async def test_connect_returns_connected_client(self, mock_connect):
        db = await connect("ws://localhost:8000/rpc", namespace="app", database="prod", timeout=1.0)

        assert isinstance(db, Client)
        assert db.state is ConnectionState.CONNECTED
        await db.wait_until_ready()
        assert (db.namespace, db.database) == ("app", "prod")
        await db.close()

    async def test_connect_http_does_not_open_socket(self, mock_connect):
        db = await connect("http://localhost:8000")

        assert not db.is_stateful
        mock_connect.assert_not_called()
        await db.close()


class TestBlockingClient:
    """Tests for the synchronous facade."""

    def test_operations(self, mock_connect, server):
        with BlockingClient("ws://localhost:8000/rpc", timeout=1.0) as db:
            created = db.create_with_id("person", "tobie", {"name": "Tobie"})
            selected = db.select_one("person", "tobie")

            assert created.data == {"name": "Tobie", "id": "tobie"}
            assert selected.data == created.data
            assert db.ready

        assert db.state is ConnectionState.CLOSED

    def test_shared_between_threads(self, mock_connect, server):
        """Test that concurrent threads each receive their own reply."""
        with BlockingClient("ws://localhost:8000/rpc", timeout=1.0) as db:
            for key in range(8):
                db.create_with_id("item", str(key), {"n": key})

            with ThreadPoolExecutor(max_workers=8) as pool:
                results = list(pool.map(lambda k: db.select_one("item", str(k)), range(8)))

        assert [r.data["n"] for r in results] == list(range(8))

    def test_call_after_close(self, mock_connect, server):
        db = BlockingClient("ws://localhost:8000/rpc", timeout=1.0)
        db.connect()
        db.close()
        db.close()

        with pytest.raises(ConnectionError, match="Client is closed"):
            db.select_all("person")

    def test_modify(self, mock_connect, server):
        with BlockingClient("ws://localhost:8000/rpc", timeout=1.0) as db:
            db.create_with_id("person", "tobie", {"name": "Tobie"})
            response = db.modify(
                "person", "tobie", [{"op": "replace", "path": "/name", "value": "T"}]
            )

        assert response.data == [{"op": "replace", "path": "/name", "value": "T"}]
