"""
Conformance tests generated from the YAML conformance files in tests/conformance/.

Operation cases run against a SurrealWS client connected to the fake
server; frame cases exercise the inbound frame decoder on its own.
"""

from typing import Any

import pytest

import surreal_driver
from fake_server import RpcFault
from surreal_driver import RpcError, SerializationError
from surreal_driver.request import decode_message


class TestOperationConformance:
    async def test_operation(self, client, server, operation_case: dict[str, Any]):
        """Run a single operation case from the YAML conformance files."""
        case = operation_case
        self._prepare(server, case)

        operation = getattr(client, case["call"])
        args = case.get("args", [])

        if "expect_error" in case:
            expected = dict(case["expect_error"])
            error_type = getattr(surreal_driver, expected.pop("type"))
            with pytest.raises(error_type) as exc_info:
                await operation(*args)
            for attr, value in expected.items():
                assert getattr(exc_info.value, attr) == value, f"{case['name']}: {attr}"
            return

        response = await operation(*args)

        if "expect_request" in case:
            sent = server.socket.requests[-1]
            assert sent["method"] == case["expect_request"]["method"]
            assert sent["params"] == case["expect_request"]["params"]

        for attr, value in case.get("expect", {}).items():
            assert getattr(response, attr) == value, f"{case['name']}: {attr}"

    def _prepare(self, server, case: dict[str, Any]) -> None:
        for table, rows in case.get("seed", {}).items():
            server.tables[table] = dict(rows)

        if "fault" in case:
            fault = case["fault"]

            def raise_fault(params: list[Any]) -> Any:
                raise RpcFault(fault["code"], fault["message"])

            server.handlers[fault["method"]] = raise_fault

        if "override" in case:
            override = case["override"]
            server.handlers[override["method"]] = lambda params: override["result"]


class TestFrameConformance:
    def test_frame(self, frame_case: dict[str, Any]):
        """Decode a single frame from the YAML conformance files."""
        case = frame_case

        if "expect_error" in case:
            assert case["expect_error"] == "SerializationError"
            with pytest.raises(SerializationError):
                decode_message(case["frame"])
            return

        msg = decode_message(case["frame"])
        expected = dict(case["expect"])

        if "error_code" in expected:
            error = RpcError(msg.error.code, msg.error.message, request_id=msg.id)
            assert error.code == expected.pop("error_code")
            if "critical" in expected:
                assert error.critical is expected.pop("critical")

        for attr, value in expected.items():
            assert getattr(msg, attr) == value, f"{case['name']}: {attr}"
