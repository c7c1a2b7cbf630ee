"""
Unit tests for the response views.

Tests cover:
- Query results passed through unchanged
- Record id splitting for zero, one and many records
- Patch diff unwrapping
- Envelope validation for the stateless transport
"""

import pytest

from surreal_driver import (
    CrudResponse,
    PatchResponse,
    QueryResponse,
    ResponseKind,
    SurrealException,
    SurrealResponse,
    split_record_id,
    table_record_id,
)
from surreal_driver.response import shape_response


class TestRecordIds:
    def test_table_record_id(self):
        assert table_record_id("person", "tobie") == "person:tobie"
        assert table_record_id("person", 7) == "person:7"
        assert table_record_id("person", "") == "person"
        assert table_record_id("person") == "person"

    def test_split_record_id(self):
        assert split_record_id("person:tobie") == ("person", "tobie")
        assert split_record_id("person") == ("person", "")

    def test_split_at_first_colon(self):
        assert split_record_id("event:2024:01") == ("event", "2024:01")


class TestQueryResponse:
    def test_result_is_unchanged(self):
        raw = [{"status": "OK", "time": "1ms", "result": [{"id": "person:tobie"}]}]
        response = QueryResponse(raw)

        assert response.result == raw
        assert not response.no_data

    def test_no_statements(self):
        assert QueryResponse(None).no_data

    def test_statement_error(self):
        raw = [
            {"status": "OK", "time": "1ms", "result": []},
            {"status": "ERR", "time": "1ms", "detail": "Table not found"},
        ]
        with pytest.raises(SurrealException) as exc_info:
            QueryResponse(raw)
        assert exc_info.value.description == "Table not found"


class TestCrudResponse:
    def test_no_records(self):
        response = CrudResponse([])

        assert response.table is None
        assert response.data is None
        assert response.no_data
        assert len(response) == 0

    def test_null_result(self):
        assert CrudResponse(None).no_data

    def test_single_record(self):
        response = CrudResponse([{"id": "person:tobie", "name": "Tobie"}])

        assert response.table == "person"
        assert response.data == {"id": "tobie", "name": "Tobie"}

    def test_single_object_result(self):
        response = CrudResponse({"id": "person:tobie"})
        assert response.data == {"id": "tobie"}

    def test_many_records(self):
        response = CrudResponse([{"id": "person:a"}, {"id": "person:b"}])

        assert response.table == "person"
        assert response.data == [{"id": "a"}, {"id": "b"}]
        assert list(response) == [{"id": "a"}, {"id": "b"}]

    def test_raw_is_not_mutated(self):
        raw = [{"id": "person:tobie"}]
        CrudResponse(raw)
        assert raw == [{"id": "person:tobie"}]

    def test_rows_without_ids_are_kept(self):
        response = CrudResponse([{"count": 3}])

        assert response.table is None
        assert response.data == {"count": 3}

    def test_equality(self):
        assert CrudResponse([{"id": "person:a"}]) == CrudResponse({"id": "person:a"})


class TestPatchResponse:
    def test_unwraps_diffs(self):
        response = PatchResponse([[{"a": 1}], [{"a": 2}]])

        assert response.data == [{"a": 1}, {"a": 2}]
        assert len(response) == 2
        assert not response.no_change

    def test_single_diff(self):
        diff = [{"op": "replace", "path": "/name", "value": "T"}]
        response = PatchResponse([[diff]])
        assert response.data == diff

    def test_no_change(self):
        response = PatchResponse([[None]])

        assert response.no_change
        assert response.data is None

    def test_empty(self):
        response = PatchResponse([])
        assert response.no_change
        assert response.data is None


class TestShapeResponse:
    @pytest.mark.parametrize(
        "kind, cls",
        [
            (ResponseKind.QUERY, QueryResponse),
            (ResponseKind.CRUD, CrudResponse),
            (ResponseKind.PATCH, PatchResponse),
        ],
    )
    def test_kind_selects_view(self, kind, cls):
        response = shape_response(kind, [])
        assert isinstance(response, cls)
        assert response.raw == []


class TestSurrealResponse:
    def test_valid_envelope(self):
        response = SurrealResponse(
            [{"status": "OK", "time": "42µs", "result": [{"id": "hospital:central", "beds": 10}]}]
        )

        assert response.status == "OK"
        assert response.time == "42µs"
        assert response.table == "hospital"
        assert response.data == {"id": "central", "beds": 10}

    def test_empty_result(self):
        response = SurrealResponse([{"status": "OK", "time": "1ms", "result": []}])
        assert response.no_data
        assert response.data is None

    def test_error_object(self):
        with pytest.raises(SurrealException) as exc_info:
            SurrealResponse({"code": 400, "details": "Bad request", "description": "Oops"})
        assert exc_info.value.status == 400

    @pytest.mark.parametrize("body", [[], None, "text", [{"status": "OK"}], [42]])
    def test_invalid_envelope(self, body):
        with pytest.raises(SurrealException) as exc_info:
            SurrealResponse(body)
        assert exc_info.value.details == "Invalid response"

    def test_failed_statement(self):
        with pytest.raises(SurrealException) as exc_info:
            SurrealResponse([{"status": "ERR", "time": "1ms", "detail": "Database record already exists"}])

        assert exc_info.value.status == "ERR"
        assert exc_info.value.description == "Database record already exists"
