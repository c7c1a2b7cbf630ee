"""
Response views built from raw results.

The stateful client picks the view for each operation:

- QueryResponse: ``execute`` (raw statement results, passed through)
- CrudResponse: create/select/update/delete (record ids split into table and key)
- PatchResponse: modify (before/after diffs)

SurrealResponse wraps the stateless transport's ``[{status, time, result}]``
envelope and applies the same record shaping as CrudResponse.
"""

from __future__ import annotations

from typing import Any, Iterator

from pydantic import BaseModel, ValidationError

from .errors import SurrealException
from .records import split_record_id
from .types import ResponseKind

__all__ = [
    "RpcResponse",
    "QueryResponse",
    "CrudResponse",
    "PatchResponse",
    "SurrealResponse",
    "QueryResult",
    "shape_response",
]


def _collapse(rows: list[Any]) -> Any:
    """A single row is exposed as itself, otherwise the list is kept."""
    if not rows:
        return None
    return rows[0] if len(rows) == 1 else rows


def _as_rows(raw: Any) -> list[Any]:
    if raw is None:
        return []
    if isinstance(raw, list):
        return raw
    return [raw]


def _split_rows(rows: list[Any]) -> tuple[str | None, list[Any]]:
    """Replace each row's ``table:key`` id with the bare key.

    The table name is taken from the first row; rows are assumed to share it.
    """
    table: str | None = None
    shaped: list[Any] = []
    for row in rows:
        if isinstance(row, dict) and isinstance(row.get("id"), str):
            row_table, key = split_record_id(row["id"])
            if table is None:
                table = row_table
            row = {**row, "id": key}
        shaped.append(row)
    return table, shaped


class RpcResponse:
    """Base class of the shaped responses."""

    kind: ResponseKind

    __slots__ = ("raw",)

    def __init__(self, raw: Any) -> None:
        self.raw = raw

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.raw!r})"


class QueryResponse(RpcResponse):
    """
    Result of ``execute``.

    ``result`` is the server's list of statement results, unchanged.
    A None result means no statement was run; ``no_data`` is then True.

    Raises:
        SurrealException: If any statement reports status ``ERR``.
    """

    kind = ResponseKind.QUERY

    __slots__ = ()

    def __init__(self, raw: Any) -> None:
        super().__init__(raw)
        if isinstance(raw, list):
            for statement in raw:
                if isinstance(statement, dict) and statement.get("status") == "ERR":
                    raise SurrealException(
                        "ERR",
                        "Query statement failed",
                        statement.get("detail") or statement.get("result"),
                    )

    @property
    def result(self) -> Any:
        return self.raw

    @property
    def no_data(self) -> bool:
        return self.raw is None

    def __eq__(self, other: object) -> bool:
        if isinstance(other, QueryResponse):
            return self.raw == other.raw
        return NotImplemented


class CrudResponse(RpcResponse):
    """
    Records returned by create/select/update/delete.

    Attributes:
        table: Table of the returned records; None when there are none
        data: The single record, a list of records, or None
        records: Always a list
    """

    kind = ResponseKind.CRUD

    __slots__ = ("table", "records")

    def __init__(self, raw: Any) -> None:
        super().__init__(raw)
        self.table, self.records = _split_rows(_as_rows(raw))

    @property
    def data(self) -> Any:
        return _collapse(self.records)

    @property
    def no_data(self) -> bool:
        return not self.records

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.records)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CrudResponse):
            return self.table == other.table and self.records == other.records
        return NotImplemented


class PatchResponse(RpcResponse):
    """
    Diffs returned by ``modify``.

    The raw result holds one single-element list per record, wrapping that
    record's diff. ``data`` unwraps them and collapses a single diff.
    """

    kind = ResponseKind.PATCH

    __slots__ = ("diffs",)

    def __init__(self, raw: Any) -> None:
        super().__init__(raw)
        self.diffs = [
            row[0] if isinstance(row, list) and len(row) == 1 else row
            for row in _as_rows(raw)
        ]

    @property
    def data(self) -> Any:
        return _collapse(self.diffs)

    @property
    def no_change(self) -> bool:
        """True when there is no diff or every diff is empty."""
        return all(diff is None or diff == [] or diff == {} for diff in self.diffs)

    def __len__(self) -> int:
        return len(self.diffs)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PatchResponse):
            return self.diffs == other.diffs
        return NotImplemented


_SHAPERS: dict[ResponseKind, type[RpcResponse]] = {
    ResponseKind.QUERY: QueryResponse,
    ResponseKind.CRUD: CrudResponse,
    ResponseKind.PATCH: PatchResponse,
}


def shape_response(kind: ResponseKind, raw: Any) -> RpcResponse:
    """Build the response view for an operation kind."""
    return _SHAPERS[kind](raw)


# ============================================================================
# Stateless transport
# ============================================================================


class QueryResult(BaseModel):
    """One statement result from the stateless transport."""

    status: str
    time: str
    result: Any = None
    detail: str | None = None

    model_config = {"extra": "ignore"}


class SurrealResponse:
    """
    Response from the stateless transport.

    Validates the ``[{status, time, result}]`` envelope and shapes the
    first statement's records like CrudResponse.

    Raises:
        SurrealException: If the body is an error object, does not have the
            expected shape, or the statement failed.
    """

    __slots__ = ("status", "time", "table", "records")

    def __init__(self, response: Any) -> None:
        if isinstance(response, dict):
            raise SurrealException.from_payload(response)

        if not isinstance(response, list) or not response:
            raise SurrealException(None, "Invalid response", repr(response))

        try:
            statement = QueryResult.model_validate(response[0])
        except ValidationError as e:
            raise SurrealException(None, "Invalid response", str(e)) from e

        if statement.status != "OK":
            raise SurrealException(
                statement.status, "Query statement failed", statement.detail
            )

        self.status = statement.status
        self.time = statement.time
        self.table, self.records = _split_rows(_as_rows(statement.result))

    @property
    def data(self) -> Any:
        return _collapse(self.records)

    @property
    def no_data(self) -> bool:
        return not self.records

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.records)

    def __repr__(self) -> str:
        return f"SurrealResponse(status={self.status!r}, table={self.table!r}, data={self.data!r})"
