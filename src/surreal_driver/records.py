"""Composite record identifiers (``table:key``)."""

from __future__ import annotations


def table_record_id(table: str, key: str | int | None = None) -> str:
    """
    Build the wire target for a table or a single record.

    Args:
        table: Table name
        key: Optional record key

    Returns:
        ``table`` when key is empty or None, otherwise ``table:key``
    """
    if key is None or key == "":
        return table
    return f"{table}:{key}"


def split_record_id(record_id: str) -> tuple[str, str]:
    """
    Split a composite identifier at the first ``:``.

    ``"person:tobie"`` gives ``("person", "tobie")``; a bare table name
    gives ``(table, "")``. Keys may themselves contain ``:``.
    """
    table, _, key = record_id.partition(":")
    return table, key
