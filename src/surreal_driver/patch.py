"""
JSON Patch operations for the ``modify`` method.

Example::

    from surreal_driver import AddPatch, RemovePatch

    await db.modify("person", "tobie", [
        AddPatch("/tags", ["developer", "engineer"]),
        RemovePatch("/address"),
    ])
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

__all__ = ["Patch", "AddPatch", "ReplacePatch", "RemovePatch", "patches_to_json"]


@dataclass
class Patch:
    """A single JSON Patch operation.

    Attributes:
        op: add, replace or remove
        path: JSON pointer to the field, e.g. ``/address``
        value: Value for add/replace
    """
    op: str
    path: str
    value: Any = ""

    @property
    def json(self) -> dict[str, Any]:
        return {"op": self.op, "path": self.path, "value": self.value}


class AddPatch(Patch):
    """Add a value, e.g. ``AddPatch("/tags", ["developer"])``."""

    def __init__(self, path: str, value: Any) -> None:
        super().__init__("add", path, value)


class ReplacePatch(Patch):
    """Replace the value at ``path``."""

    def __init__(self, path: str, value: Any) -> None:
        super().__init__("replace", path, value)


class RemovePatch(Patch):
    """Remove the field at ``path``."""

    def __init__(self, path: str) -> None:
        super().__init__("remove", path)

    @property
    def json(self) -> dict[str, Any]:
        return {"op": self.op, "path": self.path}


def patches_to_json(patches: Iterable[Patch | dict[str, Any]]) -> list[dict[str, Any]]:
    """Convert patch objects (or plain dicts) to wire params."""
    return [p.json if isinstance(p, Patch) else dict(p) for p in patches]
