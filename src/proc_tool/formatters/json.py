"""JSON formatter: one object per row, keyed by column name."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from proc_tool.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from proc_tool.core.models import QueryResult


def _serialize_value(val: Any) -> Any:
    if isinstance(val, (int, float, str, bool, type(None))):
        return val
    if isinstance(val, (bytes, bytearray, memoryview)):
        return bytes(val).hex()
    return str(val)


class JSONFormatter:
    def __init__(self, compact: bool = False) -> None:
        self.compact = compact

    def format(self, result: QueryResult) -> Iterator[str]:
        names = [col.name for col in result.columns]
        rows = [
            {name: _serialize_value(val) for name, val in zip(names, row, strict=True)}
            for row in result.rows
        ]
        yield json.dumps(rows, indent=None if self.compact else 2, default=str)


registry.register("json", JSONFormatter)
