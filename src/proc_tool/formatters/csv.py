"""CSV formatter (RFC 4180)."""

from __future__ import annotations

import csv
from io import StringIO
from typing import TYPE_CHECKING, Any

from proc_tool.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from proc_tool.core.models import QueryResult


def _line(values: Iterable[Any]) -> str:
    buf = StringIO()
    csv.writer(buf).writerow(["" if v is None else str(v) for v in values])
    return buf.getvalue().rstrip("\r\n")


class CSVFormatter:
    def __init__(self, no_header: bool = False) -> None:
        self.no_header = no_header

    def format(self, result: QueryResult) -> Iterator[str]:
        if not self.no_header:
            yield _line(col.name for col in result.columns)
        for row in result.rows:
            yield _line(row)


registry.register("csv", CSVFormatter)
