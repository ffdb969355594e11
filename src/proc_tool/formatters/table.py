"""Rich table formatter."""

from __future__ import annotations

import shutil
from io import StringIO
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from proc_tool.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from proc_tool.core.models import QueryResult

_NO_RESULTS = "No results"


def _cell(value: object, width: int) -> str:
    text = "" if value is None else str(value)
    if len(text) <= width:
        return text
    return text[: width - 1] + "…"


class TableFormatter:
    def __init__(self, width: int = 40, show_types: bool = False) -> None:
        self.width = width
        self.show_types = show_types

    def format(self, result: QueryResult) -> Iterator[str]:
        if not result.columns or not result.rows:
            yield _NO_RESULTS
            return

        table = Table(show_edge=True, pad_edge=True)
        for col in result.columns:
            header = f"{col.name}\n[dim]{col.type_name}[/dim]" if self.show_types else col.name
            table.add_column(header, no_wrap=True)
        for row in result.rows:
            table.add_row(*(_cell(v, self.width) for v in row))

        buf = StringIO()
        term_width = shutil.get_terminal_size((120, 24)).columns
        Console(file=buf, force_terminal=True, width=term_width).print(table)
        yield buf.getvalue().rstrip("\n")


registry.register("table", TableFormatter)
