"""Synthetic single-row result built from reconciled output parameters.

A call that only yields output parameters still "has a result": the
projector exposes those parameters as one row whose columns are the
reconciled OutputColumns. Values are not copied at commit time; each is
read from the live call by source ordinal on first access.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from proc_tool.core.exceptions import ProjectionError
from proc_tool.core.models import ColumnMeta, OutputColumn, QueryResult

if TYPE_CHECKING:
    from collections.abc import Callable

    from proc_tool.core.models import DataType

_UNSET = object()


class SyntheticResultRow:
    """The committed row. Columns are frozen; values are memoized on read."""

    def __init__(
        self, columns: tuple[OutputColumn, ...], fetch: Callable[[int], Any]
    ) -> None:
        self.columns = columns
        self._fetch = fetch
        self._values: list[Any] = [_UNSET] * len(columns)

    def __len__(self) -> int:
        return len(self.columns)

    def get(self, local_index: int) -> Any:
        value = self._values[local_index]
        if value is _UNSET:
            value = self._fetch(self.columns[local_index].source_ordinal)
            self._values[local_index] = value
        return value

    def values(self) -> tuple[Any, ...]:
        return tuple(self.get(i) for i in range(len(self.columns)))

    def as_dict(self) -> dict[str, Any]:
        return {col.name: self.get(i) for i, col in enumerate(self.columns)}


class OutputResultProjector:
    """Accumulates output columns, then commits exactly one row."""

    def __init__(self, fetch: Callable[[int], Any]) -> None:
        self._fetch = fetch
        self._columns: list[OutputColumn] = []
        self._row: SyntheticResultRow | None = None
        self._read = False
        self._closed = False

    def add_column(
        self, name: str, data_type: DataType, local_index: int, source_ordinal: int
    ) -> None:
        """Append a column. Local indices are expected to be dense and ascending."""
        if self._row is not None:
            raise ProjectionError("Cannot add columns after the row is committed")
        self._columns.append(
            OutputColumn(
                name=name,
                data_type=data_type,
                local_index=local_index,
                source_ordinal=source_ordinal,
            )
        )

    def add_columns(self, columns: tuple[OutputColumn, ...] | list[OutputColumn]) -> None:
        for col in columns:
            self.add_column(col.name, col.data_type, col.local_index, col.source_ordinal)

    def add_row(self) -> None:
        """Commit the single row. Call once, after execution."""
        if self._closed:
            raise ProjectionError("Result is closed")
        if self._row is not None:
            raise ProjectionError("Synthetic row already committed")
        self._row = SyntheticResultRow(tuple(self._columns), self._fetch)

    @property
    def column_count(self) -> int:
        return len(self._columns)

    @property
    def columns(self) -> tuple[OutputColumn, ...]:
        return tuple(self._columns)

    @property
    def committed(self) -> bool:
        return self._row is not None

    @property
    def row(self) -> SyntheticResultRow:
        if self._closed:
            raise ProjectionError("Result is closed")
        if self._row is None:
            raise ProjectionError("No row committed; execute the call first")
        return self._row

    def fetch_one(self) -> tuple[Any, ...] | None:
        """Return the row on the first call and None afterwards."""
        row = self.row
        if self._read:
            return None
        self._read = True
        return row.values()

    def fetch_all(self) -> list[tuple[Any, ...]]:
        one = self.fetch_one()
        return [one] if one is not None else []

    def to_query_result(self) -> QueryResult:
        row = self.row
        return QueryResult(
            columns=[
                ColumnMeta(name=col.name, type_name=col.data_type.name)
                for col in row.columns
            ],
            rows=[row.values()],
            row_count=1,
            status_message="CALL",
        )

    def close(self) -> None:
        self._row = None
        self._closed = True
