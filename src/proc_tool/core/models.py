"""Value models for proc-tool.

Pydantic models for parameter metadata coming from the catalog and the
driver, the reconciled output columns, and the tabular result handed to
formatters.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict


class ParameterDirection(StrEnum):
    IN = "in"
    OUT = "out"
    INOUT = "inout"
    RETURN = "return"
    UNKNOWN = "unknown"

    @property
    def is_output(self) -> bool:
        return self in (
            ParameterDirection.OUT,
            ParameterDirection.INOUT,
            ParameterDirection.RETURN,
        )


class DataKind(StrEnum):
    """Coarse value category used when no local data type is known."""

    BOOLEAN = "boolean"
    NUMERIC = "numeric"
    STRING = "string"
    DATETIME = "datetime"
    BINARY = "binary"
    CONTENT = "content"
    STRUCT = "struct"
    ARRAY = "array"
    OBJECT = "object"
    REFERENCE = "reference"
    ROWID = "rowid"
    UNKNOWN = "unknown"


class DataType(BaseModel):
    """A semantic type: display name, raw SqlType code and value kind."""

    model_config = ConfigDict(frozen=True)

    name: str
    type_code: int
    data_kind: DataKind


class ParameterDescriptor(BaseModel):
    """A routine parameter as declared in the catalog."""

    model_config = ConfigDict(frozen=True)

    name: str
    data_type: DataType
    direction: ParameterDirection
    position: int


class DriverParameterInfo(BaseModel):
    """A call parameter as reported by the driver at runtime."""

    model_config = ConfigDict(frozen=True)

    ordinal: int
    direction: ParameterDirection
    type_code: int
    type_name: str | None = None

    @property
    def is_output(self) -> bool:
        # The "?=" return slot is registered like any out parameter.
        return self.direction.is_output


class OutputColumn(BaseModel):
    """One reconciled output parameter, projected as a result column."""

    model_config = ConfigDict(frozen=True)

    name: str
    data_type: DataType
    local_index: int
    source_ordinal: int


class ColumnMeta(BaseModel):
    """Metadata for a single result column."""

    name: str
    type_name: str


class QueryResult(BaseModel):
    """Tabular result passed to formatters."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    columns: list[ColumnMeta]
    rows: list[tuple[Any, ...]]
    row_count: int
    status_message: str
