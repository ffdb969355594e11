"""Semantic type registry and coarse type classification.

Driver-reported parameter types arrive as a raw numeric code plus an
optional type name. The registry maps known type names to a DataType; the
classifier falls back to a DataKind derived from the raw code.

Type codes use the JDBC ``java.sql.Types`` numbering, which is what most
callable-statement drivers report.
"""

from __future__ import annotations

from enum import IntEnum

from proc_tool.core.models import DataKind, DataType


class SqlType(IntEnum):
    BIT = -7
    TINYINT = -6
    SMALLINT = 5
    INTEGER = 4
    BIGINT = -5
    FLOAT = 6
    REAL = 7
    DOUBLE = 8
    NUMERIC = 2
    DECIMAL = 3
    CHAR = 1
    VARCHAR = 12
    LONGVARCHAR = -1
    DATE = 91
    TIME = 92
    TIMESTAMP = 93
    BINARY = -2
    VARBINARY = -3
    LONGVARBINARY = -4
    NULL = 0
    OTHER = 1111
    JAVA_OBJECT = 2000
    DISTINCT = 2001
    STRUCT = 2002
    ARRAY = 2003
    BLOB = 2004
    CLOB = 2005
    REF = 2006
    DATALINK = 70
    BOOLEAN = 16
    ROWID = -8
    NCHAR = -15
    NVARCHAR = -9
    LONGNVARCHAR = -16
    NCLOB = 2011
    SQLXML = 2009
    REF_CURSOR = 2012
    TIME_WITH_TIMEZONE = 2013
    TIMESTAMP_WITH_TIMEZONE = 2014


_KIND_BY_CODE: dict[int, DataKind] = {
    SqlType.BIT: DataKind.BOOLEAN,
    SqlType.BOOLEAN: DataKind.BOOLEAN,
    SqlType.TINYINT: DataKind.NUMERIC,
    SqlType.SMALLINT: DataKind.NUMERIC,
    SqlType.INTEGER: DataKind.NUMERIC,
    SqlType.BIGINT: DataKind.NUMERIC,
    SqlType.FLOAT: DataKind.NUMERIC,
    SqlType.REAL: DataKind.NUMERIC,
    SqlType.DOUBLE: DataKind.NUMERIC,
    SqlType.NUMERIC: DataKind.NUMERIC,
    SqlType.DECIMAL: DataKind.NUMERIC,
    SqlType.CHAR: DataKind.STRING,
    SqlType.VARCHAR: DataKind.STRING,
    SqlType.LONGVARCHAR: DataKind.STRING,
    SqlType.NCHAR: DataKind.STRING,
    SqlType.NVARCHAR: DataKind.STRING,
    SqlType.LONGNVARCHAR: DataKind.STRING,
    SqlType.DATE: DataKind.DATETIME,
    SqlType.TIME: DataKind.DATETIME,
    SqlType.TIMESTAMP: DataKind.DATETIME,
    SqlType.TIME_WITH_TIMEZONE: DataKind.DATETIME,
    SqlType.TIMESTAMP_WITH_TIMEZONE: DataKind.DATETIME,
    SqlType.BINARY: DataKind.BINARY,
    SqlType.VARBINARY: DataKind.BINARY,
    SqlType.LONGVARBINARY: DataKind.BINARY,
    SqlType.BLOB: DataKind.CONTENT,
    SqlType.CLOB: DataKind.CONTENT,
    SqlType.NCLOB: DataKind.CONTENT,
    SqlType.SQLXML: DataKind.CONTENT,
    SqlType.STRUCT: DataKind.STRUCT,
    SqlType.ARRAY: DataKind.ARRAY,
    SqlType.REF: DataKind.REFERENCE,
    SqlType.REF_CURSOR: DataKind.OBJECT,
    SqlType.ROWID: DataKind.ROWID,
    SqlType.OTHER: DataKind.OBJECT,
    SqlType.JAVA_OBJECT: DataKind.OBJECT,
}

# Names some drivers report with a misleading raw code (e.g. bool as BIT).
_KIND_BY_NAME: dict[str, DataKind] = {
    "bool": DataKind.BOOLEAN,
    "boolean": DataKind.BOOLEAN,
    "json": DataKind.CONTENT,
    "jsonb": DataKind.CONTENT,
    "xml": DataKind.CONTENT,
    "uuid": DataKind.STRING,
}


def resolve_data_kind(type_name: str | None, type_code: int) -> DataKind:
    """Classify a driver-reported parameter type coarsely."""
    if type_name:
        kind = _KIND_BY_NAME.get(type_name.lower())
        if kind is not None:
            return kind
    return _KIND_BY_CODE.get(type_code, DataKind.UNKNOWN)


def _std(name: str, code: SqlType) -> DataType:
    return DataType(name=name, type_code=code, data_kind=resolve_data_kind(name, code))


# Static registration table; the data source builds its local registry from it.
STANDARD_TYPES: tuple[DataType, ...] = (
    _std("boolean", SqlType.BOOLEAN),
    _std("smallint", SqlType.SMALLINT),
    _std("integer", SqlType.INTEGER),
    _std("bigint", SqlType.BIGINT),
    _std("real", SqlType.REAL),
    _std("double precision", SqlType.DOUBLE),
    _std("numeric", SqlType.NUMERIC),
    _std("money", SqlType.NUMERIC),
    _std("character", SqlType.CHAR),
    _std("character varying", SqlType.VARCHAR),
    _std("text", SqlType.VARCHAR),
    _std("name", SqlType.VARCHAR),
    _std("uuid", SqlType.OTHER),
    _std("json", SqlType.OTHER),
    _std("jsonb", SqlType.OTHER),
    _std("xml", SqlType.SQLXML),
    _std("date", SqlType.DATE),
    _std("time without time zone", SqlType.TIME),
    _std("time with time zone", SqlType.TIME_WITH_TIMEZONE),
    _std("timestamp without time zone", SqlType.TIMESTAMP),
    _std("timestamp with time zone", SqlType.TIMESTAMP_WITH_TIMEZONE),
    _std("bytea", SqlType.BINARY),
    _std("refcursor", SqlType.REF_CURSOR),
)

# Short and driver-specific spellings of the standard names.
_ALIASES: dict[str, str] = {
    "bool": "boolean",
    "int2": "smallint",
    "int4": "integer",
    "int": "integer",
    "int8": "bigint",
    "float4": "real",
    "float8": "double precision",
    "decimal": "numeric",
    "bpchar": "character",
    "char": "character",
    "varchar": "character varying",
    "time": "time without time zone",
    "timetz": "time with time zone",
    "timestamp": "timestamp without time zone",
    "timestamptz": "timestamp with time zone",
}


class DataTypeRegistry:
    """Registry for looking up semantic data types by name."""

    def __init__(self) -> None:
        self._types: dict[str, DataType] = {}
        self._aliases: dict[str, str] = {}

    def register(self, data_type: DataType, *aliases: str) -> None:
        key = data_type.name.lower()
        self._types[key] = data_type
        for alias in aliases:
            self._aliases[alias.lower()] = key

    def alias(self, alias: str, name: str) -> None:
        self._aliases[alias.lower()] = name.lower()

    def get(self, type_name: str | None) -> DataType | None:
        """Return the registered type for a name, or None if unknown."""
        if not type_name:
            return None
        key = type_name.strip().lower()
        key = self._aliases.get(key, key)
        return self._types.get(key)

    def resolve(self, type_name: str | None, type_code: int) -> DataType:
        """Return the registered type, or one built from the coarse kind."""
        data_type = self.get(type_name)
        if data_type is not None:
            return data_type
        kind = resolve_data_kind(type_name, type_code)
        return DataType(name=type_name or kind.value, type_code=type_code, data_kind=kind)

    @property
    def available(self) -> list[str]:
        return sorted(self._types)


def standard_registry() -> DataTypeRegistry:
    """Build a registry populated from STANDARD_TYPES."""
    reg = DataTypeRegistry()
    for data_type in STANDARD_TYPES:
        reg.register(data_type)
    for alias, name in _ALIASES.items():
        reg.alias(alias, name)
    return reg
