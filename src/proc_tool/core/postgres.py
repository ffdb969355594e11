"""PostgreSQL catalog and driver call adapters.

Supplies the call layer with a navigable catalog (database -> schema ->
procedure) read from pg_catalog, and a DriverCall that executes CALL
statements through PgClient.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from proc_tool.core.catalog import IdentifierCase, transform_name
from proc_tool.core.exceptions import CatalogError, DriverError, InputError, ProcToolError
from proc_tool.core.models import (
    DataKind,
    DataType,
    ParameterDescriptor,
    ParameterDirection,
)
from proc_tool.core.types import SqlType, standard_registry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from proc_tool.core.client import PgClient
    from proc_tool.core.models import DriverParameterInfo, QueryResult
    from proc_tool.core.types import DataTypeRegistry

_SCHEMA_SQL = """
SELECT n.nspname
FROM pg_catalog.pg_namespace n
WHERE n.nspname = %(name)s
"""

_PROCEDURE_SQL = """
SELECT p.oid, p.proname
FROM pg_catalog.pg_proc p
JOIN pg_catalog.pg_namespace n ON n.oid = p.pronamespace
WHERE n.nspname = %(schema)s
  AND p.proname = %(name)s
  AND p.prokind = 'p'
ORDER BY p.oid
LIMIT 1
"""

_PARAMETERS_SQL = """
SELECT
    a.ordinality AS position,
    COALESCE(p.proargnames[a.ordinality], '') AS name,
    COALESCE(p.proargmodes[a.ordinality], 'i') AS mode,
    pg_catalog.format_type(a.type_oid, NULL) AS type_name
FROM pg_catalog.pg_proc p
CROSS JOIN LATERAL unnest(
    COALESCE(p.proallargtypes, p.proargtypes::oid[])
) WITH ORDINALITY AS a(type_oid, ordinality)
WHERE p.oid = %(oid)s
ORDER BY a.ordinality
"""

# pg_proc.proargmodes codes
_MODES: dict[str, ParameterDirection] = {
    "i": ParameterDirection.IN,
    "o": ParameterDirection.OUT,
    "b": ParameterDirection.INOUT,
    "v": ParameterDirection.IN,
    "t": ParameterDirection.OUT,
}


def _catalog_query(
    client: PgClient, sql: str, params: dict[str, Any] | None, what: str
) -> QueryResult:
    try:
        return client.execute_query(sql, params)
    except ProcToolError as e:
        raise CatalogError(f"Error loading {what}: {e.message}") from e


class PgProcedure:
    def __init__(self, schema: PgSchema, name: str, oid: int) -> None:
        self.schema = schema
        self.name = name
        self.oid = oid
        self._parameters: list[ParameterDescriptor] | None = None

    def __repr__(self) -> str:
        return f"PgProcedure({self.schema.name}.{self.name})"

    def _data_type(self, type_name: str) -> DataType:
        if type_name.endswith("[]"):
            return DataType(name=type_name, type_code=SqlType.ARRAY, data_kind=DataKind.ARRAY)
        return self.schema.data_source.registry.resolve(type_name, SqlType.OTHER)

    def get_parameters(self) -> Sequence[ParameterDescriptor]:
        """Parameters in declaration order, loaded on first access."""
        if self._parameters is None:
            result = _catalog_query(
                self.schema.data_source.client,
                _PARAMETERS_SQL,
                {"oid": self.oid},
                f"parameters of {self.schema.name}.{self.name}",
            )
            self._parameters = [
                ParameterDescriptor(
                    name=name or f"${position}",
                    data_type=self._data_type(type_name),
                    direction=_MODES.get(mode, ParameterDirection.UNKNOWN),
                    position=position - 1,
                )
                for position, name, mode, type_name in result.rows
            ]
        return self._parameters


class PgSchema:
    def __init__(self, data_source: PgDataSource, name: str) -> None:
        self.data_source = data_source
        self.name = name

    def __repr__(self) -> str:
        return f"PgSchema({self.name})"

    def get_child(self, name: str) -> object | None:
        return self.get_procedure(name)

    def get_procedure(self, name: str) -> PgProcedure | None:
        result = _catalog_query(
            self.data_source.client,
            _PROCEDURE_SQL,
            {"schema": self.name, "name": name},
            f"procedure {self.name}.{name}",
        )
        if not result.rows:
            return None
        oid, proname = result.rows[0]
        return PgProcedure(self, proname, oid)


class PgDatabase:
    def __init__(self, data_source: PgDataSource, name: str) -> None:
        self.data_source = data_source
        self.name = name

    def get_child(self, name: str) -> PgSchema | None:
        result = _catalog_query(
            self.data_source.client, _SCHEMA_SQL, {"name": name}, f"schema {name}"
        )
        if not result.rows:
            return None
        return PgSchema(self.data_source, result.rows[0][0])


class PgDataSource:
    """PostgreSQL dialect rules plus the catalog root."""

    struct_separator = "."
    quote_char = '"'
    identifier_case = IdentifierCase.LOWER

    def __init__(
        self,
        client: PgClient,
        *,
        supports_multiple_results: bool = False,
        registry: DataTypeRegistry | None = None,
    ) -> None:
        self.client = client
        self.supports_multiple_results = supports_multiple_results
        self.registry = registry if registry is not None else standard_registry()
        self._root = PgDatabase(self, client.config.dbname)

    @property
    def root(self) -> PgDatabase:
        return self._root

    def get_local_data_type(self, type_name: str) -> DataType | None:
        return self.registry.get(type_name)


class PgSession:
    """Session whose selected namespace is the default schema."""

    def __init__(self, data_source: PgDataSource, default_schema: str | None = None) -> None:
        self.data_source = data_source
        self.default_schema = default_schema

    def _schema_name(self) -> str | None:
        if self.default_schema:
            return transform_name(self.data_source, self.default_schema)
        result = _catalog_query(
            self.data_source.client, "SELECT current_schema()", None, "current schema"
        )
        return result.rows[0][0] if result.rows else None

    def selected_containers(self) -> list[object]:
        root = self.data_source.root
        name = self._schema_name()
        schema = root.get_child(name) if name else None
        return [root, schema] if schema is not None else [root]


class PgCall:
    """DriverCall executing a statement through PgClient.

    PostgreSQL does not describe parameter modes of a CALL, so metadata is
    reported as unsupported and the catalog drives reconciliation. A CALL
    with OUT/INOUT arguments returns one row holding those values in
    declaration order; get_object(i) reads position i of that row.
    """

    def __init__(self, client: PgClient, text: str) -> None:
        self.client = client
        self.text = text
        self._params: dict[int, Any] = {}
        self._out_types: dict[int, int] = {}
        self._result: QueryResult | None = None
        self._native = False
        self._was_null = False

    def parameter_info(self) -> Sequence[DriverParameterInfo] | None:
        raise DriverError("psycopg does not report parameter modes for CALL statements")

    def register_out_parameter(self, index: int, type_code: int) -> None:
        self._out_types[index] = type_code

    @property
    def registered_outputs(self) -> dict[int, int]:
        return dict(self._out_types)

    def set_object(self, key: int | str, value: Any) -> None:
        if not isinstance(key, int) or key < 1:
            raise InputError(f"Parameters are bound by 1-based position, got {key!r}")
        self._params[key] = value

    def set_null(self, key: int | str, type_code: int) -> None:
        self.set_object(key, None)

    def execute(self) -> bool:
        count = max(self._params, default=0)
        missing = [str(i) for i in range(1, count + 1) if i not in self._params]
        if missing:
            raise InputError(f"Parameters not bound: {', '.join(missing)}")
        values = [self._params[i] for i in range(1, count + 1)]
        self._result = self.client.execute_query(self.text, values or None)
        self._native = not self._out_types and bool(self._result.columns)
        return self._native

    def _output_row(self) -> tuple[Any, ...]:
        if self._result is None:
            raise DriverError("No output values; execute the call first")
        if not self._result.rows:
            raise DriverError("Call returned no output row")
        return self._result.rows[0]

    def get_object(self, key: int | str) -> Any:
        row = self._output_row()
        if isinstance(key, str):
            names = [col.name for col in self._result.columns]  # type: ignore[union-attr]
            if key not in names:
                raise DriverError(f"No output parameter named '{key}'")
            index = names.index(key)
        else:
            if not 1 <= key <= len(row):
                raise DriverError(f"Output parameter index {key} out of range 1..{len(row)}")
            index = key - 1
        value = row[index]
        self._was_null = value is None
        return value

    def was_null(self) -> bool:
        return self._was_null

    def get_result_set(self) -> QueryResult | None:
        return self._result if self._native else None

    def more_results(self) -> bool:
        return False

    def close(self) -> None:
        self._params.clear()
        self._result = None
        self._native = False
