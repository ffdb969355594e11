"""In-memory catalog, driver call and PostgreSQL client used by unit tests."""

from __future__ import annotations

from typing import Any

from proc_tool.core.catalog import IdentifierCase
from proc_tool.core.config import ResolvedConfig
from proc_tool.core.exceptions import NetworkError
from proc_tool.core.models import (
    ColumnMeta,
    DriverParameterInfo,
    ParameterDescriptor,
    ParameterDirection,
    QueryResult,
)
from proc_tool.core.types import SqlType, standard_registry

IN = ParameterDirection.IN
OUT = ParameterDirection.OUT
INOUT = ParameterDirection.INOUT
RETURN = ParameterDirection.RETURN
UNKNOWN = ParameterDirection.UNKNOWN


def param(
    name: str, direction: ParameterDirection, type_name: str = "integer", position: int = 0
) -> ParameterDescriptor:
    data_type = standard_registry().resolve(type_name, SqlType.OTHER)
    return ParameterDescriptor(
        name=name, data_type=data_type, direction=direction, position=position
    )


def params(*specs: tuple[str, ParameterDirection, str]) -> list[ParameterDescriptor]:
    return [param(name, d, t, position=i) for i, (name, d, t) in enumerate(specs)]


def driver_param(
    ordinal: int,
    direction: ParameterDirection,
    type_code: int = SqlType.INTEGER,
    type_name: str | None = None,
) -> DriverParameterInfo:
    return DriverParameterInfo(
        ordinal=ordinal, direction=direction, type_code=type_code, type_name=type_name
    )


class FakeContainer:
    def __init__(self, name: str, *children: Any, error: Exception | None = None) -> None:
        self.name = name
        self.children = {child.name: child for child in children}
        self.error = error
        self.child_lookups: list[str] = []

    def get_child(self, name: str) -> object | None:
        self.child_lookups.append(name)
        if self.error is not None:
            raise self.error
        return self.children.get(name)


class FakeProcedureContainer(FakeContainer):
    def __init__(self, name: str, *children: Any, error: Exception | None = None) -> None:
        super().__init__(name, *children, error=error)
        self.procedure_lookups: list[str] = []

    def get_procedure(self, name: str) -> Any:
        self.procedure_lookups.append(name)
        if self.error is not None:
            raise self.error
        child = self.children.get(name)
        return child if isinstance(child, FakeProcedure) else None


class FakeProcedure:
    def __init__(
        self,
        name: str,
        parameters: list[ParameterDescriptor] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.name = name
        self.parameters = parameters or []
        self.error = error

    def get_parameters(self) -> list[ParameterDescriptor]:
        if self.error is not None:
            raise self.error
        return self.parameters


class FakeDataSource:
    def __init__(
        self,
        root: Any = None,
        *,
        multiple_results: bool = False,
        separator: str = ".",
        identifier_case: IdentifierCase = IdentifierCase.LOWER,
    ) -> None:
        self._root = root
        self.supports_multiple_results = multiple_results
        self.struct_separator = separator
        self.quote_char = '"'
        self.identifier_case = identifier_case
        self.registry = standard_registry()

    @property
    def root(self) -> Any:
        return self._root

    def get_local_data_type(self, type_name: str) -> Any:
        return self.registry.get(type_name)


class FakeSession:
    def __init__(self, data_source: FakeDataSource, selected: list[Any] | None = None) -> None:
        self.data_source = data_source
        self.selected = selected or []

    def selected_containers(self) -> list[Any]:
        return list(self.selected)


class FakeCall:
    """Driver call recording registrations, binds and reads."""

    def __init__(
        self,
        parameters: list[DriverParameterInfo] | None = None,
        *,
        metadata_error: Exception | None = None,
        register_error: Exception | None = None,
        values: dict[int, Any] | None = None,
        native: Any = None,
    ) -> None:
        self.parameters = parameters
        self.metadata_error = metadata_error
        self.register_error = register_error
        self.values = values or {}
        self.native = native
        self.registered: list[tuple[int, int]] = []
        self.bound: dict[int | str, Any] = {}
        self.reads: list[int | str] = []
        self.executed = 0
        self.closed = False
        self._was_null = False

    def parameter_info(self) -> list[DriverParameterInfo] | None:
        if self.metadata_error is not None:
            raise self.metadata_error
        return self.parameters

    def register_out_parameter(self, index: int, type_code: int) -> None:
        if self.register_error is not None:
            raise self.register_error
        self.registered.append((index, type_code))

    def set_object(self, key: int | str, value: Any) -> None:
        self.bound[key] = value

    def set_null(self, key: int | str, type_code: int) -> None:
        self.bound[key] = None

    def get_object(self, key: int | str) -> Any:
        self.reads.append(key)
        value = self.values[key]
        self._was_null = value is None
        return value

    def was_null(self) -> bool:
        return self._was_null

    def execute(self) -> bool:
        self.executed += 1
        return self.native is not None

    def get_result_set(self) -> Any:
        return self.native

    def more_results(self) -> bool:
        return self.native is not None

    def close(self) -> None:
        self.closed = True


def make_result(names: list[str], rows: list[tuple[Any, ...]]) -> QueryResult:
    return QueryResult(
        columns=[ColumnMeta(name=n, type_name="text") for n in names],
        rows=rows,
        row_count=len(rows),
        status_message=f"SELECT {len(rows)}",
    )


class FakePgClient:
    """Answers the pg_catalog queries issued by proc_tool.core.postgres.

    ``procedures`` maps (schema, name) to parameter rows of
    (position, name, mode, type_name).
    """

    def __init__(
        self,
        procedures: dict[tuple[str, str], list[tuple[Any, ...]]] | None = None,
        *,
        call_result: QueryResult | None = None,
        current_schema: str = "public",
        fail_on: str | None = None,
        **config: Any,
    ) -> None:
        self.config = ResolvedConfig(**config)
        self.procedures = procedures or {}
        self._oids = {key: 16384 + i for i, key in enumerate(self.procedures)}
        self.call_result = call_result or make_result([], [])
        self.current_schema = current_schema
        self.fail_on = fail_on
        self.queries: list[tuple[str, Any]] = []
        self.closed = False

    def __enter__(self) -> FakePgClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def execute_query(self, sql: str, params: Any = None) -> QueryResult:
        self.queries.append((sql, params))
        if self.fail_on is not None and self.fail_on in sql:
            raise NetworkError("Database error: connection lost")
        if "current_schema()" in sql:
            return make_result(["current_schema"], [(self.current_schema,)])
        if "nspname = %(name)s" in sql:
            schemas = {schema for schema, _ in self.procedures} | {"public"}
            rows = [(params["name"],)] if params["name"] in schemas else []
            return make_result(["nspname"], rows)
        if "prokind" in sql:
            key = (params["schema"], params["name"])
            rows = [(self._oids[key], key[1])] if key in self.procedures else []
            return make_result(["oid", "proname"], rows)
        if "WITH ORDINALITY" in sql:
            for key, oid in self._oids.items():
                if oid == params["oid"]:
                    return make_result(
                        ["position", "name", "mode", "type_name"], self.procedures[key]
                    )
            return make_result(["position", "name", "mode", "type_name"], [])
        return self.call_result

    def close(self) -> None:
        self.closed = True

