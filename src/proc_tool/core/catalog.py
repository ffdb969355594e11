"""Catalog object model consumed by the call layer.

The call layer never loads metadata itself. It walks whatever catalog the
session exposes through these protocols: containers with named children,
containers that can look up procedures, and procedures with an ordered
parameter list. Lookups may block on metadata loading and may raise
CatalogError.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from proc_tool.core.models import DataType, ParameterDescriptor


class IdentifierCase(StrEnum):
    UPPER = "upper"
    LOWER = "lower"
    MIXED = "mixed"


@runtime_checkable
class ObjectContainer(Protocol):
    """A namespace node (database, schema, package) with named children."""

    name: str

    def get_child(self, name: str) -> object | None: ...


@runtime_checkable
class ProcedureContainer(ObjectContainer, Protocol):
    """A container that can look up procedures by name."""

    def get_procedure(self, name: str) -> Procedure | None: ...


@runtime_checkable
class Procedure(Protocol):
    name: str

    def get_parameters(self) -> Sequence[ParameterDescriptor]:
        """Return parameters in catalog order."""
        ...


class DataSource(Protocol):
    struct_separator: str
    quote_char: str
    identifier_case: IdentifierCase
    supports_multiple_results: bool

    @property
    def root(self) -> ObjectContainer | None:
        """Top-level container, or None if the source is not navigable."""
        ...

    def get_local_data_type(self, type_name: str) -> DataType | None: ...


class Session(Protocol):
    data_source: DataSource

    def selected_containers(self) -> Sequence[object]:
        """Currently selected objects, outermost first."""
        ...


def transform_name(data_source: DataSource, name: str) -> str:
    """Fold an identifier segment to the data source's stored case.

    Quoted segments keep their case and lose the quotes.
    """
    quote = data_source.quote_char
    if quote and len(name) >= 2 and name.startswith(quote) and name.endswith(quote):
        return name[1:-1].replace(quote * 2, quote)
    if data_source.identifier_case == IdentifierCase.UPPER:
        return name.upper()
    if data_source.identifier_case == IdentifierCase.LOWER:
        return name.lower()
    return name


def has_output_parameters(procedure: Procedure | None) -> bool:
    """True if the catalog declares at least one output parameter.

    Raises CatalogError if the parameter list cannot be loaded.
    """
    if procedure is None:
        return False
    return any(p.direction.is_output for p in procedure.get_parameters())
