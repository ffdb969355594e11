"""Output-parameter reconciliation between catalog and driver metadata.

The catalog knows parameter names and declared types but not how the call
site maps them to ordinals; the driver knows ordinals and raw type codes but
not names. Either side may be missing. This module snapshots both sides as
explicit available/unavailable values, registers out parameters on the
driver call before execution, and merges both sides into a dense list of
output columns.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, ConfigDict

from proc_tool.core.catalog import has_output_parameters
from proc_tool.core.exceptions import DriverError
from proc_tool.core.models import (
    DataType,
    DriverParameterInfo,
    OutputColumn,
    ParameterDescriptor,
)
from proc_tool.core.types import SqlType, resolve_data_kind

if TYPE_CHECKING:
    from proc_tool.core.catalog import DataSource, Procedure
    from proc_tool.core.invoker import DriverCall


class CatalogSource(BaseModel):
    """Output parameters declared in the catalog, in catalog order."""

    model_config = ConfigDict(frozen=True)

    available: bool
    outputs: tuple[ParameterDescriptor, ...] = ()
    reason: str | None = None


class DriverSource(BaseModel):
    """All parameters reported by the driver, in ordinal order."""

    model_config = ConfigDict(frozen=True)

    available: bool
    parameters: tuple[DriverParameterInfo, ...] = ()
    reason: str | None = None

    @property
    def outputs(self) -> tuple[DriverParameterInfo, ...]:
        return tuple(p for p in self.parameters if p.is_output)


class ReconcileOutcome(StrEnum):
    UNAVAILABLE = "unavailable"
    MATCHED = "matched"
    CATALOG_ONLY = "catalog_only"
    DRIVER_ONLY = "driver_only"
    COUNT_MISMATCH = "count_mismatch"


class Reconciliation(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: ReconcileOutcome
    columns: tuple[OutputColumn, ...] = ()


class RegistrationSource(StrEnum):
    DRIVER = "driver"
    CATALOG = "catalog"
    NONE = "none"
    FAILED = "failed"


class Registration(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: RegistrationSource
    registered: int = 0
    error: str | None = None


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------


def catalog_outputs(procedure: Procedure | None) -> CatalogSource:
    """Snapshot the procedure's declared output parameters."""
    if procedure is None:
        return CatalogSource(available=False, reason="procedure not resolved")
    try:
        params = procedure.get_parameters()
    except Exception as e:
        structlog.get_logger().debug(
            "error obtaining output parameters from procedure",
            procedure=procedure.name,
            error=str(e),
        )
        return CatalogSource(available=False, reason=str(e))
    return CatalogSource(
        available=True,
        outputs=tuple(p for p in params if p.direction.is_output),
    )


def driver_parameters(call: DriverCall) -> DriverSource:
    """Snapshot the driver's parameter metadata for the call."""
    try:
        params = call.parameter_info()
    except Exception as e:
        structlog.get_logger().debug(
            "error obtaining parameter metadata from driver", error=str(e)
        )
        return DriverSource(available=False, reason=str(e))
    if params is None:
        return DriverSource(available=False, reason="driver reports no metadata")
    return DriverSource(
        available=True,
        parameters=tuple(sorted(params, key=lambda p: p.ordinal)),
    )


def is_cursor(data_source: DataSource, param: DriverParameterInfo) -> bool:
    """True if the parameter comes back as a separate result set."""
    return (
        data_source.supports_multiple_results
        and param.type_code == SqlType.REF_CURSOR
    )


# ---------------------------------------------------------------------------
# Registration before execution
# ---------------------------------------------------------------------------


def _register_from_driver(call: DriverCall, driver: DriverSource) -> int:
    if not driver.available:
        raise DriverError(driver.reason or "driver parameter metadata unavailable")
    registered = 0
    for param in driver.outputs:
        call.register_out_parameter(param.ordinal, param.type_code)
        registered += 1
    return registered


def _register_from_catalog(call: DriverCall, procedure: Procedure) -> int:
    # Indexed by output position, not by raw ordinal.
    index = 0
    for param in procedure.get_parameters():
        if param.direction.is_output:
            index += 1
            call.register_out_parameter(index, param.data_type.type_code)
    return index


def register_output_parameters(
    call: DriverCall, driver: DriverSource, procedure: Procedure | None
) -> Registration:
    """Register out parameters from driver metadata, else from the catalog.

    Never raises; failures are logged and reported in the Registration.
    """
    log = structlog.get_logger()
    driver_error: str | None = None
    try:
        registered = _register_from_driver(call, driver)
    except Exception as e:
        driver_error = str(e)
        log.debug("driver registration failed", error=driver_error)
    else:
        if registered > 0:
            return Registration(source=RegistrationSource.DRIVER, registered=registered)
        try:
            needs_catalog = has_output_parameters(procedure)
        except Exception as e:
            log.debug("error checking procedure output parameters", error=str(e))
            needs_catalog = False
        if not needs_catalog:
            return Registration(source=RegistrationSource.NONE)

    if procedure is None:
        return Registration(source=RegistrationSource.FAILED, error=driver_error)

    try:
        registered = _register_from_catalog(call, procedure)
    except Exception as e:
        log.debug("error binding procedure output parameters", error=str(e))
        return Registration(source=RegistrationSource.FAILED, error=str(e))
    log.debug(
        "registered output parameters from catalog",
        procedure=procedure.name,
        registered=registered,
    )
    return Registration(
        source=RegistrationSource.CATALOG, registered=registered, error=driver_error
    )


# ---------------------------------------------------------------------------
# Column reconciliation
# ---------------------------------------------------------------------------


def _matched_columns(
    catalog: CatalogSource, driver: DriverSource, data_source: DataSource
) -> list[OutputColumn]:
    columns: list[OutputColumn] = []
    for param, reported in zip(catalog.outputs, driver.outputs, strict=True):
        if is_cursor(data_source, reported):
            continue
        columns.append(
            OutputColumn(
                name=param.name,
                data_type=param.data_type,
                local_index=len(columns),
                source_ordinal=reported.ordinal,
            )
        )
    return columns


def _catalog_columns(catalog: CatalogSource) -> list[OutputColumn]:
    # Assumes catalog order matches call-site ordinal order.
    return [
        OutputColumn(
            name=param.name,
            data_type=param.data_type,
            local_index=position,
            source_ordinal=position + 1,
        )
        for position, param in enumerate(catalog.outputs)
    ]


def _reported_type(data_source: DataSource, param: DriverParameterInfo) -> DataType:
    data_type = None
    if param.type_name:
        try:
            data_type = data_source.get_local_data_type(param.type_name)
        except Exception as e:
            structlog.get_logger().debug(
                "local data type lookup failed", type_name=param.type_name, error=str(e)
            )
    if data_type is not None:
        return data_type
    kind = resolve_data_kind(param.type_name, param.type_code)
    return DataType(
        name=param.type_name or kind.value, type_code=param.type_code, data_kind=kind
    )


def _driver_columns(driver: DriverSource, data_source: DataSource) -> list[OutputColumn]:
    columns: list[OutputColumn] = []
    for param in driver.outputs:
        if is_cursor(data_source, param):
            continue
        columns.append(
            OutputColumn(
                name=str(param.ordinal),
                data_type=_reported_type(data_source, param),
                local_index=len(columns),
                source_ordinal=param.ordinal,
            )
        )
    return columns


def reconcile(
    catalog: CatalogSource, driver: DriverSource, data_source: DataSource
) -> Reconciliation:
    """Merge catalog and driver metadata into dense output columns.

    Both sources with equal output counts are zipped by position, taking
    names and types from the catalog and ordinals from the driver. A single
    available source is used alone. Unequal counts are reported as
    COUNT_MISMATCH and resolved positionally from the catalog, matching the
    indices used when out parameters were registered from the catalog.
    """
    log = structlog.get_logger()
    if not catalog.available and not driver.available:
        log.debug("no procedure metadata nor driver metadata")
        return Reconciliation(outcome=ReconcileOutcome.UNAVAILABLE)

    if catalog.available and driver.available:
        if len(catalog.outputs) == len(driver.outputs):
            columns = _matched_columns(catalog, driver, data_source)
            return Reconciliation(outcome=ReconcileOutcome.MATCHED, columns=tuple(columns))
        log.warning(
            "catalog and driver disagree on output parameters, using catalog",
            catalog_outputs=len(catalog.outputs),
            driver_outputs=len(driver.outputs),
        )
        columns = _catalog_columns(catalog)
        return Reconciliation(
            outcome=ReconcileOutcome.COUNT_MISMATCH, columns=tuple(columns)
        )

    if catalog.available:
        return Reconciliation(
            outcome=ReconcileOutcome.CATALOG_ONLY,
            columns=tuple(_catalog_columns(catalog)),
        )
    return Reconciliation(
        outcome=ReconcileOutcome.DRIVER_ONLY,
        columns=tuple(_driver_columns(driver, data_source)),
    )
