"""Call planning: everything decided about a call before it executes.

build_call_plan() resolves the target procedure, snapshots both metadata
sources, registers out parameters and reconciles the output columns. Each
step degrades instead of failing, so a plan is always produced.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import sentry_sdk
import structlog

from proc_tool.core.reconcile import (
    CatalogSource,
    DriverSource,
    Reconciliation,
    Registration,
    catalog_outputs,
    driver_parameters,
    reconcile,
    register_output_parameters,
)
from proc_tool.core.resolver import extract_call_target, resolve_procedure

if TYPE_CHECKING:
    from proc_tool.core.catalog import Procedure, Session
    from proc_tool.core.invoker import DriverCall
    from proc_tool.core.models import OutputColumn


@dataclass(frozen=True)
class CallPlan:
    text: str | None
    target: str | None
    procedure: Procedure | None
    catalog: CatalogSource
    driver: DriverSource
    registration: Registration
    reconciliation: Reconciliation

    @property
    def columns(self) -> tuple[OutputColumn, ...]:
        return self.reconciliation.columns


def build_call_plan(session: Session, call: DriverCall, text: str | None) -> CallPlan:
    """Plan a call. Never raises for metadata problems."""
    log = structlog.get_logger()
    data_source = session.data_source
    span_description = " ".join((text or "").split())[:100]

    with sentry_sdk.start_span(op="db.call.plan", description=span_description) as span:
        target = extract_call_target(
            text, data_source.struct_separator, data_source.quote_char
        )
        procedure = resolve_procedure(session, target) if target else None
        driver = driver_parameters(call)
        registration = register_output_parameters(call, driver, procedure)
        catalog = catalog_outputs(procedure)
        reconciliation = reconcile(catalog, driver, data_source)

        span.set_data("outcome", reconciliation.outcome.value)
        span.set_data("column_count", len(reconciliation.columns))
        log.debug(
            "call planned",
            target=target,
            resolved=procedure is not None,
            registration=registration.source.value,
            outcome=reconciliation.outcome.value,
            columns=len(reconciliation.columns),
        )

    return CallPlan(
        text=text,
        target=target,
        procedure=procedure,
        catalog=catalog,
        driver=driver,
        registration=registration,
        reconciliation=reconciliation,
    )
