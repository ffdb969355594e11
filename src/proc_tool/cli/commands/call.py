"""Procedure commands: resolve, plan and call."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Any

import typer

from proc_tool.cli.commands._shared import get_client, get_session, output_result
from proc_tool.core.exceptions import InputError
from proc_tool.core.invoker import CallableInvoker
from proc_tool.core.models import ColumnMeta, QueryResult
from proc_tool.core.postgres import PgCall
from proc_tool.core.projection import OutputResultProjector
from proc_tool.core.resolver import find_procedure, resolve_procedure

if TYPE_CHECKING:
    from proc_tool.core.catalog import Procedure
    from proc_tool.core.plan import CallPlan

NULL_ARG = "NULL"

TextArg = Annotated[
    str,
    typer.Argument(help="Call text such as 'CALL hr.raise_salary(%s, %s)'"),
]


def _text_columns(*names: str) -> list[ColumnMeta]:
    return [ColumnMeta(name=name, type_name="text") for name in names]


def parameters_result(procedure: Procedure) -> QueryResult:
    rows: list[tuple[Any, ...]] = [
        (p.position + 1, p.name, p.direction.value, p.data_type.name)
        for p in procedure.get_parameters()
    ]
    return QueryResult(
        columns=_text_columns("position", "name", "direction", "type"),
        rows=rows,
        row_count=len(rows),
        status_message=f"SELECT {len(rows)}",
    )


def plan_result(plan: CallPlan) -> QueryResult:
    rows: list[tuple[Any, ...]] = [
        (
            col.local_index,
            col.name,
            col.data_type.name,
            col.data_type.data_kind.value,
            col.source_ordinal,
        )
        for col in plan.columns
    ]
    return QueryResult(
        columns=_text_columns("index", "name", "type", "kind", "ordinal"),
        rows=rows,
        row_count=len(rows),
        status_message=f"SELECT {len(rows)}",
    )


def _parse_args(args: list[str] | None) -> list[Any]:
    return [None if a == NULL_ARG else a for a in args or []]


def resolve_command(ctx: typer.Context, text: TextArg) -> None:
    """Resolve a routine name or call text and list its catalog parameters."""
    with get_client(ctx) as client:
        session = get_session(client)
        if "(" in text:
            procedure = find_procedure(session, text)
        else:
            procedure = resolve_procedure(session, text.strip())
        if procedure is None:
            raise InputError(f"Procedure not found: {text}")
        result = parameters_result(procedure)
    output_result(ctx, result)


def plan_command(ctx: typer.Context, text: TextArg) -> None:
    """Show the output columns a call would project, without executing it."""
    with get_client(ctx) as client, CallableInvoker(
        get_session(client), PgCall(client, text), text
    ) as invoker:
        plan = invoker.plan
    typer.echo(
        f"target: {plan.target or '-'}  "
        f"resolved: {'yes' if plan.procedure is not None else 'no'}  "
        f"reconciliation: {plan.reconciliation.outcome.value}  "
        f"registration: {plan.registration.source.value} ({plan.registration.registered})",
        err=True,
    )
    output_result(ctx, plan_result(plan), show_types=True)


def call_command(
    ctx: typer.Context,
    text: TextArg,
    args: Annotated[
        list[str] | None,
        typer.Option(
            "--arg",
            "-a",
            help=f"Positional parameter value, repeatable. '{NULL_ARG}' binds NULL",
        ),
    ] = None,
) -> None:
    """Execute a procedure call and print its result.

    Output parameters are shown as a single row when the call returns no
    result set of its own.
    """
    with get_client(ctx) as client, CallableInvoker(
        get_session(client), PgCall(client, text), text
    ) as invoker:
        invoker.set_parameters(_parse_args(args))
        has_result = invoker.execute()
        current = invoker.get_result_set() if has_result else None
        if isinstance(current, OutputResultProjector):
            result = current.to_query_result()
        else:
            result = current
    if result is None:
        typer.echo("CALL", err=True)
        return
    output_result(ctx, result)
