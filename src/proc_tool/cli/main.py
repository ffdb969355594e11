"""proc-tool main entry point and command registration."""

from __future__ import annotations

import atexit
from pathlib import Path  # noqa: TC003
from typing import Annotated

import sentry_sdk
import typer

from proc_tool.__about__ import __version__
from proc_tool.cli.commands.call import call_command, plan_command, resolve_command
from proc_tool.cli.output import OutputFormat  # noqa: TC001
from proc_tool.core.exceptions import ProcToolError
from proc_tool.core.logging import setup_logging
from proc_tool.core.monitoring import setup_sentry

app = typer.Typer(
    help="proc-tool - PostgreSQL stored procedure caller",
    no_args_is_help=True,
)

app.command("resolve")(resolve_command)
app.command("plan")(plan_command)
app.command("call")(call_command)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"proc-tool {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable verbose logging"),
    ] = False,
    profile: Annotated[
        str | None,
        typer.Option("--profile", "-P", help="Named connection profile"),
    ] = None,
    host: Annotated[
        str | None,
        typer.Option("--host", "-H", help="PostgreSQL host"),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="PostgreSQL port"),
    ] = None,
    database: Annotated[
        str | None,
        typer.Option("--database", "-d", help="Database name"),
    ] = None,
    user: Annotated[
        str | None,
        typer.Option("--user", "-U", help="User name"),
    ] = None,
    password: Annotated[
        str | None,
        typer.Option("--password", "-W", help="Password"),
    ] = None,
    dsn: Annotated[
        str | None,
        typer.Option("--dsn", help="Connection DSN"),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config file"),
    ] = None,
    schema: Annotated[
        str | None,
        typer.Option("--schema", "-s", help="Schema searched for unqualified routine names"),
    ] = None,
    multiple_results: Annotated[
        bool | None,
        typer.Option(
            "--multiple-results/--single-result",
            help="Treat refcursor outputs as separate result sets",
        ),
    ] = None,
    format: Annotated[
        OutputFormat | None,
        typer.Option("--format", "-f", help="Output format: table|json|csv"),
    ] = None,
    compact: Annotated[
        bool,
        typer.Option("--compact", help="Compact JSON output (no indentation)"),
    ] = False,
    width: Annotated[
        int,
        typer.Option("--width", help="Column width for table format"),
    ] = 40,
    no_header: Annotated[
        bool,
        typer.Option("--no-header", help="Suppress header row in CSV output"),
    ] = False,
) -> None:
    """proc-tool - PostgreSQL stored procedure caller."""
    setup_logging(verbose)
    setup_sentry()

    transaction = sentry_sdk.start_transaction(
        op="cli", name=ctx.invoked_subcommand or "proc-tool"
    )
    transaction.__enter__()

    def cleanup() -> None:
        transaction.__exit__(None, None, None)
        sentry_sdk.flush(timeout=2)

    atexit.register(cleanup)

    obj = ctx.ensure_object(dict)
    obj.update(
        verbose=verbose,
        profile=profile,
        host=host,
        port=port,
        database=database,
        user=user,
        password=password,
        dsn=dsn,
        config_file=config_file,
        schema=schema,
        multiple_results=multiple_results,
        format=format.value if format else None,
        compact=compact,
        width=width,
        no_header=no_header,
    )


def run() -> None:
    """Entry point with global error handling."""
    try:
        app()
    except ProcToolError as e:
        sentry_sdk.capture_exception(e)
        typer.echo(f"Error: {e.message}", err=True)
        raise SystemExit(e.exit_code) from None
    except SystemExit:
        raise
    except KeyboardInterrupt:
        raise SystemExit(130) from None
    except Exception as e:
        sentry_sdk.capture_exception(e)
        typer.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from None
