"""Shared CLI plumbing for command modules.

Client and session creation plus format-option handling.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from proc_tool.cli.output import get_formatter, write_output
from proc_tool.core.client import PgClient
from proc_tool.core.config import load_config, resolve_config
from proc_tool.core.postgres import PgDataSource, PgSession

if TYPE_CHECKING:
    import typer

    from proc_tool.core.models import QueryResult


def get_client(ctx: typer.Context) -> PgClient:
    obj = ctx.ensure_object(dict)
    config = load_config(obj.get("config_file"))

    cli_overrides: dict[str, Any] = {
        key: obj[key]
        for key in ("host", "port", "database", "user", "password", "schema", "multiple_results")
        if obj.get(key) is not None
    }
    resolved = resolve_config(
        config,
        profile_name=obj.get("profile"),
        dsn=obj.get("dsn"),
        **cli_overrides,
    )
    return PgClient(resolved)


def get_session(client: PgClient) -> PgSession:
    """Catalog session over the client, honoring default_schema and multiple_results."""
    data_source = PgDataSource(
        client, supports_multiple_results=bool(client.config.multiple_results)
    )
    return PgSession(data_source, default_schema=client.config.default_schema)


def output_result(ctx: typer.Context, result: QueryResult, *, show_types: bool = False) -> None:
    obj = ctx.ensure_object(dict)
    formatter = get_formatter(
        obj.get("format"),
        compact=obj.get("compact", False),
        width=obj.get("width", 40),
        no_header=obj.get("no_header", False),
        show_types=show_types,
    )
    write_output(formatter, result)
