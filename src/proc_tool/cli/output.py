"""Output format selection and TTY auto-detection."""

from __future__ import annotations

import sys
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from proc_tool.core.models import QueryResult
    from proc_tool.formatters.base import Formatter


class OutputFormat(StrEnum):
    TABLE = "table"
    JSON = "json"
    CSV = "csv"


def detect_tty() -> bool:
    return sys.stdout.isatty()


def resolve_format(format_flag: str | None) -> str:
    """Explicit --format wins; otherwise table on a TTY and csv in a pipe."""
    if format_flag is not None:
        return format_flag
    return "table" if detect_tty() else "csv"


def get_formatter(
    format_flag: str | None = None,
    *,
    compact: bool = False,
    width: int = 40,
    no_header: bool = False,
    show_types: bool = False,
) -> Formatter:
    """Build the formatter for the resolved output format."""
    # Importing the package registers every formatter.
    from proc_tool.formatters import registry

    fmt_name = resolve_format(format_flag)
    options: dict[str, dict[str, object]] = {
        "table": {"width": width, "show_types": show_types},
        "json": {"compact": compact},
        "csv": {"no_header": no_header},
    }
    return registry.get(fmt_name, **options.get(fmt_name, {}))


def write_output(formatter: Formatter, result: QueryResult) -> None:
    """Write formatted output to stdout."""
    for line in formatter.format(result):
        sys.stdout.write(line + "\n")
