"""Output formatters for proc-tool."""

from proc_tool.formatters.base import Formatter, FormatterRegistry, registry
from proc_tool.formatters.csv import CSVFormatter
from proc_tool.formatters.json import JSONFormatter
from proc_tool.formatters.table import TableFormatter
