"""Standard exit codes for proc-tool.

Exit codes follow Unix conventions and CODE-PY-CLI-001 pattern.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for proc-tool commands."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    USAGE_ERROR = 2
    INPUT_ERROR = 3
    OUTPUT_ERROR = 4
    NETWORK_ERROR = 5
    TIMEOUT = 6
    CONFIG_ERROR = 7
    CATALOG_ERROR = 8
    DRIVER_ERROR = 9
    PROJECTION_ERROR = 10
