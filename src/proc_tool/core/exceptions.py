"""Exception hierarchy for proc-tool.

All exceptions carry an exit_code for CLI return value mapping.
Catalog and driver errors raised while planning a call are absorbed by the
call layer and turned into "source unavailable"; only execution-time errors
reach the caller.
"""

from proc_tool.core.exit_codes import ExitCode


class ProcToolError(Exception):
    """Base exception for all proc-tool errors."""

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NetworkError(ProcToolError):
    """Connection failures, unreachable host."""

    exit_code: int = ExitCode.NETWORK_ERROR


class TimeoutError(NetworkError):
    """Statement timeout, connection timeout."""

    exit_code: int = ExitCode.TIMEOUT


class InputError(ProcToolError):
    """Unparseable call text, invalid parameter keys."""

    exit_code: int = ExitCode.INPUT_ERROR


class ConfigError(ProcToolError):
    """Malformed config, missing profile."""

    exit_code: int = ExitCode.CONFIG_ERROR


class CatalogError(ProcToolError):
    """Catalog metadata could not be loaded."""

    exit_code: int = ExitCode.CATALOG_ERROR


class DriverError(ProcToolError):
    """Driver call metadata, registration or execution failure."""

    exit_code: int = ExitCode.DRIVER_ERROR


class ProjectionError(ProcToolError):
    """Synthetic result row used outside its lifecycle."""

    exit_code: int = ExitCode.PROJECTION_ERROR
