"""Logging configuration using structlog.

Logs go to stderr to keep stdout clean for result output (piping).
"""

import logging
import sys
from typing import Any

import structlog

_LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class _LazyStderrFactory:
    """Resolve sys.stderr when a logger is created rather than at configure().

    CliRunner swaps and closes stderr between invocations, so a handle
    captured once goes stale.
    """

    def __call__(self, *args: Any, **kwargs: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(file=sys.stderr)


def setup_logging(verbose: bool = False) -> None:
    """Configure structlog for proc-tool.

    Args:
        verbose: If True, log at DEBUG so degraded-mode decisions of the
            call layer become visible. Otherwise WARNING.
    """
    log_level = "debug" if verbose else "warning"

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_LOG_LEVELS[log_level]),
        context_class=dict,
        logger_factory=_LazyStderrFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger, optionally bound with a name.

    Never call this at module level. Call it inside functions or
    __init__() so setup_logging() has already run.
    """
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger
