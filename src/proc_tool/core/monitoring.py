"""Sentry integration for error tracking and performance monitoring.

Sentry is initialized in the CLI callback after logging setup. Without a
DSN the SDK stays disabled and spans are no-ops.
"""

import os

import sentry_sdk

from proc_tool.__about__ import __version__


def setup_sentry(environment: str = "local") -> None:
    """Initialize Sentry from PROC_TOOL_SENTRY_DSN, if set."""
    sentry_sdk.init(
        dsn=os.environ.get("PROC_TOOL_SENTRY_DSN"),
        traces_sample_rate=0.03,
        environment=environment,
        release=__version__,
        attach_stacktrace=True,
        send_default_pii=False,
    )
