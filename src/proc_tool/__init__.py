"""Stored-procedure invocation layer with output-parameter projection."""

from proc_tool.__about__ import __version__

__all__ = ["__version__"]
