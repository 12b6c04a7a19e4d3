"""Lookup and insertion tracing for chainhash tables."""

from .probe import format_trace_lines, trace_add, trace_contains

__all__ = ["trace_contains", "trace_add", "format_trace_lines"]
