"""
Distributed tracing using OpenTelemetry.

Instruments the merge phases (schema resolution, loading, matching, writing)
so a slow or failed run can be inspected span by span.
"""

from .context import add_span_attributes, trace_operation
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "add_span_attributes",
]
