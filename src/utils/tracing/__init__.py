"""
Distributed tracing using OpenTelemetry.

Spans cover a whole sync run, the integrity-relaxation transaction and
each per-table task. Tracing stays a no-op until initialize_tracing()
configures an exporter.
"""

from .context import add_span_attributes, add_span_event, trace_operation
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "add_span_attributes",
    "add_span_event",
]
