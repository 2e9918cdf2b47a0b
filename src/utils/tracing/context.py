"""
Context managers for span management.

Provides a context manager for creating spans and helpers to add
attributes/events to the current span without explicit span references.
"""

from contextlib import contextmanager

from opentelemetry import trace

from .tracer import get_tracer


@contextmanager
def trace_operation(
    operation_name: str,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    **attributes
):
    """
    Trace a block of work as one span.

    Exceptions are recorded on the span and re-raised.

    Args:
        operation_name: Name of the operation being traced
        kind: Span kind (INTERNAL, CLIENT, ...)
        **attributes: Attributes added to the span (stringified)

    Yields:
        The active span

    Example:
        >>> with trace_operation("sync_table", table="public.users") as span:
        ...     result = task.perform()
        ...     span.set_attribute("status", result.status.value)
    """
    tracer = get_tracer()

    with tracer.start_as_current_span(operation_name, kind=kind) as span:
        for key, value in attributes.items():
            span.set_attribute(key, str(value))

        try:
            yield span
        except Exception as e:
            span.set_attribute("error", True)
            span.set_attribute("error.type", type(e).__name__)
            span.set_attribute("error.message", str(e))
            span.record_exception(e)
            raise


def add_span_attributes(**attributes):
    """Add attributes to the current span, if one is recording."""
    current_span = trace.get_current_span()
    if current_span.is_recording():
        for key, value in attributes.items():
            current_span.set_attribute(key, str(value))


def add_span_event(name: str, **attributes):
    """Add an event to the current span, if one is recording."""
    current_span = trace.get_current_span()
    if current_span.is_recording():
        current_span.add_event(name, attributes={k: str(v) for k, v in attributes.items()})
