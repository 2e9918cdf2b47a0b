"""
Tracer initialization and configuration for OpenTelemetry.

Provides setup functions for distributed tracing with OTLP or console
exporters.
"""

import logging
import os

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

logger = logging.getLogger(__name__)

TRACER_NAME = "tablesync"

_is_initialized = False


def initialize_tracing(
    service_name: str = "tablesync",
    otlp_endpoint: str | None = None,
    console_export: bool = False,
) -> trace.Tracer:
    """
    Initialize distributed tracing with OpenTelemetry.

    Args:
        service_name: Name of the service for identification
        otlp_endpoint: OTLP collector endpoint (e.g., "localhost:4317");
            falls back to the OTLP_ENDPOINT environment variable
        console_export: If True, also export spans to the console

    Returns:
        Configured tracer instance
    """
    global _is_initialized

    if _is_initialized:
        logger.warning("Tracing already initialized, returning existing tracer")
        return get_tracer()

    provider = TracerProvider(resource=Resource(attributes={SERVICE_NAME: service_name}))
    exporters = []

    otlp_endpoint = otlp_endpoint or os.getenv("OTLP_ENDPOINT")
    if otlp_endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
        )
        exporters.append("OTLP")
        logger.info(f"OTLP exporter configured: {otlp_endpoint}")

    if console_export or os.getenv("TRACE_CONSOLE", "").lower() == "true":
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        exporters.append("Console")

    if not exporters:
        logger.warning("No trace exporters configured, tracing will be a no-op")

    trace.set_tracer_provider(provider)
    _is_initialized = True

    logger.info(f"Tracing initialized: {service_name} (exporters: {', '.join(exporters) or 'none'})")

    return get_tracer()


def get_tracer() -> trace.Tracer:
    """
    Get the tablesync tracer.

    Without initialize_tracing() this is backed by the global no-op provider.
    """
    return trace.get_tracer(TRACER_NAME)


def shutdown_tracing() -> None:
    """Flush pending spans and shut the tracer provider down."""
    global _is_initialized

    if not _is_initialized:
        return

    provider = trace.get_tracer_provider()
    try:
        if hasattr(provider, "shutdown"):
            provider.shutdown()
        logger.info("Tracing shutdown complete")
    finally:
        _is_initialized = False
