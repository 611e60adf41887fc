"""
OpenTelemetry tracer for sync runs.

A run is traced only when somewhere to send the spans is configured: an OTLP
collector (argument or OTLP_ENDPOINT) or the console. Without either the
tracer stays the API's no-op tracer, so instrumented store calls cost nothing.
Scheduled runs share one tracer across every job.
"""

import logging
import os

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)

logger = logging.getLogger(__name__)

_tracer: trace.Tracer | None = None
_is_initialized = False


def _span_processors(otlp_endpoint: str | None, console_export: bool) -> dict[str, object]:
    processors = {}
    if otlp_endpoint:
        try:
            exporter = OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True)
        except Exception as e:
            logger.warning(f"Sync spans will not reach {otlp_endpoint}: {e}")
        else:
            processors["otlp"] = BatchSpanProcessor(exporter)
    if console_export:
        # Printed as each table finishes rather than in batches at exit
        processors["console"] = SimpleSpanProcessor(ConsoleSpanExporter())
    return processors


def initialize_tracing(
    service_name: str = "tablesync",
    otlp_endpoint: str | None = None,
    console_export: bool = False,
) -> trace.Tracer:
    """
    Set up the tracer used for table and store spans.

    Args:
        service_name: service.name resource attribute
        otlp_endpoint: OTLP gRPC collector (defaults to OTLP_ENDPOINT)
        console_export: Print finished spans to stdout (--trace-console)

    Returns:
        The run's tracer; later calls return the same one
    """
    global _tracer, _is_initialized

    if _is_initialized:
        return _tracer

    processors = _span_processors(otlp_endpoint or os.getenv("OTLP_ENDPOINT"), console_export)
    if processors:
        provider = TracerProvider(resource=Resource(attributes={SERVICE_NAME: service_name}))
        for processor in processors.values():
            provider.add_span_processor(processor)
        trace.set_tracer_provider(provider)
        logger.info(f"Tracing sync runs to {', '.join(processors)}")
    else:
        logger.debug("No span exporter configured, sync spans are not recorded")

    _tracer = trace.get_tracer(service_name)
    _is_initialized = True
    return _tracer


def get_tracer() -> trace.Tracer:
    """Return the run's tracer, initializing a no-op one on first use."""
    if _tracer is None:
        return initialize_tracing()
    return _tracer


def shutdown_tracing() -> None:
    """Flush spans still buffered for the collector and forget the tracer."""
    global _tracer, _is_initialized

    if not _is_initialized:
        return
    provider = trace.get_tracer_provider()
    try:
        if isinstance(provider, TracerProvider):
            provider.shutdown()
    except Exception as e:
        logger.error(f"Unflushed sync spans were lost: {e}")
    finally:
        _tracer = None
        _is_initialized = False
