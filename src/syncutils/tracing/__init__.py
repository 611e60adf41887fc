"""
Distributed tracing using OpenTelemetry.

Instruments:
- Record store calls (connect, snapshot reads, mutations, locks)
- Per-table sync runs

Spans are exported only when an OTLP endpoint or console export is configured.
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
