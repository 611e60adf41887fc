"""
Span helpers for the sync engine and the record stores.
"""

from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from .tracer import get_tracer


def _attribute(value):
    # Row counts stay numeric; keys, tables and anything else become text
    if isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


@contextmanager
def trace_operation(
    operation_name: str,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    **attributes
):
    """
    Run a block inside a span named after a sync step.

    Store calls use CLIENT spans tagged with the store side; table syncs use
    INTERNAL spans tagged with the table. A failure inside the block marks
    the span as an error and propagates unchanged.

    Example:
        >>> with trace_operation("sync_table", table="nodes_info") as span:
        ...     counters = reconciler.sync_table("nodes_info")
        ...     span.set_attribute("added", counters.added)
    """
    tracer = get_tracer()

    with tracer.start_as_current_span(
        operation_name,
        kind=kind,
        attributes={key: _attribute(value) for key, value in attributes.items()},
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, f"{type(e).__name__}: {e}"))
            span.record_exception(e)
            raise


def add_span_attributes(**attributes):
    """Attach attributes (usually a table's counters) to the current span."""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attributes({key: _attribute(value) for key, value in attributes.items()})


def add_span_event(name: str, **attributes):
    """Mark a point in the current span, e.g. when both snapshots are read."""
    span = trace.get_current_span()
    if span.is_recording():
        span.add_event(name, attributes={key: _attribute(value) for key, value in attributes.items()})
