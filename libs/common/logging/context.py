"""Trace ID lookup for log correlation.

Trace IDs come from the active OpenTelemetry span, so every log line written
while a request is being handled carries the same ID as the spans exported
for that request. The ID is also echoed to clients in the ``X-Trace-ID``
response header.

Example:
    >>> from libs.common.logging.context import get_trace_id
    >>> with tracer.start_as_current_span("work"):
    ...     get_trace_id()
    '4bf92f3577b34da6a3ce929d0e0e4736'
"""

from opentelemetry import trace

# HTTP header name used to echo the trace ID back to clients
TRACE_ID_HEADER = "X-Trace-ID"


def get_trace_id() -> str | None:
    """Get the current trace ID as 32 lowercase hex characters.

    Returns:
        Trace ID of the active span, or None when no valid span is active

    Example:
        >>> get_trace_id() is None  # outside any span
        True
    """
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return None
    return trace.format_trace_id(span_context.trace_id)


def get_span_id() -> str | None:
    """Get the current span ID as 16 lowercase hex characters, or None."""
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return None
    return trace.format_span_id(span_context.span_id)
