"""Centralized structured logging library.

This package provides structured JSON logging correlated with OpenTelemetry
traces, plus the outbound HTTP transports and inbound ASGI middleware that
create and propagate those traces across service boundaries.

Usage:
    # At service startup
    from libs.common.logging import configure_logging
    logger = configure_logging(service_name="orchestrator", log_level="INFO")

    # In request handlers
    from libs.common.logging import get_logger, log_with_context
    logger = get_logger(__name__)
    log_with_context(logger, "INFO", "Resolved CEP", cep="01001-000")
"""

from libs.common.logging.config import (
    TraceIDFilter,
    configure_logging,
    get_logger,
    log_with_context,
)
from libs.common.logging.context import (
    TRACE_ID_HEADER,
    get_span_id,
    get_trace_id,
)
from libs.common.logging.formatter import JSONFormatter
from libs.common.logging.http_client import (
    HeaderLoggingTransport,
    RedactingTransport,
    TracingTransport,
    build_transport,
)
from libs.common.logging.middleware import ASGITracingMiddleware, add_tracing_middleware

__all__ = [
    # Configuration
    "configure_logging",
    "get_logger",
    "log_with_context",
    "TraceIDFilter",
    # Trace ID lookup
    "get_trace_id",
    "get_span_id",
    "TRACE_ID_HEADER",
    # Formatter (for advanced usage)
    "JSONFormatter",
    # Outbound transports
    "TracingTransport",
    "RedactingTransport",
    "HeaderLoggingTransport",
    "build_transport",
    # Inbound middleware
    "ASGITracingMiddleware",
    "add_tracing_middleware",
]
