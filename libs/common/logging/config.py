"""Centralized logging configuration for all services.

This module provides standardized logging setup using structured JSON output
with trace ID support. Both services call configure_logging() once at startup
to ensure consistent log format and behavior.

Example:
    >>> from libs.common.logging.config import configure_logging
    >>> logger = configure_logging(service_name="orchestrator", log_level="INFO")
    >>> logger.info("Service started", extra={"context": {"port": 8080}})
"""

import logging
import sys
from typing import Optional

from libs.common.log_sanitizer import SecretMaskingFilter
from libs.common.logging.context import get_span_id, get_trace_id
from libs.common.logging.formatter import JSONFormatter


class TraceIDFilter(logging.Filter):
    """Logging filter that adds trace and span IDs to log records.

    Injects the IDs of the active OpenTelemetry span into every log record
    so they appear in the formatted output.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Add trace ID to the log record.

        Args:
            record: The log record to filter

        Returns:
            True (always allows the record through)
        """
        record.trace_id = get_trace_id()
        record.span_id = get_span_id()
        return True


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    include_context: bool = True,
) -> logging.Logger:
    """Configure structured JSON logging for a service.

    Sets up the root logger with:
    - JSON formatted output to stdout
    - Trace/span ID injection on all records
    - Masking of registered secrets
    - Specified log level

    This should be called once at service startup.

    Args:
        service_name: Name of the service (e.g., "orchestrator")
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        include_context: Whether to include context dict in output

    Returns:
        Configured root logger instance

    Raises:
        ValueError: If log_level is invalid
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(
        JSONFormatter(
            service_name=service_name,
            include_context=include_context,
        )
    )
    handler.addFilter(TraceIDFilter())
    handler.addFilter(SecretMaskingFilter())

    root_logger.addHandler(handler)

    # uvicorn's own access log duplicates the access-log middleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    return root_logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (typically __name__). If None, returns root logger.

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context_fields: object,
) -> None:
    """Log a message with additional context fields.

    Context fields will appear in the "context" dict in JSON output.

    Example:
        >>> logger = get_logger(__name__)
        >>> log_with_context(logger, "INFO", "Resolved CEP", cep="01001-000", city="São Paulo")
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra={"context": context_fields})
