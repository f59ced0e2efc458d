"""OpenTelemetry tracer setup and span helpers.

Each service builds one TracerProvider at startup and passes the resulting
tracer explicitly into its HTTP clients, transports and middleware. Spans are
exported over OTLP/HTTP through a batching processor; shutdown flushes the
batch with a bounded timeout after the HTTP server has stopped.

Example:
    >>> telemetry = init_telemetry("orchestrator", endpoint="http://jaeger:4318")
    >>> with telemetry.tracer.start_as_current_span("work"):
    ...     pass
    >>> telemetry.shutdown()
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from urllib.parse import urlsplit

from opentelemetry import propagate
from opentelemetry.baggage.propagation import W3CBaggagePropagator
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.propagators.composite import CompositePropagator
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, Status, StatusCode, Tracer
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from libs.common.log_sanitizer import mask_secrets

logger = logging.getLogger(__name__)

DEFAULT_OTLP_ENDPOINT = "http://jaeger:4318"
OTLP_TRACES_PATH = "/v1/traces"


@dataclass(slots=True)
class Telemetry:
    """Process-wide tracing resources, read-only after startup."""

    provider: TracerProvider
    tracer: Tracer
    shutdown_timeout: float = 10.0

    def shutdown(self) -> bool:
        """Flush pending spans and shut the provider down.

        Returns:
            True if every pending span was flushed within shutdown_timeout
        """
        flushed = self.provider.force_flush(timeout_millis=int(self.shutdown_timeout * 1000))
        if not flushed:
            logger.warning(
                "Telemetry flush timed out",
                extra={"context": {"timeout_seconds": self.shutdown_timeout}},
            )
        self.provider.shutdown()
        return flushed

    async def ashutdown(self) -> bool:
        """Run shutdown off the event loop, bounded by shutdown_timeout.

        The outer wait also covers exporter shutdown, so a stuck collector
        cannot hold the process open.
        """
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.shutdown), timeout=self.shutdown_timeout + 1.0
            )
        except TimeoutError:
            logger.warning(
                "Telemetry shutdown timed out",
                extra={"context": {"timeout_seconds": self.shutdown_timeout}},
            )
            return False


def otlp_traces_url(endpoint: str) -> str:
    """Normalize an OTLP endpoint into a full traces URL.

    Accepts bare ``host:port`` values (plain HTTP is assumed) as well as full
    URLs. The ``/v1/traces`` path is appended when no path is given.

    Example:
        >>> otlp_traces_url("jaeger:4318")
        'http://jaeger:4318/v1/traces'
    """
    if "://" not in endpoint:
        endpoint = f"http://{endpoint}"
    parts = urlsplit(endpoint)
    if parts.path in ("", "/"):
        return f"{parts.scheme}://{parts.netloc}{OTLP_TRACES_PATH}"
    return endpoint


def init_telemetry(
    service_name: str,
    *,
    endpoint: str = DEFAULT_OTLP_ENDPOINT,
    enabled: bool = True,
    exporter_timeout: float = 5.0,
    shutdown_timeout: float = 10.0,
    origin: str | None = None,
    span_processor: SpanProcessor | None = None,
) -> Telemetry:
    """Build the tracer provider for a service.

    Args:
        service_name: Value of the ``service.name`` resource attribute
        endpoint: OTLP/HTTP collector endpoint
        enabled: When False no exporter is attached (spans are still created)
        exporter_timeout: Per-export timeout in seconds
        shutdown_timeout: Bound for the flush performed by Telemetry.shutdown
        origin: Optional ``application.origin`` resource attribute
        span_processor: Extra processor to attach (tests use an in-memory exporter)

    Returns:
        Telemetry holding the provider and a tracer named after the service
    """
    attributes: dict[str, str] = {SERVICE_NAME: service_name}
    if origin:
        attributes["application.origin"] = origin
    provider = TracerProvider(resource=Resource.create(attributes))

    if enabled:
        exporter = OTLPSpanExporter(
            endpoint=otlp_traces_url(endpoint),
            timeout=exporter_timeout,
        )
        provider.add_span_processor(BatchSpanProcessor(exporter))

    if span_processor is not None:
        provider.add_span_processor(span_processor)

    propagate.set_global_textmap(
        CompositePropagator([TraceContextTextMapPropagator(), W3CBaggagePropagator()])
    )

    logger.info(
        "Telemetry initialized",
        extra={"context": {"service": service_name, "exporter_enabled": enabled}},
    )
    return Telemetry(
        provider=provider,
        tracer=provider.get_tracer(service_name),
        shutdown_timeout=shutdown_timeout,
    )


def record_error(span: Span, error: BaseException, description: str | None = None) -> None:
    """Record an error on a span with registered secrets masked.

    Mirrors ``Span.record_exception`` but never attaches a stack trace and
    runs the message through the secret mask first, so credentials embedded
    in transport error messages cannot reach the exporter.
    """
    message = mask_secrets(description if description is not None else str(error))
    span.add_event(
        "exception",
        {
            "exception.type": type(error).__name__,
            "exception.message": message,
        },
    )
    span.set_status(Status(StatusCode.ERROR, message))


__all__ = [
    "DEFAULT_OTLP_ENDPOINT",
    "Telemetry",
    "init_telemetry",
    "otlp_traces_url",
    "record_error",
]
