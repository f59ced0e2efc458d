"""Outbound HTTP transports with tracing, redaction and header logging.

Outbound calls are intercepted by stacking ``httpx.AsyncBaseTransport``
decorators around the real network transport. Each layer has one job and
forwards the original request to the layer below:

    TracingTransport            (outermost: CLIENT span, context propagation)
      -> RedactingTransport     (records the credential-free URL on the span)
      -> HeaderLoggingTransport (logs outbound headers)
        -> httpx.AsyncHTTPTransport (innermost: real network call)

The tracing layer never records the query string. Only the redacting layer
records a full URL, after masking credential parameters.

Example:
    >>> transport = build_transport(tracer, redact_params={"key"})
    >>> async with httpx.AsyncClient(transport=transport, timeout=5.0) as client:
    ...     response = await client.get("https://api.weatherapi.com/v1/current.json",
    ...                                 params={"key": api_key, "q": "Rio"})
"""

from __future__ import annotations

import logging

import httpx
from opentelemetry import propagate, trace
from opentelemetry.trace import SpanKind, Status, StatusCode, Tracer

from libs.common.log_sanitizer import REDACTION_MASK, SENSITIVE_QUERY_PARAMS, redact_url
from libs.common.telemetry import record_error

logger = logging.getLogger(__name__)


class TracingTransport(httpx.AsyncBaseTransport):
    """Transport decorator that wraps every request in a CLIENT span.

    Records method, host, path and response status, injects the W3C trace
    context into the outbound headers so the downstream service joins the
    same trace, and records transport failures on the span.
    """

    def __init__(self, transport: httpx.AsyncBaseTransport, tracer: Tracer) -> None:
        self._transport = transport
        self._tracer = tracer

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        attributes = {
            "http.request.method": request.method,
            "server.address": request.url.host,
            "url.scheme": request.url.scheme,
            "url.path": request.url.path,
        }
        if request.url.port is not None:
            attributes["server.port"] = request.url.port

        with self._tracer.start_as_current_span(
            f"HTTP {request.method}",
            kind=SpanKind.CLIENT,
            attributes=attributes,
            record_exception=False,
            set_status_on_exception=False,
        ) as span:
            propagate.inject(request.headers)
            try:
                response = await self._transport.handle_async_request(request)
            except Exception as exc:
                record_error(span, exc)
                raise

            span.set_attribute("http.response.status_code", response.status_code)
            if response.status_code >= 400:
                span.set_status(Status(StatusCode.ERROR))
            return response

    async def aclose(self) -> None:
        await self._transport.aclose()


class RedactingTransport(httpx.AsyncBaseTransport):
    """Transport decorator that records a credential-free URL on the active span.

    The credential parameters are replaced with a fixed mask token in the
    recorded ``url.full`` attribute only; the request forwarded to the inner
    transport is the original, unredacted one.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        params: frozenset[str] | set[str] = SENSITIVE_QUERY_PARAMS,
        mask: str = REDACTION_MASK,
    ) -> None:
        self._transport = transport
        self._params = frozenset(name.lower() for name in params)
        self._mask = mask

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        span = trace.get_current_span()
        if span.is_recording():
            span.set_attribute("url.full", redact_url(request.url, self._params, self._mask))
        return await self._transport.handle_async_request(request)

    async def aclose(self) -> None:
        await self._transport.aclose()


class HeaderLoggingTransport(httpx.AsyncBaseTransport):
    """Transport decorator that logs every outbound request header at DEBUG."""

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        log: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._logger = log or logger

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if self._logger.isEnabledFor(logging.DEBUG):
            self._logger.debug(
                f"Outbound request headers: {request.method} {request.url.host}{request.url.path}",
                extra={"context": {"headers": dict(request.headers.items())}},
            )
        return await self._transport.handle_async_request(request)

    async def aclose(self) -> None:
        await self._transport.aclose()


def build_transport(
    tracer: Tracer,
    *,
    redact_params: frozenset[str] | set[str] | None = None,
    log_headers: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncBaseTransport:
    """Compose the outbound transport chain.

    Args:
        tracer: Tracer used by the outermost tracing layer
        redact_params: Query parameters to mask in the recorded URL; when None
            no redacting layer is added
        log_headers: Add the header logging layer
        transport: Innermost transport (defaults to a real network transport)

    Returns:
        The outermost transport, ready for ``httpx.AsyncClient(transport=...)``
    """
    chain: httpx.AsyncBaseTransport = transport or httpx.AsyncHTTPTransport()
    if log_headers:
        chain = HeaderLoggingTransport(chain)
    if redact_params is not None:
        chain = RedactingTransport(chain, params=redact_params)
    return TracingTransport(chain, tracer)
