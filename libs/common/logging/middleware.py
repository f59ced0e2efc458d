"""ASGI middleware for inbound tracing and access logging.

The middleware extracts the W3C trace context from incoming request headers,
starts one SERVER span per request, writes an access-log line, records the
response status on the span and echoes the trace ID in the ``X-Trace-ID``
response header.

Example:
    >>> from fastapi import FastAPI
    >>> from libs.common.logging.middleware import add_tracing_middleware
    >>>
    >>> app = FastAPI()
    >>> add_tracing_middleware(app, tracer)
"""

import logging
from typing import Any, Callable

from fastapi import FastAPI
from opentelemetry import propagate
from opentelemetry.trace import SpanKind, Status, StatusCode, Tracer
from starlette.types import ASGIApp

from libs.common.logging.context import TRACE_ID_HEADER, get_trace_id

logger = logging.getLogger(__name__)


def _header_map(scope: dict) -> dict[str, str]:
    """Decode ASGI header pairs into a lowercase-keyed dict."""
    headers: dict[str, str] = {}
    for raw_name, raw_value in scope.get("headers", []):
        headers[raw_name.decode("latin-1").lower()] = raw_value.decode("latin-1")
    return headers


def _client_ip(scope: dict, headers: dict[str, str]) -> str:
    """Return X-Forwarded-For when present, otherwise the peer address."""
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        return forwarded
    client = scope.get("client")
    if client:
        return f"{client[0]}:{client[1]}"
    return "unknown"


class ASGITracingMiddleware:
    """ASGI middleware that opens a SERVER span for every HTTP request.

    Works at the raw ASGI level so the trace header is injected even on error
    responses produced by FastAPI exception handlers.
    """

    def __init__(self, app: ASGIApp, tracer: Tracer) -> None:
        """Initialize ASGI middleware.

        Args:
            app: ASGI application to wrap
            tracer: Tracer used to create server spans
        """
        self.app = app
        self.tracer = tracer

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = _header_map(scope)
        method = scope.get("method", "GET")
        path = scope.get("path", "")
        query = scope.get("query_string", b"").decode("latin-1")
        target = f"{path}?{query}" if query else path

        logger.info(
            f"Request: IP={_client_ip(scope, headers)} Method={method} URL={target} "
            f'User-Agent="{headers.get("user-agent", "")}"'
        )

        parent_context = propagate.extract(headers)
        with self.tracer.start_as_current_span(
            f"{method} {path}",
            context=parent_context,
            kind=SpanKind.SERVER,
            attributes={"http.request.method": method, "url.path": path},
        ) as span:
            trace_id = get_trace_id()

            async def send_with_trace_id(message: dict[str, Any]) -> None:
                if message["type"] == "http.response.start":
                    status_code = message["status"]
                    span.set_attribute("http.response.status_code", status_code)
                    if status_code >= 500:
                        span.set_status(Status(StatusCode.ERROR))
                    if trace_id:
                        response_headers = list(message.get("headers", []))
                        response_headers.append((TRACE_ID_HEADER.lower().encode(), trace_id.encode()))
                        message["headers"] = response_headers

                await send(message)

            await self.app(scope, receive, send_with_trace_id)


def add_tracing_middleware(app: FastAPI, tracer: Tracer) -> None:
    """Add the tracing middleware to a FastAPI application.

    Should be called during application setup.

    Args:
        app: FastAPI application instance
        tracer: Tracer used for server spans
    """
    app.add_middleware(ASGITracingMiddleware, tracer=tracer)
