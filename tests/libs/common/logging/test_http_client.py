"""Tests for the outbound transport chain."""

import logging

import httpx
import pytest
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import SpanKind, StatusCode

from libs.common.log_sanitizer import register_secret
from libs.common.logging.http_client import (
    HeaderLoggingTransport,
    RedactingTransport,
    TracingTransport,
    build_transport,
)
from libs.common.telemetry import Telemetry


def recording_transport(status_code: int = 200) -> tuple[httpx.MockTransport, list[httpx.Request]]:
    """Inner transport that records what it was sent."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status_code, json={"ok": True})

    return httpx.MockTransport(handler), seen


class TestBuildTransport:
    def test_layer_order(self, telemetry: Telemetry) -> None:
        inner, _ = recording_transport()

        outer = build_transport(telemetry.tracer, redact_params={"key"}, log_headers=True, transport=inner)

        assert isinstance(outer, TracingTransport)
        assert isinstance(outer._transport, RedactingTransport)
        assert isinstance(outer._transport._transport, HeaderLoggingTransport)
        assert outer._transport._transport._transport is inner

    def test_optional_layers_are_skipped(self, telemetry: Telemetry) -> None:
        inner, _ = recording_transport()

        outer = build_transport(telemetry.tracer, transport=inner)

        assert isinstance(outer, TracingTransport)
        assert outer._transport is inner


class TestTracingTransport:
    @pytest.mark.asyncio()
    async def test_client_span_and_propagation(
        self, telemetry: Telemetry, span_exporter: InMemorySpanExporter
    ) -> None:
        inner, seen = recording_transport()
        async with httpx.AsyncClient(transport=build_transport(telemetry.tracer, transport=inner)) as client:
            await client.get("http://orchestrator:8081/get-weather-by-cep?cep=01001-000")

        (span,) = span_exporter.get_finished_spans()
        assert span.name == "HTTP GET"
        assert span.kind == SpanKind.CLIENT
        assert span.attributes["server.address"] == "orchestrator"
        assert span.attributes["server.port"] == 8081
        assert span.attributes["url.path"] == "/get-weather-by-cep"
        assert span.attributes["http.response.status_code"] == 200
        assert seen[0].headers["traceparent"].split("-")[2] == format(span.context.span_id, "016x")

    @pytest.mark.asyncio()
    async def test_error_status_marks_span(
        self, telemetry: Telemetry, span_exporter: InMemorySpanExporter
    ) -> None:
        inner, _ = recording_transport(status_code=502)
        async with httpx.AsyncClient(transport=build_transport(telemetry.tracer, transport=inner)) as client:
            response = await client.get("http://orchestrator:8081/health")

        assert response.status_code == 502
        (span,) = span_exporter.get_finished_spans()
        assert span.status.status_code == StatusCode.ERROR

    @pytest.mark.asyncio()
    async def test_transport_failure_is_recorded_and_reraised(
        self, telemetry: Telemetry, span_exporter: InMemorySpanExporter
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        transport = build_transport(telemetry.tracer, transport=httpx.MockTransport(handler))
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(httpx.ConnectError):
                await client.get("http://orchestrator:8081/health")

        (span,) = span_exporter.get_finished_spans()
        assert span.status.status_code == StatusCode.ERROR
        assert span.events[0].attributes["exception.type"] == "ConnectError"


class TestRedactingTransport:
    @pytest.mark.asyncio()
    async def test_masks_key_on_span_but_sends_original(
        self, telemetry: Telemetry, span_exporter: InMemorySpanExporter
    ) -> None:
        inner, seen = recording_transport()
        transport = build_transport(telemetry.tracer, redact_params={"key"}, transport=inner)

        async with httpx.AsyncClient(transport=transport) as client:
            await client.get(
                "https://api.weatherapi.com/v1/current.json",
                params={"key": "real-api-key", "q": "Rio de Janeiro"},
            )

        assert seen[0].url.params["key"] == "real-api-key"
        (span,) = span_exporter.get_finished_spans()
        assert span.attributes["url.full"] == (
            "https://api.weatherapi.com/v1/current.json?key=***&q=Rio+de+Janeiro"
        )
        assert all("real-api-key" not in str(value) for value in span.attributes.values())

    @pytest.mark.asyncio()
    async def test_masks_key_in_transport_error(
        self, telemetry: Telemetry, exported_span_text
    ) -> None:
        register_secret("real-api-key")

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError(f"cannot reach {request.url}", request=request)

        transport = build_transport(telemetry.tracer, redact_params={"key"}, transport=httpx.MockTransport(handler))
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(httpx.ConnectError):
                await client.get("https://api.weatherapi.com/v1/current.json", params={"key": "real-api-key"})

        assert "real-api-key" not in exported_span_text()


class TestHeaderLoggingTransport:
    @pytest.mark.asyncio()
    async def test_logs_outbound_headers_at_debug(
        self, telemetry: Telemetry, caplog: pytest.LogCaptureFixture
    ) -> None:
        inner, _ = recording_transport()
        transport = build_transport(telemetry.tracer, log_headers=True, transport=inner)

        with caplog.at_level(logging.DEBUG, logger="libs.common.logging.http_client"):
            async with httpx.AsyncClient(transport=transport) as client:
                await client.get("http://orchestrator:8081/health", headers={"X-Request-Source": "edge"})

        (record,) = [r for r in caplog.records if r.name == "libs.common.logging.http_client"]
        assert record.levelno == logging.DEBUG
        assert record.context["headers"]["x-request-source"] == "edge"
        assert "traceparent" in record.context["headers"]
