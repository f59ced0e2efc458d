"""Tests for tracer setup and span helpers."""

import time
from unittest.mock import MagicMock

import pytest
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode

from libs.common.log_sanitizer import register_secret
from libs.common.telemetry import Telemetry, init_telemetry, otlp_traces_url, record_error


class TestOtlpTracesUrl:
    @pytest.mark.parametrize(
        ("endpoint", "expected"),
        [
            ("jaeger:4318", "http://jaeger:4318/v1/traces"),
            ("http://collector:4318", "http://collector:4318/v1/traces"),
            ("https://collector.example.com/", "https://collector.example.com/v1/traces"),
            ("http://collector:4318/custom/traces", "http://collector:4318/custom/traces"),
        ],
    )
    def test_normalizes_endpoint(self, endpoint: str, expected: str) -> None:
        assert otlp_traces_url(endpoint) == expected


class TestInitTelemetry:
    def test_resource_carries_service_name(self) -> None:
        telemetry = init_telemetry("orchestrator", enabled=False, origin="cep-weather")

        attributes = telemetry.provider.resource.attributes
        assert attributes["service.name"] == "orchestrator"
        assert attributes["application.origin"] == "cep-weather"
        telemetry.provider.shutdown()

    def test_extra_processor_receives_spans(
        self, telemetry: Telemetry, span_exporter: InMemorySpanExporter
    ) -> None:
        with telemetry.tracer.start_as_current_span("parent"):
            with telemetry.tracer.start_as_current_span("child"):
                pass

        child, parent = span_exporter.get_finished_spans()
        assert child.name == "child"
        assert child.parent.span_id == parent.context.span_id

    def test_enabled_exporter_is_attached(self) -> None:
        telemetry = init_telemetry("edge-service", endpoint="127.0.0.1:1", exporter_timeout=0.1)

        processors = telemetry.provider._active_span_processor._span_processors
        assert len(processors) == 1
        telemetry.provider.shutdown()


class TestTelemetryShutdown:
    def test_shutdown_flushes_then_shuts_down(self) -> None:
        provider = MagicMock()
        provider.force_flush.return_value = True
        telemetry = Telemetry(provider=provider, tracer=MagicMock(), shutdown_timeout=2.0)

        assert telemetry.shutdown() is True
        provider.force_flush.assert_called_once_with(timeout_millis=2000)
        provider.shutdown.assert_called_once()

    def test_shutdown_reports_flush_timeout(self) -> None:
        provider = MagicMock()
        provider.force_flush.return_value = False
        telemetry = Telemetry(provider=provider, tracer=MagicMock(), shutdown_timeout=0.5)

        assert telemetry.shutdown() is False
        provider.shutdown.assert_called_once()

    @pytest.mark.asyncio()
    async def test_async_shutdown_is_bounded(self) -> None:
        def slow_flush(timeout_millis: int) -> bool:
            time.sleep(1.5)
            return True

        provider = MagicMock()
        provider.force_flush.side_effect = slow_flush
        telemetry = Telemetry(provider=provider, tracer=MagicMock(), shutdown_timeout=0.1)

        assert await telemetry.ashutdown() is False


class TestRecordError:
    def test_records_masked_exception_event(
        self, telemetry: Telemetry, span_exporter: InMemorySpanExporter
    ) -> None:
        register_secret("abc123")

        with telemetry.tracer.start_as_current_span("lookup") as span:
            record_error(span, ConnectionError("GET /current.json?key=abc123 failed"))

        (finished,) = span_exporter.get_finished_spans()
        (event,) = finished.events
        assert event.name == "exception"
        assert event.attributes["exception.type"] == "ConnectionError"
        assert event.attributes["exception.message"] == "GET /current.json?key=*** failed"
        assert finished.status.status_code == StatusCode.ERROR
        assert "abc123" not in finished.status.description

    def test_description_overrides_message(
        self, telemetry: Telemetry, span_exporter: InMemorySpanExporter
    ) -> None:
        with telemetry.tracer.start_as_current_span("lookup") as span:
            record_error(span, ValueError("raw detail"), "invalid payload")

        (finished,) = span_exporter.get_finished_spans()
        assert finished.events[0].attributes["exception.message"] == "invalid payload"
