"""
Shared fixtures for tests.

Provides:
1. An in-memory span exporter wired into a test Telemetry (no OTLP export)
2. Cleanup of the process-wide secret registry between tests
"""

from collections.abc import Callable, Iterator

import pytest
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from libs.common.log_sanitizer import clear_registered_secrets
from libs.common.telemetry import Telemetry, init_telemetry


@pytest.fixture()
def api_key() -> str:
    """A recognizable WeatherAPI key for leak checks."""
    return "test-weather-api-key-8f2c1d"


@pytest.fixture()
def span_exporter() -> InMemorySpanExporter:
    """Collect finished spans in memory."""
    return InMemorySpanExporter()


@pytest.fixture()
def telemetry(span_exporter: InMemorySpanExporter) -> Iterator[Telemetry]:
    """Telemetry with the exporter disabled and spans captured in memory."""
    telemetry = init_telemetry(
        "test-service",
        enabled=False,
        span_processor=SimpleSpanProcessor(span_exporter),
    )
    yield telemetry
    telemetry.provider.shutdown()


@pytest.fixture(autouse=True)
def _reset_secret_registry() -> Iterator[None]:
    """Keep registered secrets from leaking across tests."""
    clear_registered_secrets()
    yield
    clear_registered_secrets()


@pytest.fixture()
def exported_span_text(span_exporter: InMemorySpanExporter) -> Callable[[], str]:
    """Return a callable flattening every exported span name, attribute and event to text."""

    def collect() -> str:
        texts: list[str] = []
        for span in span_exporter.get_finished_spans():
            texts.append(span.name)
            texts.extend(str(value) for value in (span.attributes or {}).values())
            if span.status.description:
                texts.append(span.status.description)
            for event in span.events:
                texts.append(event.name)
                texts.extend(str(value) for value in (event.attributes or {}).values())
        return "\n".join(texts)

    return collect
