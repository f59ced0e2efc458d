"""
Orchestrator Service FastAPI Application.

Resolves a CEP to its city through ViaCEP and returns the city's current
temperature from WeatherAPI in Celsius, Fahrenheit and Kelvin.

Key Features:
- GET /get-weather-by-cep?cep=NNNNN-NNN - Weather lookup by CEP
- GET /health - Health check
- GET /metrics - Prometheus metrics

Environment Variables:
    WEATHER_API_KEY: WeatherAPI credential (required)
    PORT: Listening port (default: 8081)
    VIACEP_BASE_URL: ViaCEP base URL (default: https://viacep.com.br)
    WEATHERAPI_BASE_URL: WeatherAPI base URL (default: https://api.weatherapi.com/v1)
    OTEL_EXPORTER_OTLP_ENDPOINT: OTLP/HTTP collector (default: jaeger:4318)
    LOG_LEVEL: Logging level (default: INFO)

Usage:
    $ python -m apps.orchestrator.main
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Query, Request
from prometheus_client import Counter, Histogram, make_asgi_app

from apps.orchestrator import __version__
from apps.orchestrator.clients import AddressClient, WeatherClient
from apps.orchestrator.config import Settings, get_settings
from apps.orchestrator.orchestrator import AddressLookup, WeatherLookup, WeatherOrchestrator
from apps.orchestrator.schemas import HealthResponse, UnifiedWeatherResponse
from libs.common.error_handlers import register_exception_handlers
from libs.common.exceptions import ConfigurationError, WeatherPlatformError
from libs.common.logging import add_tracing_middleware, configure_logging
from libs.common.telemetry import Telemetry, init_telemetry, record_error

logger = logging.getLogger(__name__)

# ============================================================================
# Prometheus Metrics
# ============================================================================

weather_requests_total = Counter(
    "orchestrator_weather_requests_total",
    "Total number of weather-by-CEP lookups",
    ["outcome"],  # success, invalid, not_found, internal, unexpected
)

weather_request_duration = Histogram(
    "orchestrator_weather_request_duration_seconds",
    "Time taken to resolve a CEP and fetch its weather",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)


def _count_failure(code: str) -> None:
    weather_requests_total.labels(outcome=code).inc()


# ============================================================================
# Application Factory
# ============================================================================


def create_app(
    settings: Settings | None = None,
    *,
    telemetry: Telemetry | None = None,
    address_client: AddressLookup | None = None,
    weather_client: WeatherLookup | None = None,
) -> FastAPI:
    """
    Build the Orchestrator Service application.

    Clients and telemetry are created here unless injected (tests pass stubs
    and an in-memory span exporter). The lifespan only releases resources:
    HTTP clients first, then a bounded telemetry flush.

    Raises:
        ConfigurationError: If WEATHER_API_KEY is missing
    """
    settings = settings or get_settings()
    api_key = settings.require_weather_api_key()

    if telemetry is None:
        telemetry = init_telemetry(
            settings.service_name,
            endpoint=settings.otel_exporter_otlp_endpoint,
            enabled=settings.telemetry_enabled,
            exporter_timeout=settings.otel_exporter_timeout_seconds,
            shutdown_timeout=settings.telemetry_shutdown_timeout_seconds,
            origin=settings.application_origin or settings.service_name,
        )
    if address_client is None:
        address_client = AddressClient(
            settings.viacep_base_url,
            telemetry.tracer,
            timeout=settings.http_timeout_seconds,
        )
    if weather_client is None:
        weather_client = WeatherClient(
            api_key,
            settings.weatherapi_base_url,
            telemetry.tracer,
            timeout=settings.http_timeout_seconds,
        )
    orchestrator = WeatherOrchestrator(address_client, weather_client)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(f"Orchestrator Service started (version={__version__}, port={settings.port})")
        try:
            yield
        finally:
            logger.info("Orchestrator Service shutting down")
            await orchestrator.close()
            await telemetry.ashutdown()

    app = FastAPI(
        title="Orchestrator Service",
        description="Resolves a CEP to its city and returns the current temperature",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.telemetry = telemetry
    app.state.orchestrator = orchestrator

    add_tracing_middleware(app, telemetry.tracer)
    register_exception_handlers(app, on_error=_count_failure)
    app.mount("/metrics", make_asgi_app())

    # ========================================================================
    # Endpoints
    # ========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy", service="orchestrator", version=__version__)

    @app.get("/get-weather-by-cep", response_model=UnifiedWeatherResponse, tags=["Weather"])
    async def get_weather_by_cep(
        request: Request,
        cep: str | None = Query(default=None, description="Postal code in NNNNN-NNN format"),
    ) -> UnifiedWeatherResponse:
        """
        Look up the current temperature for the city of a CEP.

        Returns:
            UnifiedWeatherResponse with city, temp_C, temp_F and temp_K

        Raises:
            400: Missing or empty ``cep``
            422: ``cep`` not in NNNNN-NNN format
            404: CEP not found
            500: Any other failure (generic message)

        Examples:
            >>> import httpx
            >>> response = httpx.get("http://localhost:8081/get-weather-by-cep?cep=01001-000")
            >>> response.json()
            {'city': 'São Paulo', 'temp_C': 25.5, 'temp_F': 77.9, 'temp_K': 298.65}
        """
        service: WeatherOrchestrator = request.app.state.orchestrator
        tracer = request.app.state.telemetry.tracer

        with tracer.start_as_current_span(
            "/get-weather-by-cep", record_exception=False, set_status_on_exception=False
        ) as span, weather_request_duration.time():
            span.set_attribute("cep.value", cep or "")
            try:
                result = await service.get_weather_by_cep(cep)
            except WeatherPlatformError as e:
                if e.status_code >= 500:
                    record_error(span, e)
                raise

        weather_requests_total.labels(outcome="success").inc()
        return result

    return app


# ============================================================================
# Entry Point
# ============================================================================


def main() -> None:
    """Start the service; exits with status 1 on missing configuration."""
    settings = get_settings()
    configure_logging(settings.service_name, settings.log_level)

    try:
        app = create_app(settings)
    except ConfigurationError as e:
        logger.critical(f"Orchestrator Service cannot start: {e.message}")
        raise SystemExit(1) from e

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=settings.port,
        log_config=None,
        timeout_graceful_shutdown=settings.graceful_shutdown_seconds,
    )


if __name__ == "__main__":
    main()
