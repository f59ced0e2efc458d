"""
Edge Service FastAPI Application.

Validates a CEP sent in a JSON body and forwards the lookup to the
Orchestrator Service, returning its payload unchanged.

Key Features:
- POST /weather-by-cep - Weather lookup by CEP ({"cep": "NNNNN-NNN"})
- GET /health - Health check (includes Orchestrator reachability)
- GET /metrics - Prometheus metrics

Environment Variables:
    ORCHESTRATOR_URL (or APP2_BASE_URL): Orchestrator base URL
    PORT: Listening port (default: 8080)
    REQUEST_TIMEOUT_SECONDS: Deadline for one forwarded lookup (default: 10)
    OTEL_EXPORTER_OTLP_ENDPOINT: OTLP/HTTP collector (default: jaeger:4318)
    LOG_LEVEL: Logging level (default: INFO)

Usage:
    $ python -m apps.edge_service.main
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from prometheus_client import Counter, Histogram, make_asgi_app
from pydantic import ValidationError as PayloadValidationError

from apps.edge_service import __version__
from apps.edge_service.clients import OrchestratorClient
from apps.edge_service.config import Settings, get_settings
from apps.edge_service.schemas import HealthResponse, UnifiedWeatherResponse, WeatherByCepRequest
from libs.common.error_handlers import register_exception_handlers
from libs.common.exceptions import (
    InternalError,
    ValidationError,
    ValidationErrorKind,
    WeatherPlatformError,
)
from libs.common.logging import add_tracing_middleware, configure_logging
from libs.common.telemetry import Telemetry, init_telemetry, record_error
from libs.common.validators import validate_postal_code

logger = logging.getLogger(__name__)

# ============================================================================
# Prometheus Metrics
# ============================================================================

edge_requests_total = Counter(
    "edge_weather_requests_total",
    "Total number of weather-by-CEP requests received",
    ["outcome"],  # success, invalid, not_found, upstream, internal, unexpected
)

edge_request_duration = Histogram(
    "edge_weather_request_duration_seconds",
    "Time taken to validate and forward a weather-by-CEP request",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)


def _count_failure(code: str) -> None:
    edge_requests_total.labels(outcome=code).inc()


async def read_cep(request: Request) -> str:
    """
    Decode the request body and return the validated CEP.

    Raises:
        ValidationError: Undecodable body (400), empty CEP (400) or
            malformed CEP (422)
    """
    body = await request.body()
    try:
        payload = WeatherByCepRequest.model_validate_json(body)
    except PayloadValidationError as e:
        raise ValidationError("invalid request body", ValidationErrorKind.BAD_REQUEST) from e
    return validate_postal_code(payload.cep)


# ============================================================================
# Application Factory
# ============================================================================


def create_app(
    settings: Settings | None = None,
    *,
    telemetry: Telemetry | None = None,
    orchestrator_client: OrchestratorClient | None = None,
) -> FastAPI:
    """
    Build the Edge Service application.

    Telemetry and the Orchestrator client are created here unless injected.
    """
    settings = settings or get_settings()

    if telemetry is None:
        telemetry = init_telemetry(
            settings.service_name,
            endpoint=settings.otel_exporter_otlp_endpoint,
            enabled=settings.telemetry_enabled,
            exporter_timeout=settings.otel_exporter_timeout_seconds,
            shutdown_timeout=settings.telemetry_shutdown_timeout_seconds,
            origin=settings.application_origin or settings.service_name,
        )
    if orchestrator_client is None:
        orchestrator_client = OrchestratorClient(
            settings.orchestrator_url,
            telemetry.tracer,
            timeout=settings.http_timeout_seconds,
            log_headers=settings.log_outbound_headers,
        )
    client = orchestrator_client

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            f"Edge Service started (version={__version__}, port={settings.port})",
            extra={"context": {"orchestrator_url": settings.orchestrator_url}},
        )
        try:
            yield
        finally:
            logger.info("Edge Service shutting down")
            await client.close()
            await telemetry.ashutdown()

    app = FastAPI(
        title="Edge Service",
        description="Validates a CEP and forwards the weather lookup to the Orchestrator",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.telemetry = telemetry
    app.state.orchestrator_client = client

    add_tracing_middleware(app, telemetry.tracer)
    register_exception_handlers(app, on_error=_count_failure)
    app.mount("/metrics", make_asgi_app())

    # ========================================================================
    # Endpoints
    # ========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """
        Health check endpoint.

        Always answers 200; ``status`` is "degraded" while the Orchestrator is
        unreachable.
        """
        orchestrator_healthy = await client.health_check()
        return HealthResponse(
            status="healthy" if orchestrator_healthy else "degraded",
            service="edge-service",
            version=__version__,
            orchestrator_healthy=orchestrator_healthy,
        )

    @app.post("/weather-by-cep", response_model=UnifiedWeatherResponse, tags=["Weather"])
    async def weather_by_cep(request: Request) -> UnifiedWeatherResponse:
        """
        Validate the CEP and forward the lookup to the Orchestrator.

        Status mapping:
            400: Undecodable body, or missing/empty ``cep``
            422: ``cep`` not in NNNNN-NNN format
            404: Orchestrator reported the CEP as not found
            4xx/5xx: Other Orchestrator errors, status passed through
            500: Transport failure or deadline exceeded

        Examples:
            >>> import httpx
            >>> response = httpx.post("http://localhost:8080/weather-by-cep", json={"cep": "01001-000"})
            >>> response.json()
            {'city': 'São Paulo', 'temp_C': 25.5, 'temp_F': 77.9, 'temp_K': 298.65}
        """
        tracer = request.app.state.telemetry.tracer
        with tracer.start_as_current_span(
            "/weather-by-cep", record_exception=False, set_status_on_exception=False
        ) as span, edge_request_duration.time():
            try:
                cep = await read_cep(request)
                span.set_attribute("cep.value", cep)
                try:
                    async with asyncio.timeout(settings.request_timeout_seconds):
                        result = await client.get_weather_by_cep(cep)
                except TimeoutError as e:
                    raise InternalError("orchestrator lookup deadline exceeded") from e
            except WeatherPlatformError as e:
                if e.status_code >= 500:
                    record_error(span, e)
                raise

        edge_requests_total.labels(outcome="success").inc()
        return result

    return app


# ============================================================================
# Entry Point
# ============================================================================


def main() -> None:
    """Start the service."""
    settings = get_settings()
    configure_logging(settings.service_name, settings.log_level)

    app = create_app(settings)
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=settings.port,
        log_config=None,
        timeout_graceful_shutdown=settings.graceful_shutdown_seconds,
    )


if __name__ == "__main__":
    main()
