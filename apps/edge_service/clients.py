"""
HTTP client for the Orchestrator Service.

Built on the shared transport chain with header logging enabled, so each
forwarded lookup gets a CLIENT span whose W3C context is injected into the
outbound headers and the Orchestrator's spans join the same trace.
"""

import logging

import httpx
from opentelemetry.trace import Tracer
from pydantic import ValidationError as PayloadValidationError

from libs.common.exceptions import CepNotFoundError, InternalError, UpstreamServiceError
from libs.common.logging.http_client import build_transport
from libs.common.schemas import UnifiedWeatherResponse
from libs.common.telemetry import record_error

logger = logging.getLogger(__name__)


class OrchestratorClient:
    """
    Client for the Orchestrator Service.

    Example:
        >>> client = OrchestratorClient("http://orchestrator:8081", tracer)
        >>> weather = await client.get_weather_by_cep("01001-000")
        >>> weather.city
        'São Paulo'
    """

    def __init__(
        self,
        base_url: str,
        tracer: Tracer,
        timeout: float = 5.0,
        *,
        log_headers: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize Orchestrator client.

        Args:
            base_url: Base URL of the Orchestrator (e.g., "http://localhost:8081")
            tracer: Tracer for the forward span and outbound spans
            timeout: Per-call timeout in seconds (default: 5.0)
            log_headers: Log outbound request headers at DEBUG
            transport: Innermost transport, used by tests to stub the network
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.tracer = tracer
        self.client = httpx.AsyncClient(
            timeout=timeout,
            transport=build_transport(tracer, log_headers=log_headers, transport=transport),
        )

    async def close(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()

    async def health_check(self) -> bool:
        """
        Check if the Orchestrator is reachable and healthy.

        Returns:
            True if /health answers 200, False otherwise
        """
        try:
            response = await self.client.get(f"{self.base_url}/health")
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning(f"Orchestrator health check failed: {e}")
            return False

    async def get_weather_by_cep(self, cep: str) -> UnifiedWeatherResponse:
        """
        Forward a validated CEP to the Orchestrator.

        Args:
            cep: Postal code already validated as ``NNNNN-NNN``

        Returns:
            The Orchestrator's unified weather payload

        Raises:
            CepNotFoundError: Orchestrator answered 404
            UpstreamServiceError: Orchestrator answered any other status >= 400
            InternalError: Transport failure, timeout or undecodable payload
        """
        with self.tracer.start_as_current_span(
            "GetWeatherFromOrchestrator", record_exception=False, set_status_on_exception=False
        ) as span:
            span.set_attribute("cep.value", cep)

            try:
                response = await self.client.get(
                    f"{self.base_url}/get-weather-by-cep",
                    params={"cep": cep},
                )
            except httpx.HTTPError as e:
                record_error(span, e)
                logger.error(f"Error requesting from Orchestrator: {e}", extra={"context": {"cep": cep}})
                raise InternalError(f"orchestrator request failed: {type(e).__name__}") from e

            span.set_attribute("http.response.status_code", response.status_code)
            if response.status_code == httpx.codes.NOT_FOUND:
                span.add_event("Orchestrator reported CEP not found")
                raise CepNotFoundError()

            if response.status_code >= httpx.codes.BAD_REQUEST:
                span.add_event("Orchestrator returned error status")
                logger.warning(
                    "Orchestrator returned error status",
                    extra={"context": {"cep": cep, "status_code": response.status_code, "body": response.text}},
                )
                raise UpstreamServiceError(response.status_code)

            try:
                return UnifiedWeatherResponse.model_validate_json(response.content)
            except PayloadValidationError as e:
                record_error(span, e, "invalid Orchestrator response payload")
                logger.error("Error decoding Orchestrator response", extra={"context": {"cep": cep}})
                raise InternalError("orchestrator response could not be decoded") from e
