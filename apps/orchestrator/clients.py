"""
HTTP clients for the upstream lookup APIs (ViaCEP and WeatherAPI).

Each client owns an ``httpx.AsyncClient`` built on the shared transport chain,
so every outbound call gets a CLIENT span with W3C context propagation. Each
lookup also opens its own INTERNAL span (``FindAddressByCep`` or
``FindTemperatureByCity``) and maps upstream outcomes onto the platform
exception hierarchy. No retries are performed.
"""

import logging

import httpx
from opentelemetry.trace import Tracer
from pydantic import ValidationError as PayloadValidationError

from apps.orchestrator.schemas import Address, CurrentWeather, WeatherApiResponse
from libs.common.exceptions import CepNotFoundError, CityNotFoundError, InternalError
from libs.common.log_sanitizer import SENSITIVE_QUERY_PARAMS, mask_secrets, register_secret
from libs.common.logging.http_client import build_transport
from libs.common.telemetry import record_error

logger = logging.getLogger(__name__)


class AddressClient:
    """
    Client for ViaCEP address lookups.

    Example:
        >>> client = AddressClient("https://viacep.com.br", tracer)
        >>> address = await client.find_address("01001-000")
        >>> address.city
        'São Paulo'
    """

    def __init__(
        self,
        base_url: str,
        tracer: Tracer,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize ViaCEP client.

        Args:
            base_url: Base URL of ViaCEP (e.g., "https://viacep.com.br")
            tracer: Tracer for lookup and outbound spans
            timeout: Per-call timeout in seconds (default: 5.0)
            transport: Innermost transport, used by tests to stub the network
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.tracer = tracer
        self.client = httpx.AsyncClient(
            timeout=timeout,
            transport=build_transport(tracer, redact_params=SENSITIVE_QUERY_PARAMS, transport=transport),
        )

    async def close(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()

    async def find_address(self, cep: str) -> Address:
        """
        Resolve a CEP to an address.

        Args:
            cep: Postal code already validated as ``NNNNN-NNN``

        Returns:
            Address with the city in ``city``

        Raises:
            CepNotFoundError: Non-2xx response, or a 2xx payload flagged ``erro``
            InternalError: Transport failure, timeout or undecodable payload
        """
        with self.tracer.start_as_current_span(
            "FindAddressByCep", record_exception=False, set_status_on_exception=False
        ) as span:
            span.set_attribute("cep.value", cep)
            url = f"{self.base_url}/ws/{cep}/json/"

            try:
                response = await self.client.get(url)
            except httpx.HTTPError as e:
                record_error(span, e)
                logger.error(f"Error requesting from ViaCEP API: {e}", extra={"context": {"cep": cep}})
                raise InternalError("ViaCEP request failed") from e

            span.set_attribute("http.response.status_code", response.status_code)
            if not response.is_success:
                span.add_event("ViaCEP API returned non-OK status")
                raise CepNotFoundError()

            try:
                address = Address.model_validate_json(response.content)
            except PayloadValidationError as e:
                record_error(span, e, "invalid ViaCEP response payload")
                logger.error(f"Error decoding ViaCEP API response: {e}", extra={"context": {"cep": cep}})
                raise InternalError("ViaCEP response could not be decoded") from e

            if address.not_found:
                span.add_event("ViaCEP API response indicates CEP not found (erro=true)")
                raise CepNotFoundError()

            logger.debug(f"Resolved CEP {cep} to {address.city}/{address.state}")
            return address


class WeatherClient:
    """
    Client for WeatherAPI current conditions.

    The API key travels as the ``key`` query parameter. It is registered with
    the log sanitizer on construction and masked in the URL recorded on the
    outbound span, so it never reaches logs, span attributes or error text.

    Example:
        >>> client = WeatherClient(api_key, "https://api.weatherapi.com/v1", tracer)
        >>> current = await client.find_temperature("São Paulo")
        >>> current.temp_c
        25.5
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        tracer: Tracer,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize WeatherAPI client.

        Args:
            api_key: WeatherAPI credential
            base_url: Base URL of WeatherAPI (e.g., "https://api.weatherapi.com/v1")
            tracer: Tracer for lookup and outbound spans
            timeout: Per-call timeout in seconds (default: 5.0)
            transport: Innermost transport, used by tests to stub the network
        """
        register_secret(api_key)
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.tracer = tracer
        self.client = httpx.AsyncClient(
            timeout=timeout,
            transport=build_transport(tracer, redact_params={"key"}, transport=transport),
        )

    async def close(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()

    async def find_temperature(self, city: str) -> CurrentWeather:
        """
        Fetch the current temperature for a city.

        Args:
            city: City name as returned by ViaCEP

        Returns:
            CurrentWeather with ``temp_c`` and ``temp_f``

        Raises:
            CityNotFoundError: Any non-2xx response
            InternalError: Transport failure, timeout or undecodable payload
        """
        with self.tracer.start_as_current_span(
            "FindTemperatureByCity", record_exception=False, set_status_on_exception=False
        ) as span:
            span.set_attribute("city.name", city)

            try:
                response = await self.client.get(
                    f"{self.base_url}/current.json",
                    params={"key": self._api_key, "q": city},
                )
            except httpx.HTTPError as e:
                record_error(span, e)
                logger.error(mask_secrets(f"Error requesting from WeatherAPI: {e}"))
                raise InternalError(f"WeatherAPI request failed: {type(e).__name__}") from e

            span.set_attribute("http.response.status_code", response.status_code)
            if not response.is_success:
                span.add_event("WeatherAPI returned non-OK status")
                logger.info(
                    "WeatherAPI returned non-OK status",
                    extra={"context": {"city": city, "status_code": response.status_code}},
                )
                raise CityNotFoundError()

            try:
                payload = WeatherApiResponse.model_validate_json(response.content)
            except PayloadValidationError as e:
                record_error(span, e, "invalid WeatherAPI response payload")
                logger.error("Error decoding WeatherAPI response", extra={"context": {"city": city}})
                raise InternalError("WeatherAPI response could not be decoded") from e

            return payload.current
