"""
Weather Orchestrator - Core lookup logic.

Coordinates one CEP lookup:
1. Validate the CEP format
2. Resolve the address through the address client (ViaCEP)
3. Fetch the current temperature for the city (WeatherAPI)
4. Compose the unified response, deriving Kelvin from Celsius

Address not-found errors cross the service boundary unchanged. Every other
upstream failure is logged here and surfaced as an InternalError, which the
HTTP layer answers with a generic 500 message.
"""

import logging
from typing import Protocol

from apps.orchestrator.schemas import Address, CurrentWeather, UnifiedWeatherResponse
from libs.common.exceptions import CepNotFoundError, InternalError, WeatherPlatformError
from libs.common.validators import validate_postal_code

logger = logging.getLogger(__name__)


class AddressLookup(Protocol):
    """Resolves a CEP to an address."""

    async def find_address(self, cep: str) -> Address: ...

    async def close(self) -> None: ...


class WeatherLookup(Protocol):
    """Fetches current conditions for a city."""

    async def find_temperature(self, city: str) -> CurrentWeather: ...

    async def close(self) -> None: ...


class WeatherOrchestrator:
    """
    Coordinates the address and weather lookups for a CEP.

    Example:
        >>> orchestrator = WeatherOrchestrator(address_client, weather_client)
        >>> result = await orchestrator.get_weather_by_cep("01001-000")
        >>> result.temp_k
        298.65
    """

    def __init__(self, address_client: AddressLookup, weather_client: WeatherLookup):
        self.address_client = address_client
        self.weather_client = weather_client

    async def close(self) -> None:
        """Close HTTP clients."""
        await self.address_client.close()
        await self.weather_client.close()

    async def get_weather_by_cep(self, cep: str | None) -> UnifiedWeatherResponse:
        """
        Look up the current temperature for the city of a CEP.

        Args:
            cep: Raw ``cep`` query parameter (may be None or empty)

        Returns:
            UnifiedWeatherResponse for the resolved city

        Raises:
            ValidationError: Empty CEP (400) or malformed CEP (422)
            CepNotFoundError: The CEP has no address
            InternalError: Any other address failure, or any weather failure
        """
        cep = validate_postal_code(cep)

        try:
            address = await self.address_client.find_address(cep)
        except CepNotFoundError:
            raise
        except WeatherPlatformError as e:
            logger.error(f"Error can not find CEP: {e}", extra={"context": {"cep": cep}})
            raise InternalError(f"address lookup failed: {e}") from e

        try:
            current = await self.weather_client.find_temperature(address.city)
        except WeatherPlatformError as e:
            # City-not-found from the weather API is reported as a 500 as well
            logger.error(
                f"Internal error while fetching temperature for the city {address.city}: {e}",
                extra={"context": {"cep": cep, "city": address.city, "error_code": e.code}},
            )
            raise InternalError(f"weather lookup failed: {e}") from e

        result = UnifiedWeatherResponse.from_celsius(address.city, current.temp_c, current.temp_f)
        logger.info(
            f"Weather resolved for CEP {cep}",
            extra={"context": {"city": result.city, "temp_c": result.temp_c}},
        )
        return result
