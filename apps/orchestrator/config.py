"""
Configuration for the Orchestrator Service.

Loads from environment variables with Pydantic validation. The WeatherAPI key
is mandatory; the service refuses to start without it.
"""

from functools import lru_cache

from pydantic import Field, SecretStr

from config.settings import ServiceSettings
from libs.common.exceptions import ConfigurationError


class Settings(ServiceSettings):
    """Orchestrator Service settings."""

    service_name: str = "orchestrator"
    port: int = Field(default=8081, ge=1, le=65535)

    # WeatherAPI Configuration
    weather_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="WeatherAPI credential, sent as the 'key' query parameter",
    )
    weatherapi_base_url: str = "https://api.weatherapi.com/v1"

    # ViaCEP Configuration
    viacep_base_url: str = "https://viacep.com.br"

    def require_weather_api_key(self) -> str:
        """
        Return the WeatherAPI key, failing when it is unset.

        Raises:
            ConfigurationError: If WEATHER_API_KEY is empty or missing
        """
        api_key = self.weather_api_key.get_secret_value().strip()
        if not api_key:
            raise ConfigurationError("WEATHER_API_KEY is required")
        return api_key


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, read once from the environment."""
    return Settings()
