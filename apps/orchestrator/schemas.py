"""
Pydantic schemas for the Orchestrator Service.

Covers the two upstream payloads (ViaCEP address, WeatherAPI current
conditions) and the service's own responses. The unified weather payload is
shared with the Edge Service and lives in libs.common.schemas.
"""

from pydantic import BaseModel, ConfigDict, Field

from libs.common.schemas import UnifiedWeatherResponse

# ==============================================================================
# ViaCEP
# ==============================================================================


class Address(BaseModel):
    """
    Address resolved from a CEP by ViaCEP.

    ViaCEP answers unknown codes with HTTP 200 and ``{"erro": true}``; older
    deployments send the flag as the string ``"true"``. Both decode to
    ``not_found=True``.

    Example:
        {
            "cep": "01001-000",
            "logradouro": "Praça da Sé",
            "localidade": "São Paulo",
            "uf": "SP"
        }
    """

    model_config = ConfigDict(populate_by_name=True)

    cep: str = ""
    street: str = Field(default="", alias="logradouro")
    city: str = Field(default="", alias="localidade")
    state: str = Field(default="", alias="uf")
    not_found: bool = Field(default=False, alias="erro")


# ==============================================================================
# WeatherAPI
# ==============================================================================


class CurrentWeather(BaseModel):
    """Current conditions for a location, in both temperature units."""

    temp_c: float
    temp_f: float


class WeatherApiResponse(BaseModel):
    """Envelope of the WeatherAPI ``current.json`` response."""

    current: CurrentWeather


# ==============================================================================
# Service responses
# ==============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str


__all__ = [
    "Address",
    "CurrentWeather",
    "HealthResponse",
    "UnifiedWeatherResponse",
    "WeatherApiResponse",
]
