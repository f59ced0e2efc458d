"""Pydantic schemas for the Edge Service."""

from pydantic import BaseModel

from libs.common.schemas import UnifiedWeatherResponse


class WeatherByCepRequest(BaseModel):
    """
    Body of ``POST /weather-by-cep``.

    A missing ``cep`` decodes to an empty string and is rejected by the
    postal-code validator with 400.

    Example:
        {"cep": "01001-000"}
    """

    cep: str = ""


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str
    orchestrator_healthy: bool


__all__ = ["HealthResponse", "UnifiedWeatherResponse", "WeatherByCepRequest"]
