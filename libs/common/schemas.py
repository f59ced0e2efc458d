"""Shared Pydantic schemas.

The unified weather payload is produced by the Orchestrator Service and
re-emitted unchanged by the Edge Service, so both services serialize it
through the same model. Field names on the wire keep their unit suffixes
(``temp_C``, ``temp_F``, ``temp_K``).
"""

from pydantic import BaseModel, ConfigDict, Field

KELVIN_OFFSET = 273.15


def celsius_to_kelvin(celsius: float) -> float:
    """Convert a Celsius temperature to Kelvin.

    Example:
        >>> celsius_to_kelvin(25.5)
        298.65
    """
    return celsius + KELVIN_OFFSET


class UnifiedWeatherResponse(BaseModel):
    """
    City name plus the current temperature in three units.

    Example:
        {
            "city": "São Paulo",
            "temp_C": 25.5,
            "temp_F": 77.9,
            "temp_K": 298.65
        }

    Notes:
        - temp_C and temp_F are copied from the weather provider unchanged
        - temp_K is always derived from temp_C, never from temp_F
    """

    model_config = ConfigDict(populate_by_name=True)

    city: str
    temp_c: float = Field(..., alias="temp_C", description="Temperature in Celsius")
    temp_f: float = Field(..., alias="temp_F", description="Temperature in Fahrenheit")
    temp_k: float = Field(..., alias="temp_K", description="Temperature in Kelvin")

    @classmethod
    def from_celsius(cls, city: str, temp_c: float, temp_f: float) -> "UnifiedWeatherResponse":
        """Build the payload, deriving Kelvin from the Celsius reading."""
        return cls(city=city, temp_c=temp_c, temp_f=temp_f, temp_k=celsius_to_kelvin(temp_c))
