"""
Orchestrator Service.

Resolves a Brazilian postal code (CEP) to a city and returns the city's
current temperature in Celsius, Fahrenheit and Kelvin:
1. Validate the CEP format
2. Resolve the address through ViaCEP
3. Fetch the current weather for the city through WeatherAPI
4. Compose the unified response

Architecture:
    Edge Service → Orchestrator → ViaCEP (HTTP)
                               ↓
                               WeatherAPI (HTTP)
"""

__version__ = "0.1.0"
