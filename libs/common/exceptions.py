"""
Exception hierarchy for the CEP weather platform.

This module defines all custom exceptions shared by the Edge Service and the
Orchestrator Service, organized in a hierarchy for precise error handling.

Each exception carries the HTTP status it maps to at a service boundary and
a short ``code`` used as a metrics label. Only validation and not-found errors
are allowed to cross a boundary with their own message; internal errors are
always translated to a generic message before reaching a client.
"""

from enum import Enum

from fastapi import status

INTERNAL_ERROR_MESSAGE = "an error occurred while processing your request"
CEP_NOT_FOUND_MESSAGE = "can not find zipcode"
CITY_NOT_FOUND_MESSAGE = "can not find city"
INVALID_ZIPCODE_MESSAGE = "invalid zipcode"
MISSING_ZIPCODE_MESSAGE = "param 'cep' is required"
UPSTREAM_ERROR_MESSAGE = "error on find weather in orchestrator service"


class WeatherPlatformError(Exception):
    """
    Base exception for all platform errors.

    All custom exceptions inherit from this class, allowing for catch-all
    error handling when needed.

    Example:
        >>> try:
        ...     await orchestrator.get_weather_by_cep("01001-000")
        ... except WeatherPlatformError as e:
        ...     logger.error(f"Lookup failed: {e}")
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "error"

    def __init__(self, message: str = INTERNAL_ERROR_MESSAGE) -> None:
        super().__init__(message)
        self.message = message


class ValidationErrorKind(str, Enum):
    """The two distinct ways a postal code can be rejected."""

    BAD_REQUEST = "bad_request"
    UNPROCESSABLE = "unprocessable"


class ValidationError(WeatherPlatformError):
    """
    Raised when an inbound request fails postal-code validation.

    An empty or missing code is a BAD_REQUEST (400); a non-empty code that
    does not match ``NNNNN-NNN`` is UNPROCESSABLE (422).

    Example:
        >>> raise ValidationError("invalid zipcode", ValidationErrorKind.UNPROCESSABLE)
    """

    code = "invalid"

    def __init__(self, message: str, kind: ValidationErrorKind) -> None:
        super().__init__(message)
        self.kind = kind

    @property
    def status_code(self) -> int:  # type: ignore[override]
        if self.kind is ValidationErrorKind.BAD_REQUEST:
            return status.HTTP_400_BAD_REQUEST
        return 422


class NotFoundError(WeatherPlatformError):
    """Raised when a postal code or city yields no result upstream."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class CepNotFoundError(NotFoundError):
    """
    Raised when the address lookup API has no entry for a postal code.

    ViaCEP signals this either with a non-2xx status or with a 2xx payload
    carrying ``"erro": true``.
    """

    def __init__(self, message: str = CEP_NOT_FOUND_MESSAGE) -> None:
        super().__init__(message)


class CityNotFoundError(NotFoundError):
    """Raised when the weather API returns a non-2xx status for a city."""

    def __init__(self, message: str = CITY_NOT_FOUND_MESSAGE) -> None:
        super().__init__(message)


class InternalError(WeatherPlatformError):
    """
    Raised on transport failures, decode failures or unexpected conditions.

    The message is safe to log but is never sent to a client verbatim.
    """

    code = "internal"


class UpstreamServiceError(WeatherPlatformError):
    """
    Raised by the Edge Service when the Orchestrator answers with a status >= 400
    other than 404. The downstream status code is passed through.
    """

    code = "upstream"

    def __init__(self, upstream_status: int, message: str = UPSTREAM_ERROR_MESSAGE) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return self.upstream_status


class ConfigurationError(WeatherPlatformError):
    """
    Raised when required configuration or secrets are missing.

    This is a fatal startup condition, e.g. the Orchestrator Service refuses
    to start without a weather API key.

    Example:
        >>> if not settings.weather_api_key.get_secret_value():
        ...     raise ConfigurationError("WEATHER_API_KEY is required")
    """

    code = "configuration"
