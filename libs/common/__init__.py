"""Common utilities and exceptions."""

from libs.common.exceptions import (
    CepNotFoundError,
    CityNotFoundError,
    ConfigurationError,
    InternalError,
    NotFoundError,
    UpstreamServiceError,
    ValidationError,
    ValidationErrorKind,
    WeatherPlatformError,
)
from libs.common.validators import is_valid_postal_code, validate_postal_code

__all__ = [
    "WeatherPlatformError",
    "ValidationError",
    "ValidationErrorKind",
    "NotFoundError",
    "CepNotFoundError",
    "CityNotFoundError",
    "InternalError",
    "UpstreamServiceError",
    "ConfigurationError",
    "is_valid_postal_code",
    "validate_postal_code",
]
