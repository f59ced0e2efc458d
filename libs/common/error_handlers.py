"""FastAPI exception handlers shared by both services.

Errors leave a service as plain-text bodies. Validation, not-found and
pass-through upstream errors keep their own message; everything else is
answered with the generic internal-error message so that no internal detail
(and no credential) reaches a client.
"""

import logging
from typing import Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import PlainTextResponse

from libs.common.exceptions import (
    INTERNAL_ERROR_MESSAGE,
    NotFoundError,
    UpstreamServiceError,
    ValidationError,
    WeatherPlatformError,
)

logger = logging.getLogger(__name__)

_PUBLIC_ERRORS = (ValidationError, NotFoundError, UpstreamServiceError)


def public_message(exc: WeatherPlatformError) -> str:
    """Return the message that may be shown to a client for this error."""
    if isinstance(exc, _PUBLIC_ERRORS):
        return exc.message
    return INTERNAL_ERROR_MESSAGE


def register_exception_handlers(
    app: FastAPI,
    on_error: Callable[[str], None] | None = None,
) -> None:
    """Install plain-text handlers for platform and unexpected errors.

    Args:
        app: Application to register the handlers on
        on_error: Called with the error ``code`` for every handled error,
            used by the services to count failures per outcome
    """

    @app.exception_handler(WeatherPlatformError)
    async def platform_error_handler(request: Request, exc: WeatherPlatformError) -> PlainTextResponse:
        if on_error is not None:
            on_error(exc.code)
        if exc.status_code >= 500:
            logger.error(
                f"Request failed on {request.method} {request.url.path}: {exc.message}",
                extra={"context": {"error_code": exc.code, "status_code": exc.status_code}},
            )
        return PlainTextResponse(public_message(exc), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> PlainTextResponse:
        if on_error is not None:
            on_error("unexpected")
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}",
            exc_info=exc,
        )
        return PlainTextResponse(
            INTERNAL_ERROR_MESSAGE,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
