"""Tests for the shared plain-text exception handlers."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from libs.common.error_handlers import register_exception_handlers
from libs.common.exceptions import (
    CepNotFoundError,
    ConfigurationError,
    InternalError,
    UpstreamServiceError,
    ValidationError,
    ValidationErrorKind,
    WeatherPlatformError,
)


def build_app(error: Exception, seen: list[str]) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app, on_error=seen.append)

    @app.get("/fail")
    async def fail() -> None:
        raise error

    return app


@pytest.mark.parametrize(
    ("error", "status_code", "body", "code"),
    [
        (ValidationError("param 'cep' is required", ValidationErrorKind.BAD_REQUEST), 400, "param 'cep' is required", "invalid"),
        (ValidationError("invalid zipcode", ValidationErrorKind.UNPROCESSABLE), 422, "invalid zipcode", "invalid"),
        (CepNotFoundError(), 404, "can not find zipcode", "not_found"),
        (UpstreamServiceError(503), 503, "error on find weather in orchestrator service", "upstream"),
        (InternalError("ViaCEP request failed: secret detail"), 500, "an error occurred while processing your request", "internal"),
        (ConfigurationError("WEATHER_API_KEY is required"), 500, "an error occurred while processing your request", "configuration"),
        (WeatherPlatformError(), 500, "an error occurred while processing your request", "error"),
    ],
)
def test_platform_errors_map_to_plain_text(
    error: WeatherPlatformError, status_code: int, body: str, code: str
) -> None:
    seen: list[str] = []

    response = TestClient(build_app(error, seen)).get("/fail")

    assert response.status_code == status_code
    assert response.text == body
    assert response.headers["content-type"].startswith("text/plain")
    assert seen == [code]


def test_unexpected_error_is_generic_500() -> None:
    seen: list[str] = []
    client = TestClient(build_app(RuntimeError("kaboom"), seen), raise_server_exceptions=False)

    response = client.get("/fail")

    assert response.status_code == 500
    assert response.text == "an error occurred while processing your request"
    assert "kaboom" not in response.text
    assert seen == ["unexpected"]
