"""
Settings shared by every service, loaded from environment variables.

Uses Pydantic Settings for type-safe configuration with validation.
All settings can be overridden via environment variables or .env file.
Each service subclasses ServiceSettings with its own fields.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServiceSettings(BaseSettings):
    """
    Common service configuration.

    Covers the listening port, logging, OpenTelemetry export and the
    shutdown grace periods. Values are read once at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Both services share one .env in docker-compose setups
    )

    # Service Configuration
    service_name: str = Field(default="service", description="service.name resource attribute")
    port: int = Field(default=8080, ge=1, le=65535, description="HTTP listening port")
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # Outbound HTTP
    http_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Timeout applied to every downstream HTTP call",
    )

    # OpenTelemetry Configuration
    telemetry_enabled: bool = Field(default=True, description="Export spans over OTLP/HTTP")
    otel_exporter_otlp_endpoint: str = Field(
        default="jaeger:4318",
        description="OTLP/HTTP collector endpoint (host:port or URL)",
    )
    application_origin: str = Field(
        default="",
        description="application.origin resource attribute; empty means service_name",
    )
    otel_exporter_timeout_seconds: float = Field(default=5.0, gt=0)
    telemetry_shutdown_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Bound for flushing spans after the server stops",
    )

    # Process lifecycle
    graceful_shutdown_seconds: int = Field(
        default=5,
        ge=0,
        description="Grace period for in-flight requests on SIGINT/SIGTERM",
    )
