"""Configuration for the Edge Service."""

from functools import lru_cache

from pydantic import AliasChoices, Field, model_validator

from config.settings import ServiceSettings


class Settings(ServiceSettings):
    """
    Edge Service settings.

    The Orchestrator URL may be given as ORCHESTRATOR_URL or, for existing
    docker-compose files, as APP2_BASE_URL.
    """

    service_name: str = "edge-service"
    port: int = Field(default=8080, ge=1, le=65535)

    orchestrator_url: str = Field(
        default="http://localhost:8081",
        validation_alias=AliasChoices("orchestrator_url", "app2_base_url"),
        description="Base URL of the Orchestrator Service",
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Overall deadline for one forwarded lookup",
    )
    log_outbound_headers: bool = Field(
        default=True,
        description="Log headers of requests sent to the Orchestrator (DEBUG)",
    )

    @model_validator(mode="after")
    def check_deadlines(self) -> "Settings":
        if self.request_timeout_seconds < self.http_timeout_seconds:
            raise ValueError("request_timeout_seconds must be >= http_timeout_seconds")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, read once from the environment."""
    return Settings()
