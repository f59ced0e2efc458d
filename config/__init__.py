"""Configuration management."""

from config.settings import ServiceSettings

__all__ = [
    "ServiceSettings",
]
