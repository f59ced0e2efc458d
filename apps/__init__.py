"""
Apps package - FastAPI services for the CEP weather platform.

This package contains both service applications:
- edge_service: Public entry point, validates the CEP and forwards the lookup
- orchestrator: Resolves the CEP to a city and fetches its current weather
"""
