"""
Edge Service.

Public entry point of the platform. Accepts a CEP in a JSON body, validates
it, and forwards the lookup to the Orchestrator Service:

    Client → Edge Service (POST /weather-by-cep) → Orchestrator (HTTP)

The Orchestrator's JSON payload is returned unchanged on success.
"""

__version__ = "0.1.0"
