"""Módulo de endpoints HTTP.

Contiene todos los endpoints de la API organizados por función.
"""

from .health import router as health_router
from .telemetry import router as telemetry_router
from .rules import router as rules_router
from .devices import router as devices_router
from .alerts import router as alerts_router
from .logs import router as logs_router

__all__ = [
    "health_router",
    "telemetry_router",
    "rules_router",
    "devices_router",
    "alerts_router",
    "logs_router",
]
