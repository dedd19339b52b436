"""Autenticación de operadores para los endpoints /api.

SECURITY: En producción, FARM_API_KEY debe estar configurado. El polling
de estado del dispositivo (/api/device/status) queda fuera de esta
dependencia.
"""

from __future__ import annotations

import hmac
import logging
import os

from fastapi import Header, HTTPException

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown"


def _is_production() -> bool:
    return os.getenv("ENVIRONMENT", "").lower() == "production"


def require_api_key(
    x_api_key: str | None = Header(default=None, alias="X-API-Key")
) -> None:
    """Dependencia FastAPI para rutas de operador.

    Sin FARM_API_KEY configurada se permite el acceso (solo desarrollo).
    """
    expected = os.getenv("FARM_API_KEY")

    if not expected:
        if _is_production():
            logger.error("[SECURITY] FARM_API_KEY missing with ENVIRONMENT=production")
            raise HTTPException(status_code=500, detail="Server misconfiguration: API key not set")
        logger.debug("[SECURITY] FARM_API_KEY not set, operator routes are open")
        return

    if not x_api_key:
        raise HTTPException(status_code=401, detail="API key required")

    if not hmac.compare_digest(x_api_key.encode(), expected.encode()):
        logger.warning("[SECURITY] rejected operator request: invalid API key")
        raise HTTPException(status_code=401, detail="Invalid API key")


def get_request_user(x_user: str | None = Header(default=None, alias="X-User")) -> str:
    """Operador que firma las entradas del activity log."""
    return (x_user or "").strip() or UNKNOWN_USER
