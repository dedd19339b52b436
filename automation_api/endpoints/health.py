"""Health and readiness endpoints."""

import logging

from fastapi import APIRouter, HTTPException
from sqlalchemy import text

from common.db import get_engine

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health")
def health():
    """Liveness: el proceso responde."""
    return {"status": "ok"}


@router.get("/ready")
def ready():
    """Readiness: la BD responde y el schema de reglas existe."""
    try:
        with get_engine().connect() as conn:
            rules = conn.execute(text("SELECT COUNT(*) FROM rules")).scalar()
    except Exception:
        logger.exception("Readiness check failed")
        raise HTTPException(status_code=503, detail="not ready")
    return {"status": "ready", "rules": int(rules or 0)}
