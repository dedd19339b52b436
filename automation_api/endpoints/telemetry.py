"""Endpoint de ingesta de telemetría: persiste la muestra y evalúa reglas."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from common.config import get_settings
from common.db import get_db, utcnow

from ..auth import require_api_key
from ..errors import AutomationError
from ..persistence import telemetry_repository
from ..pipelines.automation_cycle import AutomationCycle
from ..rules.models import TelemetrySample
from ..schemas import IngestResult, TelemetryIn, TelemetryOut

router = APIRouter(prefix="/api/sensors", tags=["telemetry"])
logger = logging.getLogger(__name__)


@router.post(
    "/data",
    response_model=IngestResult,
    status_code=201,
    dependencies=[Depends(require_api_key)],
)
def ingest_sample(payload: TelemetryIn, db: Session = Depends(get_db)):
    """Recibe una muestra del dispositivo y ejecuta un ciclo de automatización."""
    settings = get_settings()
    sample = TelemetrySample(
        timestamp=payload.timestamp or utcnow(),
        device_id=payload.device_id or settings.default_device_id,
        soil_moisture=payload.soil_moisture,
        temperature=payload.temperature,
        humidity=payload.humidity,
        light=payload.light,
        water_level=payload.water_level,
    )

    try:
        outcome = AutomationCycle(db, settings).run(sample)
        db.commit()
    except AutomationError:
        db.rollback()
        raise
    except Exception as e:
        logger.exception("DB error in /api/sensors/data err=%s", type(e).__name__)
        db.rollback()
        raise HTTPException(status_code=500, detail=f"DB error: {type(e).__name__}")

    return IngestResult.from_outcome(outcome)


@router.get(
    "/data",
    response_model=List[TelemetryOut],
    dependencies=[Depends(require_api_key)],
)
def list_samples(
    device_id: Optional[str] = Query(default=None, alias="deviceId"),
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    samples = telemetry_repository.list_recent_samples(db, device_id=device_id, limit=limit)
    return [TelemetryOut.from_sample(s) for s in samples]
