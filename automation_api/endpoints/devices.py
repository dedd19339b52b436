"""Control manual del dispositivo y polling de estado desde el IoT."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from common.config import get_settings
from common.db import get_db

from ..auth import get_request_user, require_api_key
from ..errors import AutomationError
from ..pipelines.device_commands import DeviceCommandService
from ..schemas import DeviceControlIn, DeviceStatusOut

router = APIRouter(tags=["devices"])
logger = logging.getLogger(__name__)


@router.post(
    "/api/control/pump",
    response_model=DeviceStatusOut,
    dependencies=[Depends(require_api_key)],
)
def control_pump(
    payload: DeviceControlIn,
    db: Session = Depends(get_db),
    user: str = Depends(get_request_user),
):
    """Comando del operador: {action: ON|OFF, autoMode, deviceId}.

    En modo Auto la acción manual se rechaza (409) y nada se persiste.
    """
    settings = get_settings()
    device_id = payload.device_id or settings.default_device_id

    try:
        state = DeviceCommandService(db, settings).control(
            device_id,
            action=payload.action,
            auto_mode=payload.auto_mode,
            user=user,
        )
        db.commit()
    except AutomationError:
        db.rollback()
        raise
    except Exception as e:
        logger.exception("DB error in /api/control/pump err=%s", type(e).__name__)
        db.rollback()
        raise HTTPException(status_code=500, detail=f"DB error: {type(e).__name__}")

    return DeviceStatusOut.from_state(state)


@router.get("/api/device/status", response_model=DeviceStatusOut)
def device_status(
    device_id: Optional[str] = Query(default=None, alias="deviceId"),
    db: Session = Depends(get_db),
):
    """Polling del dispositivo (sin API key, como el endpoint original).

    Un dispositivo desconocido se reporta en su estado inicial Manual-Off.
    """
    settings = get_settings()
    state = DeviceCommandService(db, settings).status(device_id or settings.default_device_id)
    return DeviceStatusOut.from_state(state)
