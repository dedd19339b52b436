"""Consulta de alertas y marcado como vistas."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from common.config import get_settings
from common.db import get_db

from ..auth import require_api_key
from ..errors import NotFoundError
from ..persistence import alert_repository
from ..schemas import AlertOut

router = APIRouter(prefix="/api/alerts", tags=["alerts"], dependencies=[Depends(require_api_key)])


@router.get("", response_model=List[AlertOut])
def list_alerts(
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    db: Session = Depends(get_db),
):
    page = limit or get_settings().alerts_page_size
    return [AlertOut.from_alert(a) for a in alert_repository.list_recent_alerts(db, limit=page)]


@router.patch("/{alert_id}/viewed", response_model=AlertOut)
def mark_alert_viewed(alert_id: str, db: Session = Depends(get_db)):
    if not alert_repository.mark_viewed(db, alert_id):
        raise NotFoundError("Alert", alert_id)
    db.commit()
    return AlertOut.from_alert(alert_repository.get_alert(db, alert_id))
