"""Repositorio de alertas - operaciones de persistencia.

Las alertas son append-only: solo `viewed` se actualiza.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from common.db import from_db_timestamp, to_db_timestamp

from ..dispatch.models import AlertRecord, AlertSeverity

logger = logging.getLogger(__name__)


def _row_to_alert(row) -> AlertRecord:
    return AlertRecord(
        id=row.id,
        type=row.type,
        message=row.message,
        severity=AlertSeverity(row.severity),
        threshold=float(row.threshold) if row.threshold is not None else None,
        timestamp=from_db_timestamp(row.timestamp),
        viewed=bool(row.viewed),
        device_id=row.device_id,
        rule_id=row.rule_id,
    )


def append_alert(db: Session, alert: AlertRecord) -> None:
    """Inserta una alerta nueva (nunca deduplica)."""
    db.execute(
        text(
            """
            INSERT INTO alerts (
                id, type, message, severity, threshold, timestamp, viewed, device_id, rule_id
            )
            VALUES (
                :id, :type, :message, :severity, :threshold, :ts, :viewed, :device_id, :rule_id
            )
            """
        ),
        {
            "id": alert.id,
            "type": alert.type,
            "message": alert.message,
            "severity": alert.severity.value,
            "threshold": alert.threshold,
            "ts": to_db_timestamp(alert.timestamp),
            "viewed": alert.viewed,
            "device_id": alert.device_id,
            "rule_id": alert.rule_id,
        },
    )
    logger.info(
        "[ALERT] appended id=%s severity=%s device=%s rule=%s",
        alert.id, alert.severity.value, alert.device_id, alert.rule_id,
    )


def list_recent_alerts(db: Session, limit: int = 20) -> List[AlertRecord]:
    """Alertas más recientes primero."""
    rows = db.execute(
        text(
            """
            SELECT id, type, message, severity, threshold, timestamp, viewed, device_id, rule_id
            FROM alerts
            ORDER BY timestamp DESC
            LIMIT :limit
            """
        ),
        {"limit": int(limit)},
    ).fetchall()
    return [_row_to_alert(row) for row in rows]


def get_alert(db: Session, alert_id: str) -> Optional[AlertRecord]:
    row = db.execute(
        text(
            """
            SELECT id, type, message, severity, threshold, timestamp, viewed, device_id, rule_id
            FROM alerts WHERE id = :id
            """
        ),
        {"id": alert_id},
    ).fetchone()
    return _row_to_alert(row) if row else None


def mark_viewed(db: Session, alert_id: str) -> bool:
    """Marca la alerta como vista. Retorna False si no existe."""
    result = db.execute(
        text("UPDATE alerts SET viewed = :viewed WHERE id = :id"),
        {"viewed": True, "id": alert_id},
    )
    return (result.rowcount if hasattr(result, "rowcount") else 1) > 0
