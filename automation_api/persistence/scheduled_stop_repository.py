"""Repositorio de apagados programados (intenciones del dispatcher)."""

from __future__ import annotations

from datetime import datetime
from typing import List

from sqlalchemy import text
from sqlalchemy.orm import Session

from common.db import from_db_timestamp, to_db_timestamp

from ..dispatch.models import ScheduledStop, ScheduledStopStatus


def insert_scheduled_stop(db: Session, stop: ScheduledStop) -> None:
    db.execute(
        text(
            """
            INSERT INTO scheduled_stops (id, device_id, rule_id, due_at, status, created_at)
            VALUES (:id, :device_id, :rule_id, :due_at, :status, :created_at)
            """
        ),
        {
            "id": stop.id,
            "device_id": stop.device_id,
            "rule_id": stop.rule_id,
            "due_at": to_db_timestamp(stop.due_at),
            "status": stop.status.value,
            "created_at": to_db_timestamp(stop.created_at or stop.due_at),
        },
    )


def list_due_stops(db: Session, now: datetime, limit: int = 100) -> List[ScheduledStop]:
    """Apagados pendientes cuyo due_at ya pasó, más antiguos primero."""
    rows = db.execute(
        text(
            """
            SELECT id, device_id, rule_id, due_at, status, created_at
            FROM scheduled_stops
            WHERE status = :status AND due_at <= :now
            ORDER BY due_at ASC
            LIMIT :limit
            """
        ),
        {"status": ScheduledStopStatus.PENDING.value, "now": to_db_timestamp(now), "limit": int(limit)},
    ).fetchall()

    return [
        ScheduledStop(
            id=row.id,
            device_id=row.device_id,
            rule_id=row.rule_id,
            due_at=from_db_timestamp(row.due_at),
            status=ScheduledStopStatus(row.status),
            created_at=from_db_timestamp(row.created_at),
        )
        for row in rows
    ]


def mark_stop(db: Session, stop_id: str, status: ScheduledStopStatus) -> bool:
    """Cierra un apagado pendiente. Retorna False si ya no estaba pendiente."""
    result = db.execute(
        text(
            """
            UPDATE scheduled_stops SET status = :status
            WHERE id = :id AND status = :pending
            """
        ),
        {"status": status.value, "id": stop_id, "pending": ScheduledStopStatus.PENDING.value},
    )
    return (result.rowcount if hasattr(result, "rowcount") else 1) > 0
