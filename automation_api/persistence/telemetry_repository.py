"""Repositorio de muestras de telemetría (append-only)."""

from __future__ import annotations

from typing import List
from uuid import uuid4

from sqlalchemy import text
from sqlalchemy.orm import Session

from common.db import from_db_timestamp, to_db_timestamp

from ..rules.models import TelemetrySample


def insert_sample(db: Session, sample: TelemetrySample) -> str:
    """Inserta la muestra recibida y retorna su id."""
    sample_id = uuid4().hex
    db.execute(
        text(
            """
            INSERT INTO telemetry_samples (
                id, device_id, soil_moisture, temperature, humidity, light, water_level, timestamp
            )
            VALUES (:id, :device_id, :soil_moisture, :temperature, :humidity, :light, :water_level, :ts)
            """
        ),
        {
            "id": sample_id,
            "device_id": sample.device_id,
            "soil_moisture": sample.soil_moisture,
            "temperature": sample.temperature,
            "humidity": sample.humidity,
            "light": sample.light,
            "water_level": sample.water_level,
            "ts": to_db_timestamp(sample.timestamp),
        },
    )
    return sample_id


def list_recent_samples(db: Session, device_id: str | None = None, limit: int = 50) -> List[TelemetrySample]:
    """Últimas muestras, más recientes primero."""
    where = "WHERE device_id = :device_id" if device_id else ""
    rows = db.execute(
        text(
            f"""
            SELECT device_id, soil_moisture, temperature, humidity, light, water_level, timestamp
            FROM telemetry_samples
            {where}
            ORDER BY timestamp DESC
            LIMIT :limit
            """
        ),
        {"device_id": device_id, "limit": int(limit)},
    ).fetchall()

    return [
        TelemetrySample(
            timestamp=from_db_timestamp(row.timestamp),
            device_id=row.device_id,
            soil_moisture=row.soil_moisture,
            temperature=row.temperature,
            humidity=row.humidity,
            light=row.light,
            water_level=row.water_level,
        )
        for row in rows
    ]
