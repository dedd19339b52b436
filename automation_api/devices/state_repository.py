"""Repositorio de estado del dispositivo - acceso a BD."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from common.db import from_db_timestamp, to_db_timestamp, utcnow

from ..errors import StateConflictError
from .state_models import DeviceState

logger = logging.getLogger(__name__)


class DeviceStateRepository:
    """Store de DeviceState indexado por device_id.

    `save` es compare-and-set sobre `version`: si otro escritor ganó la
    carrera se lanza StateConflictError y el llamador debe repetir el
    ciclo completo.
    """

    def __init__(self, db: Session):
        self._db = db

    def get(self, device_id: str) -> Optional[DeviceState]:
        row = self._db.execute(
            text("""
                SELECT device_id, is_irrigation_on, auto_mode, total_water_usage,
                       last_run_duration, irrigation_started_at, last_updated, version
                FROM device_states
                WHERE device_id = :device_id
            """),
            {"device_id": device_id},
        ).fetchone()

        if not row:
            return None

        return DeviceState(
            device_id=row.device_id,
            is_irrigation_on=bool(row.is_irrigation_on),
            auto_mode=bool(row.auto_mode),
            total_water_usage=float(row.total_water_usage or 0.0),
            last_run_duration=float(row.last_run_duration or 0.0),
            irrigation_started_at=from_db_timestamp(row.irrigation_started_at),
            last_updated=from_db_timestamp(row.last_updated),
            version=int(row.version),
        )

    def load(self, device_id: str) -> DeviceState:
        """Devuelve el estado del dispositivo o el inicial (Manual-Off, version 0).

        El estado inicial no se persiste hasta el primer `save`.
        """
        state = self.get(device_id)
        if state is None:
            return DeviceState(device_id=device_id)
        return state

    def save(self, state: DeviceState, expected_version: int, now: Optional[datetime] = None) -> DeviceState:
        """Persiste `state` si la versión almacenada sigue siendo `expected_version`.

        Returns:
            El estado guardado, con version = expected_version + 1.

        Raises:
            StateConflictError: si otra escritura se adelantó.
        """
        now = now or utcnow()
        saved = replace(state, version=expected_version + 1, last_updated=state.last_updated or now)
        params = {
            "device_id": saved.device_id,
            "is_irrigation_on": saved.is_irrigation_on,
            "auto_mode": saved.auto_mode,
            "total_water_usage": saved.total_water_usage,
            "last_run_duration": saved.last_run_duration,
            "irrigation_started_at": to_db_timestamp(saved.irrigation_started_at),
            "last_updated": to_db_timestamp(saved.last_updated),
            "version": saved.version,
            "expected_version": expected_version,
        }

        if expected_version == 0 and self.get(state.device_id) is None:
            try:
                self._db.execute(
                    text("""
                        INSERT INTO device_states (
                            device_id, is_irrigation_on, auto_mode, total_water_usage,
                            last_run_duration, irrigation_started_at, last_updated, version
                        )
                        VALUES (
                            :device_id, :is_irrigation_on, :auto_mode, :total_water_usage,
                            :last_run_duration, :irrigation_started_at, :last_updated, :version
                        )
                    """),
                    params,
                )
            except IntegrityError:
                logger.warning("[DB] device insert race device=%s", state.device_id)
                raise StateConflictError(state.device_id, expected_version) from None
            return saved

        result = self._db.execute(
            text("""
                UPDATE device_states
                SET is_irrigation_on = :is_irrigation_on,
                    auto_mode = :auto_mode,
                    total_water_usage = :total_water_usage,
                    last_run_duration = :last_run_duration,
                    irrigation_started_at = :irrigation_started_at,
                    last_updated = :last_updated,
                    version = :version
                WHERE device_id = :device_id AND version = :expected_version
            """),
            params,
        )
        rows = result.rowcount if hasattr(result, "rowcount") else 1

        if rows == 0:
            logger.warning(
                "[DB] device version conflict device=%s expected_version=%s",
                state.device_id, expected_version,
            )
            raise StateConflictError(state.device_id, expected_version)

        return saved
