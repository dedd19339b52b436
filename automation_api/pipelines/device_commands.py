"""Comandos de control del operador sobre un dispositivo."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from common.config import Settings, get_settings
from common.db import utcnow

from ..devices.state_machine import DeviceStateMachine
from ..devices.state_models import DeviceState
from ..devices.state_repository import DeviceStateRepository
from ..persistence.activity_log import ActivityLogger, ActivityType
from ..resilience.retry import RetryConfig, RetryExecutor

logger = logging.getLogger(__name__)


class DeviceCommandService:
    """Aplica {action, autoMode} con CAS y retry ante conflictos."""

    def __init__(self, db: Session, settings: Optional[Settings] = None) -> None:
        self._db = db
        self._settings = settings or get_settings()
        self._state_machine = DeviceStateMachine(self._settings.irrigation_liters_per_minute)
        self._states = DeviceStateRepository(db)
        self._activity = ActivityLogger(db)

    def status(self, device_id: str) -> DeviceState:
        return self._states.load(device_id)

    def control(
        self,
        device_id: str,
        *,
        action: Optional[str] = None,
        auto_mode: Optional[bool] = None,
        user: str = "Unknown",
        now: Optional[datetime] = None,
    ) -> DeviceState:
        """Aplica el comando de forma atómica.

        Raises:
            RejectedManualOverride: acción manual con el dispositivo en Auto.
            StateConflictError: si se agotan los reintentos.
        """

        def _rollback(attempt: int, exc: Exception) -> None:
            self._db.rollback()

        def _once() -> DeviceState:
            ts = now or utcnow()
            current = self._states.load(device_id)
            new_state = self._state_machine.apply_control_command(
                current, action=action, auto_mode=auto_mode, now=ts,
            )
            if new_state == current:
                return current

            saved = self._states.save(new_state, expected_version=current.version, now=ts)
            self._activity.log(
                ActivityType.UPDATE,
                "Device",
                device_id,
                f"Control command action={action or '-'} autoMode={auto_mode} "
                f"-> {saved.operational_state.value}",
                user=user,
            )
            return saved

        executor = RetryExecutor(RetryConfig.from_settings(self._settings), on_retry=_rollback)
        return executor.execute(_once)
