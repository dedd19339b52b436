"""Ciclo de automatización: muestra → reglas → dispatch → persistencia.

Orden de evaluación (estricto):
1. Persistir la muestra (append-only)
2. Cargar reglas activas (orden de creación)
3. Matching contra la muestra
4. Cargar estado del dispositivo
5. Dispatch
6. Guardar estado (CAS) solo si cambió
7. Alertas, apagados programados y activity log

Ante StateConflictError se hace rollback y se repite el ciclo completo.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from common.config import Settings, get_settings
from common.db import utcnow

from ..devices.state_machine import DeviceStateMachine
from ..devices.state_models import DeviceState
from ..devices.state_repository import DeviceStateRepository
from ..dispatch.dispatcher import ActionDispatcher
from ..dispatch.models import DispatchResult
from ..persistence import alert_repository, scheduled_stop_repository, telemetry_repository
from ..persistence.activity_log import ActivityLogger, ActivityType
from ..persistence.rule_repository import RuleRepository
from ..resilience.retry import RetryConfig, RetryExecutor
from ..rules.matcher import match
from ..rules.models import TelemetrySample

logger = logging.getLogger(__name__)


@dataclass
class CycleOutcome:
    """Resultado de un ciclo para la respuesta HTTP y los tests."""

    sample_id: str
    device_id: str
    matched_rule_ids: List[str] = field(default_factory=list)
    dispatch: Optional[DispatchResult] = None
    state: Optional[DeviceState] = None
    attempts: int = 1


class AutomationCycle:
    """Orquesta una evaluación de reglas para una muestra de telemetría."""

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        retry_config: Optional[RetryConfig] = None,
    ) -> None:
        self._db = db
        self._settings = settings or get_settings()
        self._state_machine = DeviceStateMachine(self._settings.irrigation_liters_per_minute)
        self._dispatcher = ActionDispatcher(self._state_machine)
        self._rules = RuleRepository(db)
        self._states = DeviceStateRepository(db)
        self._activity = ActivityLogger(db)
        self._retry_config = retry_config or RetryConfig.from_settings(self._settings)

    def run(self, sample: TelemetrySample, now: Optional[datetime] = None) -> CycleOutcome:
        """Ejecuta el ciclo con retry ante conflictos de estado.

        No hace commit: el llamador decide la transacción.
        """

        def _rollback(attempt: int, exc: Exception) -> None:
            logger.warning("[CYCLE] conflict device=%s attempt=%d, rolling back", sample.device_id, attempt)
            self._db.rollback()

        executor = RetryExecutor(self._retry_config, on_retry=_rollback)
        outcome = executor.execute(lambda: self._run_once(sample, now or utcnow()))
        outcome.attempts = executor.stats["total_attempts"]
        if outcome.attempts > 1:
            logger.info("[CYCLE] device=%s settled after attempts=%d", sample.device_id, outcome.attempts)
        return outcome

    def _run_once(self, sample: TelemetrySample, now: datetime) -> CycleOutcome:
        sample_id = telemetry_repository.insert_sample(self._db, sample)

        rules = self._rules.list_active_rules()
        matched = match(sample, rules)
        outcome = CycleOutcome(
            sample_id=sample_id,
            device_id=sample.device_id,
            matched_rule_ids=[m.rule.id for m in matched],
        )

        state = self._states.load(sample.device_id)
        if not matched:
            outcome.state = state
            logger.debug("[CYCLE] device=%s rules=%d matched=0", sample.device_id, len(rules))
            return outcome

        result = self._dispatcher.dispatch(matched, state, now=now)
        outcome.dispatch = result

        if result.state_changed:
            result.state = self._states.save(result.state, expected_version=state.version, now=now)
        outcome.state = result.state

        for alert in result.alerts:
            alert_repository.append_alert(self._db, alert)

        for stop in result.scheduled_stops:
            scheduled_stop_repository.insert_scheduled_stop(self._db, stop)
            logger.info(
                "[CYCLE] scheduled stop device=%s rule=%s due_at=%s",
                stop.device_id, stop.rule_id, stop.due_at.isoformat(),
            )

        for command in result.commands:
            self._activity.log(
                ActivityType.SYSTEM,
                "Device",
                command.device_id,
                f"Rule '{command.rule_name}' turned irrigation {'ON' if command.turn_on else 'OFF'}",
            )

        logger.info(
            "[CYCLE] device=%s rules=%d matched=%d changed=%s alerts=%d",
            sample.device_id, len(rules), len(matched), result.state_changed, len(result.alerts),
        )
        return outcome
