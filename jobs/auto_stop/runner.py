"""Auto-stop orchestrator: honra los apagados programados por el dispatcher.

El dispatcher solo emite la intención (scheduled_stops); este proceso es
el scheduler externo que la ejecuta cuando vence.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from common.config import Settings, get_settings
from common.db import utcnow

from automation_api.devices.state_machine import DeviceStateMachine
from automation_api.devices.state_models import DeviceState
from automation_api.devices.state_repository import DeviceStateRepository
from automation_api.dispatch.models import ScheduledStop, ScheduledStopStatus
from automation_api.persistence import scheduled_stop_repository
from automation_api.persistence.activity_log import ActivityLogger, ActivityType
from automation_api.resilience.retry import RetryConfig, RetryExecutor

from .config import AutoStopConfig

logger = logging.getLogger(__name__)


def _owns_current_run(stop: ScheduledStop, state: DeviceState) -> bool:
    """True si el riego actual arrancó en (o antes de) el ciclo que creó el apagado."""
    if state.irrigation_started_at is None:
        return False
    if stop.created_at is None:
        return True
    return state.irrigation_started_at <= stop.created_at


def execute_stop(
    db: Session,
    stop: ScheduledStop,
    state_machine: DeviceStateMachine,
    now: datetime,
) -> ScheduledStopStatus:
    """Aplica un apagado vencido.

    Solo se apaga si el dispositivo sigue en Auto-On y el riego en curso es
    el mismo que programó el apagado. Si el operador pasó a Manual, el riego
    ya está apagado o arrancó de nuevo después, el apagado se cancela.
    """
    states = DeviceStateRepository(db)
    state = states.load(stop.device_id)

    if not (state.auto_mode and state.is_irrigation_on) or not _owns_current_run(stop, state):
        scheduled_stop_repository.mark_stop(db, stop.id, ScheduledStopStatus.CANCELLED)
        logger.info(
            "[AUTO_STOP] cancelled stop=%s device=%s state=%s started_at=%s",
            stop.id, stop.device_id, state.operational_state.value,
            state.irrigation_started_at.isoformat() if state.irrigation_started_at else None,
        )
        return ScheduledStopStatus.CANCELLED

    stopped = state_machine.apply_automatic(state, False, now)
    states.save(stopped, expected_version=state.version, now=now)
    scheduled_stop_repository.mark_stop(db, stop.id, ScheduledStopStatus.DONE)
    ActivityLogger(db).log(
        ActivityType.SYSTEM,
        "Device",
        stop.device_id,
        f"Scheduled stop turned irrigation OFF after {stopped.last_run_duration:g} min",
    )
    logger.info("[AUTO_STOP] done stop=%s device=%s rule=%s", stop.id, stop.device_id, stop.rule_id)
    return ScheduledStopStatus.DONE


def run_once(
    session_factory: Callable[[], Session],
    cfg: AutoStopConfig,
    settings: Optional[Settings] = None,
    now: Optional[datetime] = None,
) -> Dict[str, int]:
    """Procesa los apagados vencidos; una transacción por apagado."""
    settings = settings or get_settings()
    state_machine = DeviceStateMachine(settings.irrigation_liters_per_minute)
    now = now or utcnow()
    stats = {"due": 0, "done": 0, "cancelled": 0, "failed": 0}

    db = session_factory()
    try:
        due = scheduled_stop_repository.list_due_stops(db, now, limit=cfg.batch_size)
        db.rollback()
        stats["due"] = len(due)

        for stop in due:
            executor = RetryExecutor(
                RetryConfig.from_settings(settings),
                on_retry=lambda attempt, exc: db.rollback(),
            )
            try:
                status = executor.execute(execute_stop, db, stop, state_machine, now)
                db.commit()
                stats[status.value] += 1
            except Exception as e:
                db.rollback()
                stats["failed"] += 1
                logger.error("[AUTO_STOP] failed stop=%s device=%s err=%s", stop.id, stop.device_id, e)
    finally:
        db.close()

    return stats
