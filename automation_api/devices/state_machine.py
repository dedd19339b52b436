"""Máquina de estados del dispositivo de riego.

ÚNICO PUNTO DE DECISIÓN para:
- Cambiar entre modo Manual y Auto
- Encender/apagar el riego (manual u automático)
- Contabilizar duración de riego y consumo de agua

Las operaciones son puras: reciben un DeviceState y devuelven uno nuevo.
La persistencia (CAS sobre `version`) queda en DeviceStateRepository.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from ..errors import RejectedManualOverride
from .state_models import (
    DeviceOperationalState,
    DeviceState,
    TransitionSource,
    is_valid_transition,
)

logger = logging.getLogger(__name__)


class DeviceStateMachine:
    """Transiciones Manual-Off / Manual-On / Auto-Off / Auto-On."""

    def __init__(self, liters_per_minute: float = 10.0) -> None:
        self._liters_per_minute = float(liters_per_minute)

    def set_auto_mode(self, state: DeviceState, enabled: bool, now: datetime) -> DeviceState:
        """Cambia Manual↔Auto sin tocar is_irrigation_on."""
        if state.auto_mode == enabled:
            return state
        target = DeviceOperationalState.of(enabled, state.is_irrigation_on)
        self._check(TransitionSource.MODE_SWITCH, state, target)
        logger.info(
            "[DEVICE] mode device=%s %s -> %s",
            state.device_id, state.operational_state.value, target.value,
        )
        return replace(state, auto_mode=enabled, last_updated=now)

    def apply_manual(self, state: DeviceState, turn_on: bool, now: datetime) -> DeviceState:
        """Comando manual del operador.

        Raises:
            RejectedManualOverride: si el dispositivo está en modo Auto.
        """
        if state.auto_mode:
            logger.warning(
                "[DEVICE] manual override rejected device=%s state=%s requested=%s",
                state.device_id, state.operational_state.value, "ON" if turn_on else "OFF",
            )
            raise RejectedManualOverride(state.device_id)
        return self._switch_irrigation(TransitionSource.MANUAL, state, turn_on, now)

    def apply_automatic(self, state: DeviceState, turn_on: bool, now: datetime) -> DeviceState:
        """Cambio de riego ordenado por el Action Dispatcher.

        Raises:
            ValueError: si el dispositivo no está en modo Auto.
        """
        return self._switch_irrigation(TransitionSource.DISPATCHER, state, turn_on, now)

    def apply_control_command(
        self,
        state: DeviceState,
        *,
        action: Optional[str],
        auto_mode: Optional[bool],
        now: datetime,
    ) -> DeviceState:
        """Comando de control {action, autoMode} del operador.

        Primero se aplica el cambio de modo; luego la acción se valida
        contra el modo resultante. Si la acción se rechaza no se devuelve
        ningún estado, así que nada llega a persistirse.
        """
        new_state = state
        if auto_mode is not None:
            new_state = self.set_auto_mode(new_state, bool(auto_mode), now)
        if action:
            new_state = self.apply_manual(new_state, action.strip().upper() == "ON", now)
        return new_state

    def _switch_irrigation(
        self,
        source: TransitionSource,
        state: DeviceState,
        turn_on: bool,
        now: datetime,
    ) -> DeviceState:
        if state.is_irrigation_on == turn_on:
            return state

        target = DeviceOperationalState.of(state.auto_mode, turn_on)
        self._check(source, state, target)

        if turn_on:
            new_state = replace(
                state,
                is_irrigation_on=True,
                irrigation_started_at=now,
                last_updated=now,
            )
        else:
            run_minutes = 0.0
            if state.irrigation_started_at is not None:
                run_minutes = max(0.0, (now - state.irrigation_started_at).total_seconds() / 60.0)
            new_state = replace(
                state,
                is_irrigation_on=False,
                irrigation_started_at=None,
                last_run_duration=round(run_minutes, 3),
                total_water_usage=round(
                    state.total_water_usage + run_minutes * self._liters_per_minute, 3
                ),
                last_updated=now,
            )

        logger.info(
            "[DEVICE] irrigation device=%s source=%s %s -> %s",
            state.device_id, source.value, state.operational_state.value, target.value,
        )
        return new_state

    @staticmethod
    def _check(source: TransitionSource, state: DeviceState, target: DeviceOperationalState) -> None:
        current = state.operational_state
        if not is_valid_transition(source, current, target):
            raise ValueError(
                f"Transición inválida ({source.value}): {current.value} → {target.value}"
            )
