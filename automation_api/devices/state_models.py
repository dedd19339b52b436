"""Modelos de estado del dispositivo de riego."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class DeviceOperationalState(Enum):
    """Producto cartesiano auto_mode × is_irrigation_on."""

    MANUAL_OFF = "MANUAL_OFF"  # Estado inicial
    MANUAL_ON = "MANUAL_ON"
    AUTO_OFF = "AUTO_OFF"
    AUTO_ON = "AUTO_ON"

    @classmethod
    def of(cls, auto_mode: bool, is_irrigation_on: bool) -> "DeviceOperationalState":
        if auto_mode:
            return cls.AUTO_ON if is_irrigation_on else cls.AUTO_OFF
        return cls.MANUAL_ON if is_irrigation_on else cls.MANUAL_OFF


class TransitionSource(Enum):
    """Quién solicita el cambio de estado."""

    MODE_SWITCH = "mode_switch"  # comando externo "set autoMode"
    MANUAL = "manual"            # comando del operador
    DISPATCHER = "dispatcher"    # Action Dispatcher / job de auto-stop


@dataclass(frozen=True)
class DeviceState:
    """Estado persistido de un dispositivo físico.

    `version` es el token de concurrencia optimista: cada escritura
    exitosa lo incrementa en 1.
    """

    device_id: str
    is_irrigation_on: bool = False
    auto_mode: bool = False
    total_water_usage: float = 0.0   # litros
    last_run_duration: float = 0.0   # minutos
    irrigation_started_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    version: int = 0

    @property
    def operational_state(self) -> DeviceOperationalState:
        return DeviceOperationalState.of(self.auto_mode, self.is_irrigation_on)


# Transiciones válidas de la máquina de estados, por origen del cambio
VALID_TRANSITIONS = {
    TransitionSource.MODE_SWITCH: {
        (DeviceOperationalState.MANUAL_OFF, DeviceOperationalState.AUTO_OFF),
        (DeviceOperationalState.MANUAL_ON, DeviceOperationalState.AUTO_ON),
        (DeviceOperationalState.AUTO_OFF, DeviceOperationalState.MANUAL_OFF),
        (DeviceOperationalState.AUTO_ON, DeviceOperationalState.MANUAL_ON),
    },
    TransitionSource.MANUAL: {
        (DeviceOperationalState.MANUAL_OFF, DeviceOperationalState.MANUAL_ON),
        (DeviceOperationalState.MANUAL_ON, DeviceOperationalState.MANUAL_OFF),
    },
    TransitionSource.DISPATCHER: {
        (DeviceOperationalState.AUTO_OFF, DeviceOperationalState.AUTO_ON),
        (DeviceOperationalState.AUTO_ON, DeviceOperationalState.AUTO_OFF),
    },
}


def is_valid_transition(
    source: TransitionSource,
    from_state: DeviceOperationalState,
    to_state: DeviceOperationalState,
) -> bool:
    """Verifica si una transición de estado es válida para el origen dado."""
    if from_state == to_state:
        return True
    return (from_state, to_state) in VALID_TRANSITIONS.get(source, set())
