"""Modelos de datos para reglas de automatización.

Dataclasses y enums que representan muestras de telemetría, reglas y
resultados del matching.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class TelemetryField(Enum):
    """Atributos de TelemetrySample sobre los que puede condicionarse una regla."""

    SOIL_MOISTURE = "soilMoisture"
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    LIGHT = "light"
    WATER_LEVEL = "waterLevel"

    @property
    def attribute(self) -> str:
        return _FIELD_ATTRIBUTES[self]


_FIELD_ATTRIBUTES = {
    TelemetryField.SOIL_MOISTURE: "soil_moisture",
    TelemetryField.TEMPERATURE: "temperature",
    TelemetryField.HUMIDITY: "humidity",
    TelemetryField.LIGHT: "light",
    TelemetryField.WATER_LEVEL: "water_level",
}


class Operator(Enum):
    LT = "<"
    GT = ">"
    EQ = "="
    LE = "<="
    GE = ">="
    NE = "!="


class RuleAction(Enum):
    """Acciones configurables en una regla (conjunto cerrado)."""

    START_IRRIGATION = "Start Irrigation"
    STOP_IRRIGATION = "Stop Irrigation"
    SEND_ALERT = "Send Alert"
    OPEN_VENTS = "Open Vents"
    CLOSE_VENTS = "Close Vents"


class RuleMode(Enum):
    AUTO = "Auto"
    MANUAL = "Manual"


class RuleStatus(Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


@dataclass(frozen=True)
class TelemetrySample:
    """Lectura de sensores con timestamp. Inmutable una vez registrada.

    Cualquier campo puede faltar (None); las reglas que dependen de él
    simplemente no se evalúan.
    """

    timestamp: datetime
    device_id: str
    soil_moisture: Optional[float] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    light: Optional[float] = None
    water_level: Optional[float] = None

    def value_of(self, field: TelemetryField) -> Optional[float]:
        return getattr(self, field.attribute)


@dataclass(frozen=True)
class Rule:
    """Par condición/acción definido por el operador.

    `action` queda como texto crudo de almacenamiento; `parsed_action`
    resuelve el enum y devuelve None si el valor guardado no es conocido.
    """

    id: str
    name: str
    condition_field: TelemetryField
    operator: Operator
    condition_value: float
    action: str
    mode: RuleMode = RuleMode.MANUAL
    status: RuleStatus = RuleStatus.ACTIVE
    duration: Optional[float] = None  # minutos
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def parsed_action(self) -> Optional[RuleAction]:
        try:
            return RuleAction(self.action)
        except ValueError:
            return None

    @property
    def is_enabled(self) -> bool:
        """True si la regla participa en la evaluación automática."""
        return self.status == RuleStatus.ACTIVE and self.mode == RuleMode.AUTO


@dataclass(frozen=True)
class MatchedRule:
    """Regla cuya condición se cumplió para una muestra."""

    rule: Rule
    observed_value: float
