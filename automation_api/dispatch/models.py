"""Modelos de salida del Action Dispatcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from ..devices.state_models import DeviceState


def _new_id() -> str:
    return uuid4().hex


class AlertSeverity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class AlertRecord:
    """Alerta append-only; solo `viewed` cambia después de creada."""

    type: str
    message: str
    severity: AlertSeverity
    threshold: Optional[float]
    timestamp: datetime
    viewed: bool = False
    device_id: Optional[str] = None
    rule_id: Optional[str] = None
    id: str = field(default_factory=_new_id)


class ScheduledStopStatus(Enum):
    PENDING = "pending"
    DONE = "done"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ScheduledStop:
    """Intención de apagado diferido que un scheduler externo debe honrar."""

    device_id: str
    rule_id: Optional[str]
    due_at: datetime
    status: ScheduledStopStatus = ScheduledStopStatus.PENDING
    created_at: Optional[datetime] = None
    id: str = field(default_factory=_new_id)


@dataclass(frozen=True)
class IrrigationCommand:
    """Transición de riego aplicada en el ciclo."""

    device_id: str
    turn_on: bool
    rule_id: str
    rule_name: str


@dataclass(frozen=True)
class SkippedAction:
    rule_id: str
    action: str
    reason: str


@dataclass
class DispatchResult:
    """Resultado de un ciclo de dispatch para un dispositivo."""

    state: DeviceState
    state_changed: bool = False
    commands: List[IrrigationCommand] = field(default_factory=list)
    alerts: List[AlertRecord] = field(default_factory=list)
    scheduled_stops: List[ScheduledStop] = field(default_factory=list)
    skipped: List[SkippedAction] = field(default_factory=list)
