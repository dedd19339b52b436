"""Despacho de acciones de reglas (riego y alertas)."""

from .alert_rules import AlertRules
from .dispatcher import ActionDispatcher
from .models import (
    AlertRecord,
    AlertSeverity,
    DispatchResult,
    IrrigationCommand,
    ScheduledStop,
    ScheduledStopStatus,
    SkippedAction,
)

__all__ = [
    "ActionDispatcher",
    "AlertRecord",
    "AlertRules",
    "AlertSeverity",
    "DispatchResult",
    "IrrigationCommand",
    "ScheduledStop",
    "ScheduledStopStatus",
    "SkippedAction",
]
