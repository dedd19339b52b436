"""Orquestadores que conectan el núcleo con la persistencia."""

from .automation_cycle import AutomationCycle, CycleOutcome
from .device_commands import DeviceCommandService

__all__ = ["AutomationCycle", "CycleOutcome", "DeviceCommandService"]
