"""Estado del dispositivo de riego.

- state_models.py: DeviceState y estados operacionales
- state_machine.py: Transiciones Manual/Auto × On/Off
- state_repository.py: Persistencia con compare-and-set
"""

from .state_models import DeviceOperationalState, DeviceState, TransitionSource
from .state_machine import DeviceStateMachine
from .state_repository import DeviceStateRepository

__all__ = [
    "DeviceOperationalState",
    "DeviceState",
    "DeviceStateMachine",
    "DeviceStateRepository",
    "TransitionSource",
]
