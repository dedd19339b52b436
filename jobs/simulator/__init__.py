"""Virtual IoT device simulator.

Modules:
- device: SimulatorConfig, generate_reading, VirtualDevice
- cli: CLI entry point (main)
"""

from .device import SimulatorConfig, VirtualDevice, generate_reading
from .cli import main

__all__ = ["SimulatorConfig", "VirtualDevice", "generate_reading", "main"]
