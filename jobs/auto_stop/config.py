"""Auto-stop runner configuration."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AutoStopConfig:
    """Configuración del scheduler de apagados programados."""
    sleep_seconds: float
    batch_size: int
    once: bool
