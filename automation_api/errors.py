"""Taxonomía de errores del núcleo de automatización.

Ningún error es fatal para el proceso: todos quedan acotados a una
evaluación o a un comando.
"""

from __future__ import annotations


class AutomationError(Exception):
    """Base de los errores de dominio."""


class ValidationError(AutomationError):
    """Regla inválida (campo, operador, acción o duración desconocidos).

    Se lanza al crear/editar la regla, nunca durante la evaluación.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class UnknownAction(AutomationError):
    """Acción fuera del conjunto que el dispatcher sabe ejecutar.

    El dispatcher la registra y la trata como no-op.
    """

    def __init__(self, action: str) -> None:
        super().__init__(f"Unknown action: {action}")
        self.action = action


class RejectedManualOverride(AutomationError):
    """Comando manual recibido mientras el dispositivo está en modo Auto."""

    def __init__(self, device_id: str) -> None:
        super().__init__(f"Device {device_id} is in auto mode; manual command rejected")
        self.device_id = device_id


class StateConflictError(AutomationError):
    """Escritura concurrente detectada sobre el estado del dispositivo.

    Única condición que justifica reintentar el ciclo completo.
    """

    def __init__(self, device_id: str, expected_version: int) -> None:
        super().__init__(
            f"Concurrent update on device {device_id} (expected version {expected_version})"
        )
        self.device_id = device_id
        self.expected_version = expected_version


class NotFoundError(AutomationError):
    """Entidad inexistente (regla, alerta)."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id
