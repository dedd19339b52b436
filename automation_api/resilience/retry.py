"""Retry con backoff exponencial.

El único error que justifica reintentar en este servicio es
StateConflictError: el ciclo completo se repite desde cero.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type, TypeVar

from common.config import Settings

from ..errors import StateConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuración para retry con backoff."""

    max_attempts: int = 3
    base_delay: float = 0.05  # segundos
    max_delay: float = 2.0  # segundos
    exponential_base: float = 2.0
    jitter: bool = True  # Añadir variación aleatoria
    retryable_exceptions: Tuple[Type[Exception], ...] = (StateConflictError,)

    def calculate_delay(self, attempt: int) -> float:
        """Calcula el delay para un intento dado.

        Args:
            attempt: Número de intento (1-indexed)

        Returns:
            Delay en segundos
        """
        delay = self.base_delay * (self.exponential_base ** (attempt - 1))
        delay = min(delay, self.max_delay)

        if self.jitter:
            # Añadir jitter de ±25%
            jitter_range = delay * 0.25
            delay += random.uniform(-jitter_range, jitter_range)

        return max(0, delay)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryConfig":
        return cls(
            max_attempts=max(1, settings.retry_attempts),
            base_delay=settings.retry_base_delay,
        )


class RetryExecutor:
    """Ejecutor de operaciones con retry.

    `on_retry(attempt, exc)` se llama antes de cada reintento; el ciclo de
    automatización lo usa para hacer rollback de la sesión.
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        on_retry: Optional[Callable[[int, Exception], None]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._config = config or RetryConfig()
        self._on_retry = on_retry
        self._sleep = sleep
        self._total_attempts = 0
        self._total_retries = 0
        self._total_failures = 0

    @property
    def stats(self) -> dict:
        """Estadísticas del ejecutor."""
        return {
            "total_attempts": self._total_attempts,
            "total_retries": self._total_retries,
            "total_failures": self._total_failures,
        }

    def execute(self, func: Callable[..., T], *args, **kwargs) -> T:
        """Ejecuta una función con retry.

        Raises:
            La última excepción si se agotan los reintentos
        """
        for attempt in range(1, self._config.max_attempts + 1):
            self._total_attempts += 1

            try:
                return func(*args, **kwargs)

            except self._config.retryable_exceptions as e:
                if attempt == self._config.max_attempts:
                    self._total_failures += 1
                    logger.error(
                        "RETRY_EXHAUSTED func=%s attempts=%d err=%s",
                        getattr(func, "__name__", func), attempt, e,
                    )
                    raise

                self._total_retries += 1
                delay = self._config.calculate_delay(attempt)
                logger.warning(
                    "RETRY func=%s attempt=%d/%d delay=%.2fs err=%s",
                    getattr(func, "__name__", func), attempt, self._config.max_attempts, delay, e,
                )
                if self._on_retry:
                    self._on_retry(attempt, e)
                self._sleep(delay)

        raise RuntimeError("Retry loop completed without result")
