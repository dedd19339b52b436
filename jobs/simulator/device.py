"""Dispositivo IoT virtual.

Imita un nodo ESP32: genera lecturas sintéticas, las envía al backend y
consulta el estado de la bomba para reflejar los comandos recibidos.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulatorConfig:
    base_url: str
    device_id: str
    interval_seconds: float
    cycles: int  # 0 = infinito
    api_key: Optional[str] = None
    timeout: float = 5.0


def generate_reading(rng: random.Random) -> dict:
    """Lectura sintética en los rangos del nodo de campo."""
    return {
        "temperature": round(rng.uniform(22, 28), 1),   # °C
        "humidity": round(rng.uniform(40, 60), 1),      # %
        "soilMoisture": rng.randint(20, 80),            # % (varía para probar reglas)
        "light": rng.randint(200, 800),                 # lux
        "waterLevel": rng.randint(50, 100),             # % del tanque
    }


class VirtualDevice:
    """Cliente HTTP del dispositivo virtual."""

    def __init__(
        self,
        cfg: SimulatorConfig,
        session: Optional[requests.Session] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._cfg = cfg
        self._session = session or requests.Session()
        self._rng = rng or random.Random()
        self.pump_on = False
        self.auto_mode = False

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self._cfg.api_key:
            headers["X-API-Key"] = self._cfg.api_key
        return headers

    def send_reading(self) -> Optional[dict]:
        """POST de una lectura. Retorna el payload enviado si fue aceptado."""
        payload = generate_reading(self._rng)
        payload["deviceId"] = self._cfg.device_id

        try:
            response = self._session.post(
                f"{self._cfg.base_url}/api/sensors/data",
                json=payload,
                headers=self._headers(),
                timeout=self._cfg.timeout,
            )
        except requests.RequestException as e:
            logger.error("[SIM] Server error: %s", e)
            return None

        if response.status_code in (200, 201):
            logger.info(
                "[SIM] Data sent: temp=%s moist=%s light=%s",
                payload["temperature"], payload["soilMoisture"], payload["light"],
            )
            return payload

        logger.warning("[SIM] Data send failed: status=%s", response.status_code)
        return None

    def poll_status(self) -> Optional[bool]:
        """GET del estado; retorna True/False si la bomba cambió, None si no."""
        try:
            response = self._session.get(
                f"{self._cfg.base_url}/api/device/status",
                params={"deviceId": self._cfg.device_id},
                timeout=self._cfg.timeout,
            )
            status = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.debug("[SIM] status poll failed: %s", e)
            return None

        self.auto_mode = bool(status.get("autoMode", False))
        is_on = bool(status.get("isIrrigationOn", False))
        if is_on == self.pump_on:
            return None

        self.pump_on = is_on
        logger.info("[SIM] COMMAND RECEIVED: pump turned %s", "ON" if is_on else "OFF")
        return is_on

    def run_cycle(self) -> None:
        self.send_reading()
        self.poll_status()
        if self.auto_mode:
            logger.info("[SIM] Auto mode active")
