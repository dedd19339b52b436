from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


DEFAULT_DEVICE_ID = "ESP32_MAIN"


@dataclass(frozen=True)
class Settings:
    database_url: str
    default_device_id: str

    # Caudal nominal de la bomba, usado para acumular total_water_usage.
    irrigation_liters_per_minute: float

    retry_attempts: int
    retry_base_delay: float

    alerts_page_size: int


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("FARM_ENV_FILE", ".env")
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    database_url = os.getenv("DATABASE_URL", "sqlite:///./farm_automation.db")
    default_device_id = os.getenv("DEFAULT_DEVICE_ID", DEFAULT_DEVICE_ID)
    liters_per_minute = float(os.getenv("IRRIGATION_LITERS_PER_MINUTE", "10.0"))

    # Solo StateConflictError se reintenta; ver automation_api/resilience/retry.py
    retry_attempts = int(os.getenv("AUTOMATION_RETRY_ATTEMPTS", "3"))
    retry_base_delay = float(os.getenv("AUTOMATION_RETRY_BASE_DELAY", "0.05"))

    alerts_page_size = int(os.getenv("ALERTS_PAGE_SIZE", "20"))

    return Settings(
        database_url=database_url,
        default_device_id=default_device_id,
        irrigation_liters_per_minute=liters_per_minute,
        retry_attempts=retry_attempts,
        retry_base_delay=retry_base_delay,
        alerts_page_size=alerts_page_size,
    )
