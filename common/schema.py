"""Schema setup for the automation store.

Creates tables if they don't exist. Safe to call multiple times.
Portable between SQLite (dev/tests) and PostgreSQL.
"""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


_TABLES = (
    """
    CREATE TABLE IF NOT EXISTS rules (
        id VARCHAR(32) PRIMARY KEY,
        name VARCHAR(200) NOT NULL,
        condition_field VARCHAR(50) NOT NULL,
        operator VARCHAR(2) NOT NULL,
        condition_value DOUBLE PRECISION NOT NULL,
        action VARCHAR(50) NOT NULL,
        duration DOUBLE PRECISION,
        mode VARCHAR(10) NOT NULL,
        status VARCHAR(10) NOT NULL,
        created_at VARCHAR(40) NOT NULL,
        updated_at VARCHAR(40) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS device_states (
        device_id VARCHAR(100) PRIMARY KEY,
        is_irrigation_on BOOLEAN NOT NULL,
        auto_mode BOOLEAN NOT NULL,
        total_water_usage DOUBLE PRECISION NOT NULL,
        last_run_duration DOUBLE PRECISION NOT NULL,
        irrigation_started_at VARCHAR(40),
        last_updated VARCHAR(40) NOT NULL,
        version INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS telemetry_samples (
        id VARCHAR(32) PRIMARY KEY,
        device_id VARCHAR(100) NOT NULL,
        soil_moisture DOUBLE PRECISION,
        temperature DOUBLE PRECISION,
        humidity DOUBLE PRECISION,
        light DOUBLE PRECISION,
        water_level DOUBLE PRECISION,
        timestamp VARCHAR(40) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS alerts (
        id VARCHAR(32) PRIMARY KEY,
        type VARCHAR(50) NOT NULL,
        message VARCHAR(500) NOT NULL,
        severity VARCHAR(10) NOT NULL,
        threshold DOUBLE PRECISION,
        timestamp VARCHAR(40) NOT NULL,
        viewed BOOLEAN NOT NULL,
        device_id VARCHAR(100),
        rule_id VARCHAR(32)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS scheduled_stops (
        id VARCHAR(32) PRIMARY KEY,
        device_id VARCHAR(100) NOT NULL,
        rule_id VARCHAR(32),
        due_at VARCHAR(40) NOT NULL,
        status VARCHAR(10) NOT NULL,
        created_at VARCHAR(40) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS activity_logs (
        id VARCHAR(32) PRIMARY KEY,
        action_type VARCHAR(10) NOT NULL,
        entity VARCHAR(50) NOT NULL,
        entity_id VARCHAR(100),
        description VARCHAR(500),
        user_name VARCHAR(200) NOT NULL,
        timestamp VARCHAR(40) NOT NULL
    )
    """,
)


def ensure_schema(engine: Engine) -> None:
    """Ensure the automation schema exists."""
    logger.info("[DB] Ensuring schema exists tables=%d", len(_TABLES))
    with engine.begin() as conn:
        for ddl in _TABLES:
            conn.execute(text(ddl))
