"""Fixtures compartidas: BD SQLite en memoria y cliente HTTP."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy import create_engine

from common.config import Settings
from common.db import get_db
from common.schema import ensure_schema
from automation_api.main import app
from automation_api.rules.models import (
    Operator,
    Rule,
    RuleMode,
    RuleStatus,
    TelemetryField,
)


NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    """Engine SQLite en memoria compartido entre hilos (TestClient)."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    ensure_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        default_device_id="ESP32_MAIN",
        irrigation_liters_per_minute=10.0,
        retry_attempts=3,
        retry_base_delay=0.0,
        alerts_page_size=20,
    )


@pytest.fixture
def client(session_factory, monkeypatch):
    """TestClient con get_db apuntando a la BD en memoria."""
    monkeypatch.delenv("FARM_API_KEY", raising=False)
    monkeypatch.setenv("AUTOMATION_RETRY_BASE_DELAY", "0")

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_rule(
    rule_id: str = "r1",
    *,
    field: TelemetryField = TelemetryField.SOIL_MOISTURE,
    operator: Operator = Operator.LT,
    value: float = 20.0,
    action: str = "Start Irrigation",
    mode: RuleMode = RuleMode.AUTO,
    status: RuleStatus = RuleStatus.ACTIVE,
    duration=None,
    name: str = "Moisture Control",
    created_at: datetime = NOW,
) -> Rule:
    return Rule(
        id=rule_id,
        name=name,
        condition_field=field,
        operator=operator,
        condition_value=value,
        action=action,
        mode=mode,
        status=status,
        duration=duration,
        created_at=created_at,
        updated_at=created_at,
    )
