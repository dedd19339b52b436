"""Tests del ciclo de automatización completo (BD real en memoria)."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import text

from conftest import NOW, make_rule

from automation_api.devices.state_models import DeviceOperationalState, DeviceState
from automation_api.devices.state_repository import DeviceStateRepository
from automation_api.errors import StateConflictError
from automation_api.persistence import alert_repository, scheduled_stop_repository
from automation_api.persistence.rule_repository import RuleRepository
from automation_api.pipelines.automation_cycle import AutomationCycle
from automation_api.rules.models import Operator, RuleMode, TelemetryField, TelemetrySample


def _sample(**values) -> TelemetrySample:
    return TelemetrySample(timestamp=NOW, device_id="ESP32_MAIN", **values)


def _count(db, table: str) -> int:
    return db.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar()


def _seed(db, *rules, auto_mode=True, on=False):
    repo = RuleRepository(db)
    for rule in rules:
        repo.create(rule)
    DeviceStateRepository(db).save(
        DeviceState(
            device_id="ESP32_MAIN",
            auto_mode=auto_mode,
            is_irrigation_on=on,
            irrigation_started_at=NOW - timedelta(minutes=5) if on else None,
        ),
        expected_version=0,
        now=NOW,
    )
    db.commit()


class TestScenarios:
    def test_moisture_rule_starts_irrigation(self, db, settings):
        _seed(db, make_rule())

        outcome = AutomationCycle(db, settings).run(_sample(soil_moisture=15), now=NOW)

        assert outcome.matched_rule_ids == ["r1"]
        assert outcome.state.operational_state == DeviceOperationalState.AUTO_ON
        assert outcome.state.version == 2
        assert outcome.attempts == 1
        assert DeviceStateRepository(db).get("ESP32_MAIN").is_irrigation_on is True
        assert _count(db, "activity_logs") == 1

    def test_already_on_writes_nothing_but_the_sample(self, db, settings):
        _seed(db, make_rule(), on=True)

        outcome = AutomationCycle(db, settings).run(_sample(soil_moisture=15), now=NOW)

        assert outcome.dispatch.state_changed is False
        assert outcome.state.version == 1
        assert _count(db, "telemetry_samples") == 1
        assert _count(db, "activity_logs") == 0
        assert _count(db, "alerts") == 0

    def test_manual_device_still_gets_alerts(self, db, settings):
        heat = make_rule("heat", field=TelemetryField.TEMPERATURE, operator=Operator.GT, value=30,
                         action="Send Alert", name="Heat")
        _seed(db, make_rule(), heat, auto_mode=False)

        outcome = AutomationCycle(db, settings).run(_sample(soil_moisture=15, temperature=35), now=NOW)

        assert outcome.state.operational_state == DeviceOperationalState.MANUAL_OFF
        alerts = alert_repository.list_recent_alerts(db)
        assert len(alerts) == 1
        assert alerts[0].rule_id == "heat"

    def test_manual_rules_are_ignored(self, db, settings):
        _seed(db, make_rule(mode=RuleMode.MANUAL))

        outcome = AutomationCycle(db, settings).run(_sample(soil_moisture=15), now=NOW)

        assert outcome.matched_rule_ids == []
        assert outcome.dispatch is None
        assert outcome.state.is_irrigation_on is False

    def test_alerts_repeat_every_cycle(self, db, settings):
        _seed(db, make_rule(action="Send Alert"))
        cycle = AutomationCycle(db, settings)

        cycle.run(_sample(soil_moisture=15), now=NOW)
        cycle.run(_sample(soil_moisture=15), now=NOW + timedelta(seconds=10))

        assert _count(db, "alerts") == 2

    def test_duration_persists_scheduled_stop(self, db, settings):
        _seed(db, make_rule(duration=15))

        AutomationCycle(db, settings).run(_sample(soil_moisture=15), now=NOW)

        stops = scheduled_stop_repository.list_due_stops(db, NOW + timedelta(minutes=15))
        assert len(stops) == 1
        assert stops[0].due_at == NOW + timedelta(minutes=15)
        assert scheduled_stop_repository.list_due_stops(db, NOW + timedelta(minutes=14)) == []

    def test_unknown_device_starts_manual_off(self, db, settings):
        RuleRepository(db).create(make_rule())
        db.commit()

        outcome = AutomationCycle(db, settings).run(
            TelemetrySample(timestamp=NOW, device_id="ESP32_NEW", soil_moisture=15), now=NOW,
        )

        assert outcome.state.operational_state == DeviceOperationalState.MANUAL_OFF
        assert DeviceStateRepository(db).get("ESP32_NEW") is None


class TestConflictRetry:
    def test_conflict_reruns_full_cycle(self, db, settings):
        _seed(db, make_rule())
        original_save = DeviceStateRepository.save
        calls = {"n": 0}

        def flaky_save(self, state, expected_version, now=None):
            calls["n"] += 1
            if calls["n"] == 1:
                raise StateConflictError(state.device_id, expected_version)
            return original_save(self, state, expected_version, now)

        with patch.object(DeviceStateRepository, "save", flaky_save):
            outcome = AutomationCycle(db, settings).run(_sample(soil_moisture=15), now=NOW)

        assert outcome.attempts == 2
        assert outcome.state.is_irrigation_on is True
        # El rollback descarta la muestra del primer intento
        assert _count(db, "telemetry_samples") == 1

    def test_conflict_exhausts_retries(self, db, settings):
        _seed(db, make_rule())

        def always_conflict(self, state, expected_version, now=None):
            raise StateConflictError(state.device_id, expected_version)

        with patch.object(DeviceStateRepository, "save", always_conflict):
            with pytest.raises(StateConflictError):
                AutomationCycle(db, settings).run(_sample(soil_moisture=15), now=NOW)

        assert DeviceStateRepository(db).get("ESP32_MAIN").is_irrigation_on is False
