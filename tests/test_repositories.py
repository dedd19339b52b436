"""Tests de persistencia sobre SQLite en memoria."""

from dataclasses import replace
from datetime import timedelta

import pytest
from sqlalchemy import text

from conftest import NOW, make_rule

from automation_api.devices.state_models import DeviceState
from automation_api.devices.state_repository import DeviceStateRepository
from automation_api.dispatch.models import AlertRecord, AlertSeverity, ScheduledStop, ScheduledStopStatus
from automation_api.errors import StateConflictError
from automation_api.persistence import alert_repository, scheduled_stop_repository
from automation_api.persistence.activity_log import ActivityLogger, ActivityType
from automation_api.persistence.rule_repository import RuleRepository
from automation_api.rules.models import RuleStatus


# =============================================================================
# Estado del dispositivo (CAS)
# =============================================================================

class TestDeviceStateRepository:
    def test_load_missing_returns_initial_state(self, db):
        state = DeviceStateRepository(db).load("ESP32_NEW")

        assert state == DeviceState(device_id="ESP32_NEW")
        assert state.version == 0
        assert state.auto_mode is False
        assert state.is_irrigation_on is False

    def test_first_save_inserts_with_version_one(self, db):
        repo = DeviceStateRepository(db)
        saved = repo.save(DeviceState(device_id="ESP32_MAIN", auto_mode=True), expected_version=0, now=NOW)

        assert saved.version == 1
        loaded = repo.get("ESP32_MAIN")
        assert loaded.auto_mode is True
        assert loaded.version == 1
        assert loaded.last_updated == NOW

    def test_save_increments_version(self, db):
        repo = DeviceStateRepository(db)
        first = repo.save(DeviceState(device_id="ESP32_MAIN"), expected_version=0, now=NOW)
        second = repo.save(
            replace(first, is_irrigation_on=True, irrigation_started_at=NOW),
            expected_version=first.version,
            now=NOW,
        )

        assert second.version == 2
        loaded = repo.get("ESP32_MAIN")
        assert loaded.is_irrigation_on is True
        assert loaded.irrigation_started_at == NOW

    def test_stale_version_raises_conflict(self, db):
        repo = DeviceStateRepository(db)
        first = repo.save(DeviceState(device_id="ESP32_MAIN"), expected_version=0, now=NOW)
        repo.save(replace(first, auto_mode=True), expected_version=1, now=NOW)

        with pytest.raises(StateConflictError) as exc_info:
            repo.save(replace(first, is_irrigation_on=True), expected_version=1, now=NOW)
        assert exc_info.value.expected_version == 1

        # La escritura perdedora no deja rastro
        assert repo.get("ESP32_MAIN").is_irrigation_on is False

    def test_insert_race_raises_conflict(self, db):
        repo = DeviceStateRepository(db)
        repo.save(DeviceState(device_id="ESP32_MAIN"), expected_version=0, now=NOW)

        with pytest.raises(StateConflictError):
            repo.save(DeviceState(device_id="ESP32_MAIN", auto_mode=True), expected_version=0, now=NOW)


# =============================================================================
# Reglas
# =============================================================================

class TestRuleRepository:
    def test_active_rules_in_creation_order(self, db):
        repo = RuleRepository(db)
        repo.create(make_rule("late", created_at=NOW + timedelta(minutes=1)))
        repo.create(make_rule("early"))
        repo.create(make_rule("off", status=RuleStatus.INACTIVE))

        assert [r.id for r in repo.list_active_rules()] == ["early", "late"]
        assert [r.id for r in repo.list_rules()] == ["late", "off", "early"]

    def test_update_and_delete(self, db):
        repo = RuleRepository(db)
        rule = repo.create(make_rule())

        assert repo.update(replace(rule, name="Renamed", condition_value=25.0)) is True
        assert repo.get("r1").name == "Renamed"
        assert repo.get("r1").condition_value == 25.0

        assert repo.delete("r1") is True
        assert repo.get("r1") is None
        assert repo.delete("r1") is False
        assert repo.update(rule) is False

    def test_malformed_row_is_ignored(self, db):
        repo = RuleRepository(db)
        repo.create(make_rule("good"))
        db.execute(
            text("""
                INSERT INTO rules (
                    id, name, condition_field, operator, condition_value, action,
                    mode, status, created_at, updated_at
                )
                VALUES (
                    'bad', 'Broken', 'phLevel', '<', 5, 'Start Irrigation',
                    'Auto', 'Active', '2025-06-01T11:00:00.000000+00:00', '2025-06-01T11:00:00.000000+00:00'
                )
            """)
        )

        assert [r.id for r in repo.list_active_rules()] == ["good"]

    def test_unknown_stored_action_is_kept_raw(self, db):
        repo = RuleRepository(db)
        repo.create(make_rule(action="Open Vents"))
        rule = repo.get("r1")
        assert rule.action == "Open Vents"


# =============================================================================
# Alertas, apagados programados y activity log
# =============================================================================

def _alert(ts, **kwargs) -> AlertRecord:
    return AlertRecord(
        type="Warning", message="m", severity=AlertSeverity.LOW, threshold=20.0, timestamp=ts, **kwargs
    )


def test_alerts_are_appended_and_listed_newest_first(db):
    older = _alert(NOW)
    newer = _alert(NOW + timedelta(seconds=5))
    alert_repository.append_alert(db, older)
    alert_repository.append_alert(db, newer)

    alerts = alert_repository.list_recent_alerts(db, limit=10)
    assert [a.id for a in alerts] == [newer.id, older.id]
    assert alerts[0].viewed is False
    assert alert_repository.list_recent_alerts(db, limit=1)[0].id == newer.id


def test_mark_viewed(db):
    alert = _alert(NOW)
    alert_repository.append_alert(db, alert)

    assert alert_repository.mark_viewed(db, alert.id) is True
    assert alert_repository.get_alert(db, alert.id).viewed is True
    assert alert_repository.mark_viewed(db, "missing") is False


def test_due_stops_and_mark(db):
    due = ScheduledStop(device_id="ESP32_MAIN", rule_id="r1", due_at=NOW, created_at=NOW)
    later = ScheduledStop(device_id="ESP32_MAIN", rule_id="r1", due_at=NOW + timedelta(hours=1))
    scheduled_stop_repository.insert_scheduled_stop(db, due)
    scheduled_stop_repository.insert_scheduled_stop(db, later)

    stops = scheduled_stop_repository.list_due_stops(db, NOW + timedelta(minutes=1))
    assert [s.id for s in stops] == [due.id]
    assert stops[0].status == ScheduledStopStatus.PENDING

    assert scheduled_stop_repository.mark_stop(db, due.id, ScheduledStopStatus.DONE) is True
    assert scheduled_stop_repository.mark_stop(db, due.id, ScheduledStopStatus.CANCELLED) is False
    assert scheduled_stop_repository.list_due_stops(db, NOW + timedelta(minutes=1)) == []


def test_activity_logger_roundtrip(db):
    activity = ActivityLogger(db)
    activity.log(ActivityType.CREATE, "Rule", "r1", "Created rule", user="ana@farm")

    entries = activity.list_recent(10)
    assert len(entries) == 1
    assert entries[0].action_type == ActivityType.CREATE
    assert entries[0].user == "ana@farm"
    assert entries[0].entity_id == "r1"
