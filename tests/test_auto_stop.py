"""Tests del scheduler de apagados programados."""

from datetime import timedelta

from conftest import NOW, make_rule

from automation_api.devices.state_models import DeviceState
from automation_api.devices.state_repository import DeviceStateRepository
from automation_api.dispatch.models import ScheduledStop
from automation_api.persistence import scheduled_stop_repository
from automation_api.persistence.activity_log import ActivityLogger
from automation_api.persistence.rule_repository import RuleRepository
from automation_api.pipelines.automation_cycle import AutomationCycle
from automation_api.rules.models import Operator, TelemetrySample
from jobs.auto_stop.config import AutoStopConfig
from jobs.auto_stop.runner import run_once


CFG = AutoStopConfig(sleep_seconds=0, batch_size=10, once=True)


def _seed(db, *, auto_mode=True, on=True, due_at=NOW):
    DeviceStateRepository(db).save(
        DeviceState(
            device_id="ESP32_MAIN",
            auto_mode=auto_mode,
            is_irrigation_on=on,
            irrigation_started_at=NOW - timedelta(minutes=15) if on else None,
        ),
        expected_version=0,
        now=NOW,
    )
    stop = ScheduledStop(device_id="ESP32_MAIN", rule_id="r1", due_at=due_at, created_at=NOW)
    scheduled_stop_repository.insert_scheduled_stop(db, stop)
    db.commit()
    return stop


def test_due_stop_turns_irrigation_off(db, session_factory, settings):
    _seed(db)

    stats = run_once(session_factory, CFG, settings=settings, now=NOW)

    assert stats == {"due": 1, "done": 1, "cancelled": 0, "failed": 0}
    state = DeviceStateRepository(db).get("ESP32_MAIN")
    assert state.is_irrigation_on is False
    assert state.last_run_duration == 15.0
    assert state.total_water_usage == 150.0
    assert state.version == 2
    assert len(ActivityLogger(db).list_recent()) == 1


def test_stop_cancelled_when_device_switched_to_manual(db, session_factory, settings):
    _seed(db, auto_mode=False)

    stats = run_once(session_factory, CFG, settings=settings, now=NOW)

    assert stats["cancelled"] == 1
    assert DeviceStateRepository(db).get("ESP32_MAIN").is_irrigation_on is True


def test_stop_cancelled_when_already_off(db, session_factory, settings):
    _seed(db, on=False)

    stats = run_once(session_factory, CFG, settings=settings, now=NOW)

    assert stats["cancelled"] == 1
    assert stats["done"] == 0


def test_future_stop_is_not_executed(db, session_factory, settings):
    _seed(db, due_at=NOW + timedelta(minutes=5))

    stats = run_once(session_factory, CFG, settings=settings, now=NOW)

    assert stats["due"] == 0
    assert DeviceStateRepository(db).get("ESP32_MAIN").is_irrigation_on is True


def test_stop_runs_only_once(db, session_factory, settings):
    _seed(db)

    run_once(session_factory, CFG, settings=settings, now=NOW)
    stats = run_once(session_factory, CFG, settings=settings, now=NOW + timedelta(minutes=1))

    assert stats["due"] == 0


def test_stop_from_previous_run_does_not_end_new_run(db, session_factory, settings):
    """Start (15 min) → Stop → Start: el primer apagado no corta el segundo riego."""
    repo = RuleRepository(db)
    repo.create(make_rule("start", duration=15))
    repo.create(make_rule("stop", operator=Operator.GT, value=60, action="Stop Irrigation",
                          created_at=NOW + timedelta(seconds=1)))
    DeviceStateRepository(db).save(DeviceState(device_id="ESP32_MAIN", auto_mode=True), expected_version=0, now=NOW)
    db.commit()

    cycle = AutomationCycle(db, settings)
    for minutes, moisture in ((0, 15), (5, 70), (10, 15)):
        ts = NOW + timedelta(minutes=minutes)
        cycle.run(TelemetrySample(timestamp=ts, device_id="ESP32_MAIN", soil_moisture=moisture), now=ts)
        db.commit()

    stats = run_once(session_factory, CFG, settings=settings, now=NOW + timedelta(minutes=15))

    assert stats["cancelled"] == 1
    assert stats["done"] == 0
    assert DeviceStateRepository(db).get("ESP32_MAIN").is_irrigation_on is True

    # El apagado del segundo riego sí se ejecuta
    stats = run_once(session_factory, CFG, settings=settings, now=NOW + timedelta(minutes=25))

    assert stats["done"] == 1
    state = DeviceStateRepository(db).get("ESP32_MAIN")
    assert state.is_irrigation_on is False
    assert state.last_run_duration == 15.0
