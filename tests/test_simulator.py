"""Tests del dispositivo virtual con una sesión HTTP mockeada."""

import random
from unittest.mock import MagicMock

import pytest
import requests

from jobs.simulator.device import SimulatorConfig, VirtualDevice, generate_reading


@pytest.fixture
def cfg():
    return SimulatorConfig(
        base_url="http://farm.local",
        device_id="ESP32_MAIN",
        interval_seconds=0,
        cycles=1,
        api_key="secret",
    )


def _response(status_code=201, body=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body or {}
    return response


def test_generate_reading_ranges():
    reading = generate_reading(random.Random(7))

    assert 22 <= reading["temperature"] <= 28
    assert 40 <= reading["humidity"] <= 60
    assert 20 <= reading["soilMoisture"] <= 80
    assert 200 <= reading["light"] <= 800
    assert 50 <= reading["waterLevel"] <= 100


def test_send_reading_posts_with_api_key(cfg):
    session = MagicMock()
    session.post.return_value = _response(201)
    device = VirtualDevice(cfg, session=session, rng=random.Random(1))

    payload = device.send_reading()

    assert payload["deviceId"] == "ESP32_MAIN"
    args, kwargs = session.post.call_args
    assert args[0] == "http://farm.local/api/sensors/data"
    assert kwargs["headers"]["X-API-Key"] == "secret"
    assert kwargs["json"] == payload


def test_send_reading_handles_server_error(cfg):
    session = MagicMock()
    session.post.return_value = _response(500)
    assert VirtualDevice(cfg, session=session).send_reading() is None


def test_send_reading_handles_connection_error(cfg):
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("down")
    assert VirtualDevice(cfg, session=session).send_reading() is None


def test_poll_status_reports_pump_changes(cfg):
    session = MagicMock()
    session.get.return_value = _response(200, {"isIrrigationOn": True, "autoMode": True})
    device = VirtualDevice(cfg, session=session)

    assert device.poll_status() is True
    assert device.pump_on is True
    assert device.auto_mode is True
    # Sin cambios no se reporta nada
    assert device.poll_status() is None

    session.get.return_value = _response(200, {"isIrrigationOn": False, "autoMode": True})
    assert device.poll_status() is False


def test_run_cycle_sends_and_polls(cfg):
    session = MagicMock()
    session.post.return_value = _response(201)
    session.get.return_value = _response(200, {"isIrrigationOn": False, "autoMode": False})

    VirtualDevice(cfg, session=session).run_cycle()

    session.post.assert_called_once()
    session.get.assert_called_once()
