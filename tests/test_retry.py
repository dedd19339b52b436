"""Tests del retry con backoff exponencial."""

from unittest.mock import MagicMock

import pytest

from automation_api.errors import RejectedManualOverride, StateConflictError
from automation_api.resilience.retry import RetryConfig, RetryExecutor


def test_calculate_delay_without_jitter():
    config = RetryConfig(base_delay=0.1, max_delay=0.3, jitter=False)

    assert config.calculate_delay(1) == pytest.approx(0.1)
    assert config.calculate_delay(2) == pytest.approx(0.2)
    assert config.calculate_delay(3) == pytest.approx(0.3)  # capped


def test_retries_state_conflicts_then_succeeds():
    func = MagicMock(side_effect=[StateConflictError("d", 1), StateConflictError("d", 2), "ok"])
    on_retry = MagicMock()
    sleep = MagicMock()
    executor = RetryExecutor(RetryConfig(max_attempts=3, jitter=False), on_retry=on_retry, sleep=sleep)

    assert executor.execute(func) == "ok"
    assert func.call_count == 3
    assert on_retry.call_count == 2
    assert sleep.call_count == 2
    assert executor.stats == {"total_attempts": 3, "total_retries": 2, "total_failures": 0}


def test_exhausted_retries_reraise():
    func = MagicMock(side_effect=StateConflictError("d", 1))
    executor = RetryExecutor(RetryConfig(max_attempts=2), sleep=MagicMock())

    with pytest.raises(StateConflictError):
        executor.execute(func)
    assert func.call_count == 2
    assert executor.stats["total_failures"] == 1


def test_non_retryable_errors_propagate_immediately():
    func = MagicMock(side_effect=RejectedManualOverride("d"))
    executor = RetryExecutor(RetryConfig(max_attempts=3), sleep=MagicMock())

    with pytest.raises(RejectedManualOverride):
        executor.execute(func)
    assert func.call_count == 1
